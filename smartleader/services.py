# smartleader/services.py
"""Service layer used by the pages and admin dashboard.

Every function returns a `Result` instead of raising, so callers only check
`result.success` and show `result.error` on failure. Admin operations take
the caller's `Identity` and refuse anything without the admin role.
"""
import calendar
import csv
import io
import math
from collections import Counter
from dataclasses import dataclass
from datetime import timedelta
from functools import wraps
from typing import Any, List, Optional

from pydantic import ValidationError

from . import config, crud
from .auth import Identity, require_admin
from .cache import cache
from .errors import AuthError, NotFoundError, PermissionDeniedError, StoreError
from .models import ContactStatus, ListingStatus
from .schemas import (
    Analytics,
    ContactCounts,
    ContactCreate,
    ContactExportFilter,
    ContactOut,
    ContactSummary,
    DashboardStats,
    ListingCreate,
    ListingUpdate,
    MonthlyCount,
    Page,
    PageRequest,
    ProjectCounts,
    RatingSubmission,
    RecentActivity,
)
from .utils import logger, parse_timestamp, utcnow

CSV_HEADER = ["Name", "Email", "Phone", "Message", "Status", "Created At"]


@dataclass
class Result:
    success: bool
    data: Any = None
    error: Optional[str] = None
    code: Optional[str] = None

    @classmethod
    def ok(cls, data=None):
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error, code):
        return cls(success=False, error=str(error), code=code)


def returns_result(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return Result.ok(f(*args, **kwargs))
        except ValidationError as e:
            logger.warning("%s rejected input: %s", f.__name__, e)
            return Result.fail(e, "validation")
        except NotFoundError as e:
            return Result.fail(e, "not_found")
        except PermissionDeniedError as e:
            logger.warning("%s denied: %s", f.__name__, e)
            return Result.fail(e, "forbidden")
        except AuthError as e:
            return Result.fail(e, "unauthorized")
        except StoreError as e:
            logger.exception("%s failed: %s", f.__name__, e)
            return Result.fail(e, "store")
        except ValueError as e:
            return Result.fail(e, "validation")
        except Exception as e:
            logger.exception("%s failed: %s", f.__name__, e)
            return Result.fail(e, "store")
    return wrapper


def _paginate(items, page: int = 1, limit: int = 10):
    request = PageRequest(page=page, limit=limit)
    start = (request.page - 1) * request.limit
    return Page(
        items=[item.model_dump() for item in items[start:start + request.limit]],
        total=len(items),
        total_pages=math.ceil(len(items) / request.limit),
        page=request.page,
    ).model_dump()


# --- listings ---------------------------------------------------------------

@returns_result
def get_listings(db, active_only: bool = True, use_cache: bool = True):
    query = {"active_only": active_only}
    if use_cache:
        cached = cache.get(config.PROJECTS_COLLECTION, query)
        if cached is not None:
            return cached
    listings = [listing.model_dump() for listing in crud.read_all_listings(db, active_only=active_only)]
    if use_cache:
        cache.set(config.PROJECTS_COLLECTION, query, listings)
    return listings


@returns_result
def find_listings(db, status: Optional[str] = None, featured: bool = False, search: Optional[str] = None,
                  page: int = 1, limit: int = 10):
    """Public catalogue page: active listings only."""
    query = {"status": status, "featured": featured, "search": search, "page": page, "limit": limit}
    cached = cache.get(config.PROJECTS_COLLECTION, query)
    if cached is not None:
        return cached
    listings = crud.read_all_listings(db, active_only=True, status=status, featured=featured, search=search)
    result = _paginate(listings, page, limit)
    cache.set(config.PROJECTS_COLLECTION, query, result)
    return result


@returns_result
def get_admin_listings(db, identity: Optional[Identity], status: Optional[str] = None,
                       search: Optional[str] = None, page: int = 1, limit: int = 10):
    """Admin table: includes soft-deleted listings, never cached."""
    require_admin(identity)
    listings = crud.read_all_listings(db, status=status, search=search)
    return _paginate(listings, page, limit)


@returns_result
def get_listing(db, listing_id: int, count_view: bool = True):
    listing = crud.get_listing(db, listing_id)
    if not listing.is_active:
        raise NotFoundError("Project not found")
    if count_view:
        crud.increment_view(db, listing_id)
        listing = crud.get_listing(db, listing_id)
    return listing.model_dump()


@returns_result
def create_listing(db, payload, identity: Optional[Identity]):
    require_admin(identity)
    listing = ListingCreate.model_validate(payload)
    return crud.create_listing(db, listing)


@returns_result
def update_listing(db, listing_id: int, patch, identity: Optional[Identity]):
    require_admin(identity)
    changes = ListingUpdate.model_validate(patch)
    return crud.update_listing(db, listing_id, changes).model_dump()


@returns_result
def delete_listing(db, listing_id: int, identity: Optional[Identity]):
    require_admin(identity)
    return crud.delete_listing(db, listing_id)


@returns_result
def toggle_feature(db, listing_id: int, identity: Optional[Identity]):
    require_admin(identity)
    return crud.toggle_feature(db, listing_id)


@returns_result
def rate_listing(db, listing_id: int, submission):
    rating = RatingSubmission.model_validate(submission)
    return crud.add_rating(db, listing_id, rating.score)


# --- contacts ---------------------------------------------------------------

@returns_result
def submit_contact(db, payload):
    contact = ContactCreate.model_validate(payload)
    return crud.create_contact(db, contact)


@returns_result
def get_contacts(db, identity: Optional[Identity], status: Optional[str] = None, search: Optional[str] = None,
                 page: int = 1, limit: int = 10):
    require_admin(identity)
    query = {"status": status, "search": search, "page": page, "limit": limit}
    cached = cache.get(config.CONTACTS_COLLECTION, query)
    if cached is not None:
        return cached
    result = _paginate(crud.list_contacts(db, status=status, search=search), page, limit)
    cache.set(config.CONTACTS_COLLECTION, query, result)
    return result


@returns_result
def get_contact_summary(db, identity: Optional[Identity], now=None):
    """Counts per status, plus submissions from the last 7 days."""
    require_admin(identity)
    since = (now or utcnow()) - timedelta(days=7)
    contacts = crud.list_contacts(db)
    by_status = Counter(c.status for c in contacts)
    return ContactSummary(
        total=len(contacts),
        new=by_status[ContactStatus.NEW.value],
        contacted=by_status[ContactStatus.CONTACTED.value],
        in_progress=by_status[ContactStatus.IN_PROGRESS.value],
        resolved=by_status[ContactStatus.RESOLVED.value],
        recent=sum(1 for c in contacts if _created_since(c, since)),
    ).model_dump()


@returns_result
def get_contact(db, contact_id: int, identity: Optional[Identity]):
    require_admin(identity)
    return crud.get_contact(db, contact_id).model_dump()


@returns_result
def update_contact_status(db, contact_id: int, status, identity: Optional[Identity]):
    require_admin(identity)
    return crud.update_contact_status(db, contact_id, ContactStatus(status)).model_dump()


@returns_result
def add_contact_note(db, contact_id: int, note: str, identity: Optional[Identity]):
    require_admin(identity)
    note = (note or "").strip()
    if not note:
        raise ValueError("note must not be empty")
    return crud.add_contact_note(db, contact_id, note, added_by=identity.email).model_dump()


@returns_result
def delete_contact(db, contact_id: int, identity: Optional[Identity]):
    require_admin(identity)
    return crud.delete_contact(db, contact_id)


def _created_since(record, since) -> bool:
    created = parse_timestamp(record.created_at)
    return created is not None and created >= since


@returns_result
def export_contacts_csv(db, identity: Optional[Identity], filters=None):
    require_admin(identity)
    filters = ContactExportFilter.model_validate(filters or {})
    status = filters.status.value if filters.status else None
    window = None
    if filters.start_date and filters.end_date:
        window = (parse_timestamp(filters.start_date), parse_timestamp(filters.end_date))

    out = io.StringIO()
    out.write(",".join(CSV_HEADER) + "\n")
    writer = csv.writer(out, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for _, data in db.stream(config.CONTACTS_COLLECTION, order_by="created_at", descending=True):
        created = parse_timestamp(data.get("created_at"))
        if window and created is not None and not window[0] <= created <= window[1]:
            continue
        if status and data.get("status") != status:
            continue
        contact = ContactOut(**{"id": 0, **data})
        writer.writerow([
            contact.name, contact.email, contact.phone, contact.message,
            contact.status, contact.created_at,
        ])
    return out.getvalue()


# --- admin ------------------------------------------------------------------

def _months_before(moment, months: int):
    year, month = divmod(moment.year * 12 + moment.month - 1 - months, 12)
    day = min(moment.day, calendar.monthrange(year, month + 1)[1])
    return moment.replace(year=year, month=month + 1, day=day)


def _monthly_counts(records, since) -> List[MonthlyCount]:
    counts = Counter()
    for record in records:
        created = parse_timestamp(record.created_at)
        if created is not None and created >= since:
            counts[(created.year, created.month)] += 1
    return [MonthlyCount(year=y, month=m, count=n) for (y, m), n in sorted(counts.items())]


@returns_result
def get_dashboard_stats(db, identity: Optional[Identity], recent_limit: int = 5, now=None):
    require_admin(identity)
    listings = crud.read_all_listings(db, active_only=True)
    contacts = crud.list_contacts(db)
    since = _months_before(now or utcnow(), 6)
    stats = DashboardStats(
        projects=ProjectCounts(
            total=len(listings),
            available=sum(1 for p in listings if p.status == ListingStatus.AVAILABLE.value),
            completed=sum(1 for p in listings if p.status == ListingStatus.COMPLETED.value),
            featured=sum(1 for p in listings if p.is_featured),
        ),
        contacts=ContactCounts(
            total=len(contacts),
            new=sum(1 for c in contacts if c.status == ContactStatus.NEW.value),
            resolved=sum(1 for c in contacts if c.status == ContactStatus.RESOLVED.value),
        ),
        recent=RecentActivity(projects=listings[:recent_limit], contacts=contacts[:recent_limit]),
        analytics=Analytics(
            monthly_projects=_monthly_counts(listings, since),
            monthly_contacts=_monthly_counts(contacts, since),
        ),
    )
    return stats.model_dump()
