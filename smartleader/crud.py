# smartleader/crud.py
"""CRUD operations for listings (`projects`) and contact submissions.

Listings are addressed by an integer application id, not by the store's
native document key, so every lookup goes through an equality query on
`id`. Oversized listings are split across `project_images` chunk records
(see `chunking`); primary and chunk records are always written in one
batch. Each write clears the cached reads of the collection it touches.
"""
from typing import Any, Dict, List, Optional, Tuple

from . import config
from .cache import cache
from .chunking import needs_chunking, reassemble, split_images
from .errors import NotFoundError
from .models import ContactStatus, ImageChunk
from .schemas import ContactCreate, ContactOut, ListingCreate, ListingOut, ListingUpdate
from .utils import logger, utcnow


def _find(db, collection: str, record_id: int, label: str) -> Tuple[str, Dict[str, Any]]:
    for key, data in db.stream(collection, where=("id", record_id)):
        return key, data
    raise NotFoundError(f"{label} not found")


# --- listings ---------------------------------------------------------------

def _chunk_record(record: Dict[str, Any]) -> List[ImageChunk]:
    """Trim `record["images"]` to what fits and return the overflow chunks."""
    if not needs_chunking(record, config.MAX_DOCUMENT_BYTES):
        record["chunk_count"] = 1
        return []
    embedded, chunks = split_images(record["id"], record["images"], config.IMAGES_PER_CHUNK)
    record["images"] = embedded
    record["chunk_count"] = len(chunks) + 1
    return chunks


def _load_images(db, data: Dict[str, Any]) -> List[str]:
    images = list(data.get("images") or [])
    if (data.get("chunk_count") or 1) > 1:
        chunks = [
            ImageChunk.from_document(doc)
            for _, doc in db.stream(config.CHUNKS_COLLECTION, where=("listing_id", data["id"]))
        ]
        images = reassemble(images, chunks)
    return images


def _to_listing(db, data: Dict[str, Any]) -> ListingOut:
    return ListingOut(**{**data, "images": _load_images(db, data)})


def create_listing(db, payload: ListingCreate) -> int:
    listing_id = db.next_id(config.PROJECTS_COLLECTION)
    now = utcnow()
    record = {
        **payload.model_dump(mode="json"),
        "id": listing_id,
        "views": 0,
        "created_at": now,
        "updated_at": now,
    }
    chunks = _chunk_record(record)

    batch = db.batch()
    batch.set(config.PROJECTS_COLLECTION, None, record)
    for chunk in chunks:
        batch.set(config.CHUNKS_COLLECTION, None, chunk.to_document())
    batch.commit()

    cache.clear(config.PROJECTS_COLLECTION)
    logger.info("Created listing %s with %d chunk(s)", listing_id, len(chunks))
    return listing_id


def _matches(data: Dict[str, Any], needle: Optional[str], fields: Tuple[str, ...]) -> bool:
    return not needle or any(needle in str(data.get(f) or "").lower() for f in fields)


def read_all_listings(
    db,
    active_only: bool = False,
    status: Optional[str] = None,
    featured: bool = False,
    search: Optional[str] = None,
) -> List[ListingOut]:
    """Newest first. `search` matches title, location or description, case-insensitively."""
    needle = search.lower() if search else None
    listings = []
    stream = db.stream(config.PROJECTS_COLLECTION, order_by="created_at", descending=True)
    for index, (_, data) in enumerate(stream):
        if active_only and not data.get("is_active", True):
            continue
        if status and data.get("status") != status:
            continue
        if featured and not data.get("is_featured"):
            continue
        if not _matches(data, needle, ("title", "location", "description")):
            continue
        if data.get("id") is None:
            data["id"] = index + 1
        listings.append(_to_listing(db, data))
    return listings


def get_listing(db, listing_id: int) -> ListingOut:
    _, data = _find(db, config.PROJECTS_COLLECTION, listing_id, "Project")
    return _to_listing(db, data)


def update_listing(db, listing_id: int, patch: ListingUpdate) -> ListingOut:
    key, data = _find(db, config.PROJECTS_COLLECTION, listing_id, "Project")
    changes = patch.model_dump(mode="json", exclude_unset=True)
    changes["updated_at"] = utcnow()

    batch = db.batch()
    if "images" in changes:
        # images replaced: redo the split and drop the old chunks with it
        for chunk_key, _ in db.stream(config.CHUNKS_COLLECTION, where=("listing_id", listing_id)):
            batch.delete(config.CHUNKS_COLLECTION, chunk_key)
        merged = {**data, **changes}
        chunks = _chunk_record(merged)
        changes["images"] = merged["images"]
        changes["chunk_count"] = merged["chunk_count"]
        for chunk in chunks:
            batch.set(config.CHUNKS_COLLECTION, None, chunk.to_document())
    batch.update(config.PROJECTS_COLLECTION, key, changes)
    batch.commit()

    cache.clear(config.PROJECTS_COLLECTION)
    logger.info("Updated listing %s (%s)", listing_id, ", ".join(sorted(changes)))
    return _to_listing(db, {**data, **changes})


def delete_listing(db, listing_id: int) -> bool:
    key, _ = _find(db, config.PROJECTS_COLLECTION, listing_id, "Project")
    batch = db.batch()
    removed = 0
    for chunk_key, _ in db.stream(config.CHUNKS_COLLECTION, where=("listing_id", listing_id)):
        batch.delete(config.CHUNKS_COLLECTION, chunk_key)
        removed += 1
    batch.delete(config.PROJECTS_COLLECTION, key)
    batch.commit()

    cache.clear(config.PROJECTS_COLLECTION)
    logger.info("Deleted listing %s and %d chunk(s)", listing_id, removed)
    return True


def increment_view(db, listing_id: int) -> int:
    """Bump the view counter.

    Plain read-then-write: two concurrent calls can both read the same
    count and one increment is lost.
    """
    key, data = _find(db, config.PROJECTS_COLLECTION, listing_id, "Project")
    views = (data.get("views") or 0) + 1
    db.update(config.PROJECTS_COLLECTION, key, {"views": views, "last_viewed_at": utcnow()})
    cache.clear(config.PROJECTS_COLLECTION)
    return views


def toggle_feature(db, listing_id: int) -> bool:
    key, data = _find(db, config.PROJECTS_COLLECTION, listing_id, "Project")
    featured = not data.get("is_featured", False)
    db.update(config.PROJECTS_COLLECTION, key, {"is_featured": featured, "updated_at": utcnow()})
    cache.clear(config.PROJECTS_COLLECTION)
    return featured


def add_rating(db, listing_id: int, score: int) -> Dict[str, Any]:
    key, data = _find(db, config.PROJECTS_COLLECTION, listing_id, "Project")
    current = data.get("rating") or {}
    count = int(current.get("count") or 0)
    average = float(current.get("average") or 0.0)
    rating = {"average": (average * count + score) / (count + 1), "count": count + 1}
    db.update(config.PROJECTS_COLLECTION, key, {"rating": rating})
    cache.clear(config.PROJECTS_COLLECTION)
    return rating


# --- contacts ---------------------------------------------------------------

def create_contact(db, payload: ContactCreate) -> int:
    contact_id = db.next_id(config.CONTACTS_COLLECTION)
    now = utcnow()
    db.add(config.CONTACTS_COLLECTION, {
        **payload.model_dump(),
        "id": contact_id,
        "status": ContactStatus.NEW.value,
        "is_read": False,
        "notes": [],
        "created_at": now,
        "updated_at": now,
    })
    cache.clear(config.CONTACTS_COLLECTION)
    logger.info("Created contact %s from %s", contact_id, payload.email)
    return contact_id


def list_contacts(db, status: Optional[str] = None, search: Optional[str] = None) -> List[ContactOut]:
    needle = search.lower() if search else None
    contacts = []
    stream = db.stream(config.CONTACTS_COLLECTION, order_by="created_at", descending=True)
    for index, (_, data) in enumerate(stream):
        if status and data.get("status") != status:
            continue
        if not _matches(data, needle, ("name", "email", "message")):
            continue
        if data.get("id") is None:
            data["id"] = index + 1
        contacts.append(ContactOut(**data))
    return contacts


def get_contact(db, contact_id: int, mark_read: bool = True) -> ContactOut:
    key, data = _find(db, config.CONTACTS_COLLECTION, contact_id, "Contact")
    if mark_read and not data.get("is_read"):
        db.update(config.CONTACTS_COLLECTION, key, {"is_read": True})
        data["is_read"] = True
        cache.clear(config.CONTACTS_COLLECTION)
    return ContactOut(**data)


def update_contact_status(db, contact_id: int, status: ContactStatus) -> ContactOut:
    key, data = _find(db, config.CONTACTS_COLLECTION, contact_id, "Contact")
    changes = {"status": ContactStatus(status).value, "updated_at": utcnow()}
    db.update(config.CONTACTS_COLLECTION, key, changes)
    cache.clear(config.CONTACTS_COLLECTION)
    return ContactOut(**{**data, **changes})


def add_contact_note(db, contact_id: int, note: str, added_by: str) -> ContactOut:
    key, data = _find(db, config.CONTACTS_COLLECTION, contact_id, "Contact")
    notes = list(data.get("notes") or [])
    notes.append({"note": note, "added_by": added_by, "added_at": utcnow()})
    changes = {"notes": notes, "updated_at": utcnow()}
    db.update(config.CONTACTS_COLLECTION, key, changes)
    cache.clear(config.CONTACTS_COLLECTION)
    return ContactOut(**{**data, **changes})


def delete_contact(db, contact_id: int) -> bool:
    key, _ = _find(db, config.CONTACTS_COLLECTION, contact_id, "Contact")
    db.delete(config.CONTACTS_COLLECTION, key)
    cache.clear(config.CONTACTS_COLLECTION)
    logger.info("Deleted contact %s", contact_id)
    return True
