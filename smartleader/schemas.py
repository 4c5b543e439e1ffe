# smartleader/schemas.py
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import List, Optional
from datetime import datetime

from .models import ContactStatus, ListingStatus
from .utils import to_iso


class _Stored(BaseModel):
    """Output model built from a stored document; nulls fall back to defaults."""

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data):
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data

    @field_validator("created_at", "updated_at", "last_viewed_at", "added_at", mode="before", check_fields=False)
    @classmethod
    def _iso(cls, value):
        return to_iso(value)


class Specifications(BaseModel):
    bedrooms: str = ""
    bathrooms: str = ""
    parking: str = ""
    floor: str = ""
    type: str = ""


class Rating(BaseModel):
    average: float = 0.0
    count: int = 0


class RatingSubmission(BaseModel):
    score: int = Field(..., ge=1, le=5)
    feedback: str = ""


class ListingBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    long_description: str = ""
    location: str = Field(..., min_length=1)
    price: str = Field(..., min_length=1)
    area: str = ""
    completion_date: str = ""
    status: ListingStatus = ListingStatus.AVAILABLE
    specifications: Specifications = Field(default_factory=Specifications)
    features: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    is_featured: bool = False
    is_active: bool = True


class ListingCreate(ListingBase):
    pass


class ListingUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    long_description: Optional[str] = None
    location: Optional[str] = Field(None, min_length=1)
    price: Optional[str] = Field(None, min_length=1)
    area: Optional[str] = None
    completion_date: Optional[str] = None
    status: Optional[ListingStatus] = None
    specifications: Optional[Specifications] = None
    features: Optional[List[str]] = None
    images: Optional[List[str]] = None
    is_featured: Optional[bool] = None
    is_active: Optional[bool] = None

    @field_validator("title", "description", "location", "price", mode="before")
    @classmethod
    def _required_not_null(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be cleared")
        return value


class ListingOut(_Stored):
    id: int
    title: str = ""
    description: str = ""
    long_description: str = ""
    location: str = ""
    price: str = ""
    area: str = ""
    completion_date: str = ""
    status: str = ""
    specifications: Specifications = Field(default_factory=Specifications)
    features: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    views: int = 0
    rating: Optional[Rating] = None
    is_featured: bool = False
    is_active: bool = True
    chunk_count: int = 1
    created_at: str = ""
    updated_at: str = ""
    last_viewed_at: str = ""


class ContactCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    phone: str = ""
    message: str = Field(..., min_length=1)
    source: str = "website"

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value):
        value = value.lower()
        local, _, domain = value.partition("@")
        if not local or "." not in domain:
            raise ValueError("invalid email address")
        return value


class ContactNote(_Stored):
    note: str
    added_by: str = ""
    added_at: str = ""


class ContactOut(_Stored):
    id: int
    name: str = ""
    email: str = ""
    phone: str = ""
    message: str = ""
    status: str = ContactStatus.NEW.value
    source: str = ""
    is_read: bool = False
    notes: List[ContactNote] = Field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""


class PageRequest(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)


class Page(BaseModel):
    items: list = Field(default_factory=list)
    total: int = 0
    total_pages: int = 0
    page: int = 1


class ContactExportFilter(BaseModel):
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[ContactStatus] = None


class ProjectCounts(BaseModel):
    total: int = 0
    available: int = 0
    completed: int = 0
    featured: int = 0


class ContactCounts(BaseModel):
    total: int = 0
    new: int = 0
    resolved: int = 0


class ContactSummary(BaseModel):
    total: int = 0
    new: int = 0
    contacted: int = 0
    in_progress: int = 0
    resolved: int = 0
    recent: int = 0


class MonthlyCount(BaseModel):
    year: int
    month: int
    count: int


class Analytics(BaseModel):
    monthly_projects: List[MonthlyCount] = Field(default_factory=list)
    monthly_contacts: List[MonthlyCount] = Field(default_factory=list)


class RecentActivity(BaseModel):
    projects: List[ListingOut] = Field(default_factory=list)
    contacts: List[ContactOut] = Field(default_factory=list)


class DashboardStats(BaseModel):
    projects: ProjectCounts
    contacts: ContactCounts
    recent: RecentActivity
    analytics: Analytics = Field(default_factory=Analytics)
