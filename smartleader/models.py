# smartleader/models.py
"""Stored record shapes for the Firestore collections.

Listings live in `projects`, their overflow images in `project_images` and
contact-form submissions in `contacts`. Collection names come from config.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class ListingStatus(str, Enum):
    AVAILABLE = "Available"
    UNDER_CONSTRUCTION = "Under Construction"
    COMING_SOON = "Coming Soon"
    SOLD_OUT = "Sold Out"
    COMPLETED = "Completed"


class ContactStatus(str, Enum):
    NEW = "New"
    CONTACTED = "Contacted"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"


@dataclass
class ImageChunk:
    """A slice of a listing's images stored outside the primary record.

    Index 0 is the slice embedded in the primary record itself, so stored
    chunks start at 1.
    """

    listing_id: int
    chunk_index: int
    images: List[str] = field(default_factory=list)

    def to_document(self) -> Dict[str, Any]:
        return {
            "listing_id": self.listing_id,
            "chunk_index": self.chunk_index,
            "images": list(self.images),
        }

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "ImageChunk":
        return cls(
            listing_id=data.get("listing_id"),
            chunk_index=int(data.get("chunk_index") or 0),
            images=list(data.get("images") or []),
        )
