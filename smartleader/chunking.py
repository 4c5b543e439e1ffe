# smartleader/chunking.py
"""Keep listing documents under the per-document size ceiling.

When a listing with all of its images would serialise past the ceiling, the
images are cut into fixed-size groups. Group 0 stays embedded in the primary
record and every later group becomes an `ImageChunk` record, numbered from 1.
Reading reverses this by appending the chunks, in index order, after the
embedded images.
"""
import json
from datetime import datetime
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from .models import ImageChunk


def _json_default(value):
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def estimate_size(record: Dict[str, Any]) -> int:
    """Approximate stored size of `record` in bytes (UTF-8 JSON)."""
    encoded = json.dumps(record, default=_json_default, ensure_ascii=False, separators=(",", ":"))
    return len(encoded.encode("utf-8"))


def needs_chunking(record: Dict[str, Any], limit: int) -> bool:
    return bool(record.get("images")) and estimate_size(record) > limit


def split_images(listing_id: int, images: Sequence[str], per_chunk: int) -> Tuple[List[str], List[ImageChunk]]:
    if per_chunk < 1:
        raise ValueError("per_chunk must be at least 1")
    groups = [list(images[i:i + per_chunk]) for i in range(0, len(images), per_chunk)]
    if not groups:
        return [], []
    chunks = [
        ImageChunk(listing_id=listing_id, chunk_index=index, images=group)
        for index, group in enumerate(groups[1:], start=1)
    ]
    return groups[0], chunks


def reassemble(embedded: Iterable[str], chunks: Iterable[ImageChunk]) -> List[str]:
    images = list(embedded)
    for chunk in sorted(chunks, key=lambda c: c.chunk_index):
        images.extend(chunk.images)
    return images
