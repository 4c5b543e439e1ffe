import pytest

from smartleader.chunking import estimate_size, needs_chunking, reassemble, split_images
from smartleader.models import ImageChunk


def test_estimate_size_counts_utf8_bytes():
    assert estimate_size({"t": "e"}) == len('{"t":"e"}')
    assert estimate_size({"t": "é"}) == len('{"t":"e"}') + 1


def test_estimate_size_handles_datetimes():
    from datetime import datetime, timezone
    assert estimate_size({"at": datetime(2024, 1, 1, tzinfo=timezone.utc)}) > 0


def test_needs_chunking_requires_images():
    big = {"description": "x" * 1000, "images": []}
    assert not needs_chunking(big, limit=100)
    assert needs_chunking({**big, "images": ["a"]}, limit=100)
    assert not needs_chunking({"images": ["a"]}, limit=100)


def test_split_ten_images_in_threes():
    images = [f"img{i}" for i in range(10)]
    embedded, chunks = split_images(42, images, per_chunk=3)

    assert embedded == ["img0", "img1", "img2"]
    assert [c.chunk_index for c in chunks] == [1, 2, 3]
    assert [c.images for c in chunks] == [
        ["img3", "img4", "img5"],
        ["img6", "img7", "img8"],
        ["img9"],
    ]
    assert all(c.listing_id == 42 for c in chunks)


def test_split_fewer_than_one_group():
    embedded, chunks = split_images(1, ["a", "b"], per_chunk=3)
    assert embedded == ["a", "b"]
    assert chunks == []


def test_split_empty_and_invalid_group_size():
    assert split_images(1, [], per_chunk=3) == ([], [])
    with pytest.raises(ValueError):
        split_images(1, ["a"], per_chunk=0)


def test_reassemble_orders_by_chunk_index():
    chunks = [
        ImageChunk(listing_id=1, chunk_index=2, images=["g", "h"]),
        ImageChunk(listing_id=1, chunk_index=1, images=["d", "e", "f"]),
    ]
    assert reassemble(["a", "b", "c"], chunks) == list("abcdefgh")


def test_split_then_reassemble_keeps_order():
    images = [f"img{i}" for i in range(13)]
    embedded, chunks = split_images(7, images, per_chunk=3)
    assert reassemble(embedded, reversed(chunks)) == images


def test_image_chunk_document_round_trip():
    chunk = ImageChunk(listing_id=5, chunk_index=3, images=["x"])
    assert ImageChunk.from_document(chunk.to_document()) == chunk
