# smartleader/utils.py
"""Shared utilities: logging setup and timestamp helpers."""
import os
import logging
from datetime import datetime, timezone
from dotenv import load_dotenv
from pydantic import TypeAdapter

load_dotenv()

def get_logger(name=__name__):
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        level=getattr(logging, level, logging.INFO)
    )
    return logging.getLogger(name)

logger = get_logger("smartleader")

def utcnow():
    return datetime.now(timezone.utc)

def to_iso(value):
    """Render a stored timestamp for display; strings pass through."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    return str(value)

_timestamp = TypeAdapter(datetime)

def parse_timestamp(value):
    """Stored timestamps may be datetimes or ISO strings; naive ones are UTC."""
    if value is None or value == "":
        return None
    if not isinstance(value, datetime):
        value = _timestamp.validate_python(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value
