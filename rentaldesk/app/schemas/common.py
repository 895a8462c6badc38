"""
Shared schema pieces.
"""

import math
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel

# Indian mobile numbers: exactly ten digits
PHONE_PATTERN = r"^\d{10}$"


class MessageResponse(BaseModel):
    success: bool = True
    message: str


def total_pages(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if page_size else 0


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored as naive UTC; convert aware input before it reaches the database."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
