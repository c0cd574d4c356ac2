"""Identifier and timestamp contracts.

Every entity id is a random UUIDv4, assigned once at creation.
Timestamps are UTC ISO 8601 with millisecond precision and a ``Z`` suffix.

INVARIANT: IDs are permanent. Once generated, an ID never changes.
"""

from __future__ import annotations

import re
import uuid
from datetime import UTC, datetime

UUID4_PATTERN = (
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-4[0-9a-fA-F]{3}-[89abAB][0-9a-fA-F]{3}-[0-9a-fA-F]{12}$"
)

_UUID4_RE = re.compile(UUID4_PATTERN)


def generate_id() -> str:
    """Return a new random UUIDv4 string."""
    return str(uuid.uuid4())


def is_valid_id(value: object) -> bool:
    """Check whether *value* is a well-formed UUIDv4 string."""
    return isinstance(value, str) and _UUID4_RE.match(value) is not None


def now_iso() -> str:
    """Current UTC time, e.g. ``2025-01-31T12:00:00.000Z``."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(value: str) -> datetime:
    """Parse an ISO 8601 timestamp, requiring an explicit UTC offset.

    Raises:
        ValueError: If *value* is not ISO 8601 or carries no offset.
    """
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        msg = f"Timestamp must include a UTC offset: {value!r}"
        raise ValueError(msg)
    return parsed
