"""
Parsing of client-supplied record ids.

Primary keys are signed 64-bit integers; anything outside that range can
never match a row and must not reach the database driver.
"""

from typing import Annotated, Any, Optional

from pydantic import Field

MAX_ID = 2**63 - 1

# Id accepted in a request body
EntityId = Annotated[int, Field(gt=0, le=MAX_ID)]


def is_decimal_string(value: str) -> bool:
    """ASCII digits only: rejects "1_0", "+1", " 1" and non-ASCII digits like "²"."""
    return value.isascii() and value.isdecimal()


def parse_id(raw: Any) -> Optional[int]:
    """Return ``raw`` as a storable positive id, or None if it cannot be one."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and is_decimal_string(raw):
        value = int(raw)
    else:
        return None
    if 0 < value <= MAX_ID:
        return value
    return None
