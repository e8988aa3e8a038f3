"""Opaque pagination cursors.

A cursor encodes the sort position ``(sortValue, id)`` of the last item of a
page as base64 JSON. It carries no ordering information of its own, so the
consumer must apply the same ordering on every page.
"""

import base64
import binascii
import json
from datetime import datetime
from typing import NamedTuple


class Cursor(NamedTuple):
    """Decoded sort position."""

    sort_value: str | None
    id: int


def encode_cursor(sort_value: datetime | str | None, record_id: int) -> str:
    """Encode a sort position as an opaque token."""
    if isinstance(sort_value, datetime):
        sort_value = sort_value.isoformat()
    payload = json.dumps({"sortValue": sort_value, "id": record_id}, separators=(",", ":"))
    return base64.urlsafe_b64encode(payload.encode()).decode()


def decode_cursor(token: str | None) -> Cursor | None:
    """Decode a token produced by encode_cursor.

    Returns None for a missing or malformed token; callers treat that as
    "start from the first page".
    """
    if not token:
        return None

    try:
        raw = base64.urlsafe_b64decode(token.encode())
        parsed = json.loads(raw.decode())
    except (binascii.Error, ValueError):
        return None

    if not isinstance(parsed, dict):
        return None

    record_id = parsed.get("id")
    if not isinstance(record_id, int) or isinstance(record_id, bool):
        return None

    sort_value = parsed.get("sortValue")
    if sort_value is not None and not isinstance(sort_value, str):
        return None

    return Cursor(sort_value=sort_value, id=record_id)
