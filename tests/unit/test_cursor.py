"""Unit tests for pagination cursors."""

import base64
import json
from datetime import datetime, timezone

from app.core.cursor import Cursor, decode_cursor, encode_cursor


def _token(payload) -> str:
    return base64.urlsafe_b64encode(json.dumps(payload).encode()).decode()


class TestCursor:
    """Tests for encode_cursor/decode_cursor."""

    def test_encode_datetime_sort_value(self):
        """Datetimes are stored as ISO 8601 text."""
        created = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)

        token = encode_cursor(created, 42)
        decoded = json.loads(base64.urlsafe_b64decode(token))

        assert decoded == {"sortValue": "2024-05-01T12:30:00+00:00", "id": 42}

    def test_decode_returns_position(self):
        token = encode_cursor("2024-05-01T12:30:00+00:00", 7)

        assert decode_cursor(token) == Cursor(sort_value="2024-05-01T12:30:00+00:00", id=7)

    def test_decode_null_sort_value(self):
        assert decode_cursor(encode_cursor(None, 3)) == Cursor(sort_value=None, id=3)

    def test_decode_missing_token(self):
        assert decode_cursor(None) is None
        assert decode_cursor("") is None

    def test_decode_garbage(self):
        """Anything that is not base64 JSON is treated as no cursor."""
        assert decode_cursor("not a cursor!!") is None
        assert decode_cursor(base64.urlsafe_b64encode(b"{oops").decode()) is None

    def test_decode_wrong_shape(self):
        assert decode_cursor(_token([1, 2])) is None
        assert decode_cursor(_token({"sortValue": "2024-01-01"})) is None
        assert decode_cursor(_token({"sortValue": "2024-01-01", "id": "5"})) is None
        assert decode_cursor(_token({"sortValue": 123, "id": 5})) is None
        assert decode_cursor(_token({"sortValue": None, "id": True})) is None

    def test_token_is_url_safe(self):
        """Tokens travel in query strings unescaped."""
        token = encode_cursor("2024-05-01T12:30:00.999999+00:00", 123456789)

        assert "+" not in token
        assert "/" not in token
