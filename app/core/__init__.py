"""Core module for results, cursors, security, exceptions and telemetry."""

from app.core.cursor import Cursor, decode_cursor, encode_cursor
from app.core.exceptions import NotFoundError, ServiceError, unwrap
from app.core.result import ErrorCode, ServiceResult
from app.core.telemetry import get_tracer, record_result, setup_all_instrumentation

__all__ = [
    "Cursor",
    "ErrorCode",
    "NotFoundError",
    "ServiceError",
    "ServiceResult",
    "decode_cursor",
    "encode_cursor",
    "get_tracer",
    "record_result",
    "setup_all_instrumentation",
    "unwrap",
]
