"""Structured service results and the error code taxonomy."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorCode(str, Enum):
    """Error codes surfaced by the service layer."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONTACT_CREATE_FAILED = "CONTACT_CREATE_FAILED"
    CONVERSATION_CREATE_FAILED = "CONVERSATION_CREATE_FAILED"
    MESSAGE_INSERT_FAILED = "MESSAGE_INSERT_FAILED"
    WHATSAPP_SEND_FAILED = "WHATSAPP_SEND_FAILED"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    CONFLICT = "CONFLICT"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    """Outcome of a service call.

    Services return one of these instead of raising, so that callers can
    branch on ``success`` and surface ``code`` through whatever envelope
    wraps the result.
    """

    success: bool
    data: T | None = None
    error: str | None = None
    code: ErrorCode | None = None

    @classmethod
    def ok(cls, data: T | None = None) -> "ServiceResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, code: ErrorCode = ErrorCode.UNKNOWN) -> "ServiceResult[T]":
        return cls(success=False, error=error, code=code)

    @classmethod
    def not_found(cls, resource: str) -> "ServiceResult[T]":
        return cls.fail(f"{resource} not found", ErrorCode.NOT_FOUND)
