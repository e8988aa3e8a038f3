"""Custom HTTP exceptions."""

from fastapi import HTTPException, status

from app.core.result import ErrorCode, ServiceResult


class NotFoundError(HTTPException):
    """Exception raised when a resource is not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} with id '{identifier}' not found",
        )


class UnauthorizedError(HTTPException):
    """Exception raised for authentication failures."""

    def __init__(self, detail: str = "Invalid or missing API key"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
        )


class ForbiddenError(HTTPException):
    """Exception raised when access to a resource is forbidden."""

    def __init__(self, detail: str = "Access to this resource is forbidden"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )


class BadRequestError(HTTPException):
    """Exception raised for bad requests."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )


_STATUS_BY_CODE = {
    ErrorCode.VALIDATION_ERROR: 422,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.WHATSAPP_SEND_FAILED: status.HTTP_502_BAD_GATEWAY,
}


class ServiceError(HTTPException):
    """Exception carrying a failed ServiceResult through the HTTP layer."""

    def __init__(self, error: str, code: ErrorCode):
        self.code = code
        super().__init__(
            status_code=_STATUS_BY_CODE.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR),
            detail={"error": error, "code": code.value},
        )


def unwrap(result: ServiceResult):
    """Return the result data or raise ServiceError for a failed result."""
    if not result.success:
        raise ServiceError(result.error or "Request failed", result.code or ErrorCode.UNKNOWN)
    return result.data
