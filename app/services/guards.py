"""Database error handling shared by the company-scoped services."""

import functools
import logging

from sqlalchemy.exc import SQLAlchemyError

from app.core.result import ErrorCode, ServiceResult


def handles_db_errors(action: str):
    """Turn a SQLAlchemyError escaping a service method into a failed result.

    Steps that map failures to a specific code catch their own errors first;
    this covers the remaining reads and writes. The session is rolled back so
    it stays usable for the rest of the request.

    Args:
        action: What the method does, used in the log line and the error text
    """

    def decorator(method):
        logger = logging.getLogger(method.__module__)

        @functools.wraps(method)
        async def wrapper(self, *args, **kwargs):
            try:
                return await method(self, *args, **kwargs)
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error(f"Failed to {action} for company {self.company_id}: {e}")
                return ServiceResult.fail(f"Failed to {action}", ErrorCode.UNKNOWN)

        return wrapper

    return decorator
