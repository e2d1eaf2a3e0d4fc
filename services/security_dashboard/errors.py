"""
Security Dashboard Errors
=========================

Exceptions raised by the compliance engine and stores. The application
maps each class onto an HTTP status in ``main.py``.

Version: 0.1.0
"""

from typing import Any

from fastapi import status


class DashboardError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context


class NotFoundError(DashboardError):
    """A referenced account, standard, resource or compliance record does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ComplianceValidationError(DashboardError):
    """Caller supplied missing or malformed input."""

    status_code = status.HTTP_400_BAD_REQUEST


class StoreError(DashboardError):
    """The persistence layer failed (connection loss, constraint violation)."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
