"""
Reconciliation Exceptions - run-level failure conditions.
"""

from datetime import datetime
from typing import Any, Optional


class ReconciliationError(Exception):
    """Base exception for reconciliation errors."""

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.context = context or {}
        self.timestamp = datetime.utcnow()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "original_error": str(self.original_error) if self.original_error else None,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


class NoRecordsError(ReconciliationError):
    """The combined record set is empty at export time."""


class BothSourcesUnreachableError(ReconciliationError):
    """Neither source produced usable data; the run cannot continue."""

    def __init__(
        self,
        message: str,
        incidents: Optional[list[Any]] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, None, context)
        self.incidents = incidents or []

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["incidents"] = [i.to_dict() for i in self.incidents]
        return data
