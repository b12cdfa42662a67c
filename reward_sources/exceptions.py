"""
Reward Source Exceptions - Custom exception hierarchy.

Source-level failures are downgraded by the caller to an empty ledger;
identity failures are escalated per record.
"""

from datetime import datetime
from typing import Any, Optional


class RewardSourceError(Exception):
    """Base exception for all reward source errors."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.source_name = source_name
        self.original_error = original_error
        self.context = context or {}
        self.timestamp = datetime.utcnow()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "source_name": self.source_name,
            "original_error": str(self.original_error) if self.original_error else None,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]
        if self.source_name:
            parts.append(f"[source={self.source_name}]")
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


class FetchError(RewardSourceError):
    """Error while retrieving a dataset from a GraphQL endpoint."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, original_error, context)
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "status_code": self.status_code,
            "response_body": self.response_body,
            "request_url": self.request_url,
        })
        return data


class MalformedSourceDataError(RewardSourceError):
    """Dataset does not match the expected nested result structure."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        missing_path: Optional[str] = None,
        graphql_errors: Optional[list[Any]] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, original_error, context)
        self.missing_path = missing_path
        self.graphql_errors = graphql_errors or []

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "missing_path": self.missing_path,
            "graphql_errors": [str(e)[:200] for e in self.graphql_errors],
        })
        return data


class NotANumberError(RewardSourceError):
    """An amount field failed numeric parsing."""

    def __init__(
        self,
        message: str,
        raw_value: Optional[Any] = None,
        source_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, original_error, context)
        self.raw_value = raw_value

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["raw_value"] = repr(self.raw_value)[:200]
        return data


class InvalidIdentityError(RewardSourceError):
    """A participant identifier is not an integer in any accepted encoding."""

    def __init__(
        self,
        message: str,
        raw_identity: Optional[Any] = None,
        source_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, original_error, context)
        self.raw_identity = raw_identity

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["raw_identity"] = repr(self.raw_identity)[:200]
        return data


class IdentityOutOfRangeError(InvalidIdentityError):
    """A participant identifier does not fit the canonical 256-bit field."""

    def __init__(
        self,
        message: str,
        raw_identity: Optional[Any] = None,
        bit_length: Optional[int] = None,
        source_name: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, raw_identity, source_name, None, context)
        self.bit_length = bit_length

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["bit_length"] = self.bit_length
        return data
