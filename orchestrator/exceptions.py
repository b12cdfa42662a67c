"""
Orchestrator - Exceptions.
"""

from typing import Any, Optional


class ConfigurationError(Exception):
    """A configuration value is missing or cannot be parsed."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.config_key = config_key
        self.original_error = original_error

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "config_key": self.config_key,
            "original_error": str(self.original_error) if self.original_error else None,
        }

    def __str__(self) -> str:
        if self.config_key:
            return f"{self.message} [key={self.config_key}]"
        return self.message
