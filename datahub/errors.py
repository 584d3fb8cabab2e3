"""Exceptions raised by the data hub.

The provider engine never lets these escape `get()`; they exist so HTTP
helpers can hand the engine a clean, single-line failure message.
"""
from typing import Any, Dict, Optional


class DataHubError(Exception):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class FetchError(DataHubError):
    """A remote read failed (transport error or non-2xx response)."""


class SyncError(DataHubError):
    """A queued write could not be delivered."""
