"""Custom exceptions for the tracking package."""

from __future__ import annotations

from typing import Any, Optional


class TrackingException(Exception):
    """Base exception for tracking errors."""

    def __init__(self, message: str = "tracking error"):
        self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging or API responses."""
        return {
            "ErrType": type(self).__name__,
            "ErrMsg": self.message,
        }


class InvalidDetectionError(TrackingException):
    """Raised when a detection is malformed (missing or invalid bbox/score)."""

    def __init__(self, message: str = "", index: Optional[int] = None):
        self.index = index
        if index is not None:
            message = f"detection {index}: {message}"
        super().__init__(message or "invalid detection")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging or API responses."""
        return {
            "ErrType": type(self).__name__,
            "ErrMsg": self.message,
            "Index": self.index,
        }
