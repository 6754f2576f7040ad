"""Exceptions raised by the reception board state engine."""

from __future__ import annotations


class ReceptionError(RuntimeError):
    """Base class for errors surfaced to API callers."""


class ValidationError(ReceptionError):
    """Raised when a write carries missing or inconsistent fields."""


class NotFoundError(ReceptionError):
    """Raised when an operation references an id that does not exist."""

    def __init__(self, kind: str, item_id: str) -> None:
        super().__init__(f"{kind} not found: {item_id}")
        self.kind = kind
        self.item_id = item_id


class PersistenceError(ReceptionError):
    """Raised when the state document cannot be written to disk."""

    def __init__(self, path: object, reason: str) -> None:
        super().__init__(f"Could not write state file {path}: {reason}")
        self.path = path
        self.reason = reason


class UploadRejected(ValidationError):
    """Raised when an uploaded file is not an acceptable image."""


__all__ = [
    "ReceptionError",
    "ValidationError",
    "NotFoundError",
    "PersistenceError",
    "UploadRejected",
]
