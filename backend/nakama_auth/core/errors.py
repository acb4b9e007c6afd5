"""
Error taxonomy shared by services and routers.

Services translate low-level storage, cache and network failures into these
types before anything reaches a router.
"""
from enum import Enum


class ErrorKind(str, Enum):
    """Category of a failed outcome, used to pick the HTTP status."""
    VALIDATION = "validation"
    POLICY = "policy"
    AUTHENTICATION = "authentication"
    INTERNAL = "internal"


GENERIC_INTERNAL_MESSAGE = "Something went wrong while processing the request. Please try again."


class StoreError(Exception):
    """Credential store operation failed."""


class UniquenessConflict(StoreError):
    """A write collided with a unique index."""

    def __init__(self, field: str):
        super().__init__(f"duplicate value for {field}")
        self.field = field


class NotificationError(Exception):
    """Outbound notification could not be delivered."""
