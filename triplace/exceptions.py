"""
triplace.exceptions — Domain errors raised by services
=======================================================
"""

from __future__ import annotations


class TriPlaceError(Exception):
    """Base class for errors the API maps to a client-facing status."""


class DuplicateUserError(TriPlaceError):
    """A user with the same Firebase UID or email already exists."""

    def __init__(self, field: str, value: str) -> None:
        super().__init__(f"User with {field} {value!r} already exists")
        self.field = field
        self.value = value
