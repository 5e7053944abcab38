"""
Exceptions raised by the authentication core.

Expected negative outcomes (unknown user, wrong password, invalid
registration) are plain return values and never appear here.
"""

from __future__ import annotations


class UnknownHashVersionError(ValueError):
    """A stored password hash carries a version tag with no registered scheme."""

    def __init__(self, version: object) -> None:
        super().__init__(f"No password scheme registered for version {version!r}")
        self.version = version


class DuplicateUserError(ValueError):
    """The user store refused an insert because a unique field is taken."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field
