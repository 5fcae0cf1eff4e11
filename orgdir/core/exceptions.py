"""Domain exceptions raised by the organization services."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from orgdir.schemas.errors import FieldError


class OrganizationError(Exception):
    """Base class for organization errors."""


class OrganizationValidationError(OrganizationError):
    """Raised when an organization form fails validation.

    Carries every field error found so callers can report them all at once.
    Storage uniqueness conflicts detected at commit time are reported through
    this exception as well.
    """

    def __init__(self, errors: list[FieldError]):
        self.errors = list(errors)
        super().__init__("; ".join(error.message for error in self.errors))


class OrganizationNotFoundError(OrganizationError):
    """Raised when a lookup matches no visible organization."""


class OrganizationPersistenceError(OrganizationError):
    """Raised when storage fails during a write; the transaction was rolled back."""


class UnvalidatedFormError(AssertionError):
    """Raised when an entry point that requires validated input gets an invalid form."""
