"""Validation rules for organization creation forms."""
from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

from orgdir.core import url_key
from orgdir.core.config import get_settings
from orgdir.schemas.errors import FieldError, ValidationErrorCode
from orgdir.schemas.organization import OrganizationForm
from orgdir.services.authorization import AllAuthorization
from orgdir.services.org_repository import OrganizationRepository

RESERVED_WORDS = (
    "_internal_", "account", "admin", "api", "api.json", "accept", "asset", "bucket",
    "code", "confirm", "config", "doc", "documentation", "domain", "email", "generator",
    "internal", "login", "logout", "member", "members", "metadatum", "metadata",
    "org", "password", "private", "reject", "session", "setting", "scms", "source",
    "subaccount", "subscription", "team", "user", "util", "version", "watch",
)

# Only whitespace is rejected; this is not RFC domain validation.
_DOMAIN_RE = re.compile(r"\S+")


def is_domain_valid(domain: str) -> bool:
    return _DOMAIN_RE.fullmatch(domain) is not None


@dataclass(frozen=True)
class ValidationRules:
    """Immutable rule set shared by every validator instance."""

    min_name_length: int
    min_key_length: int
    reserved_keys: tuple[str, ...]

    @classmethod
    def build(
        cls,
        min_name_length: int = 4,
        min_key_length: int = 4,
        reserved_words: tuple[str, ...] = RESERVED_WORDS,
    ) -> ValidationRules:
        """Build rules, normalizing each reserved word through the key generator once."""
        return cls(
            min_name_length=min_name_length,
            min_key_length=min_key_length,
            reserved_keys=tuple(url_key.generate(word) for word in reserved_words),
        )

    def reserved_prefix(self, key: str) -> str | None:
        """First reserved key that prefixes ``key``, in table order."""
        return next((prefix for prefix in self.reserved_keys if key.startswith(prefix)), None)


@lru_cache
def get_validation_rules() -> ValidationRules:
    """Rules built once from settings."""
    settings = get_settings()
    return ValidationRules.build(
        min_name_length=settings.org_name_min_length,
        min_key_length=settings.org_key_min_length,
    )


class OrganizationValidator:
    """Checks organization forms against structural and uniqueness rules."""

    def __init__(self, repository: OrganizationRepository, rules: ValidationRules):
        self.repository = repository
        self.rules = rules

    async def validate(self, form: OrganizationForm) -> list[FieldError]:
        """Validate a creation form.

        Name, key and domain rules are evaluated independently and their
        errors combined. The generated key is only checked when the name
        itself is acceptable.

        Args:
            form: Organization creation form

        Returns:
            Field errors; empty when the form is valid
        """
        name_errors = await self._name_errors(form.name)
        if form.key is None:
            key_errors = [] if name_errors else self._generated_key_errors(form.name)
        else:
            key_errors = await self._explicit_key_errors(form.key)
        return name_errors + key_errors + self._domain_errors(form.domains)

    async def _name_errors(self, name: str) -> list[FieldError]:
        if len(name) < self.rules.min_name_length:
            return [
                FieldError(
                    code=ValidationErrorCode.TOO_SHORT,
                    field="name",
                    message=f"name must be at least {self.rules.min_name_length} characters",
                )
            ]
        if await self.repository.find_by_name(AllAuthorization(), name) is not None:
            return [duplicate_name_error()]
        return []

    def _generated_key_errors(self, name: str) -> list[FieldError]:
        generated = url_key.generate(name)
        if len(generated) < self.rules.min_key_length:
            return [
                FieldError(
                    code=ValidationErrorCode.TOO_SHORT,
                    field="key",
                    message=(
                        f"Key generated from name ({generated!r}) must be at least "
                        f"{self.rules.min_key_length} characters"
                    ),
                )
            ]
        prefix = self.rules.reserved_prefix(generated)
        if prefix is None:
            return []
        return [reserved_prefix_error(prefix)]

    async def _explicit_key_errors(self, key: str) -> list[FieldError]:
        if len(key) < self.rules.min_key_length:
            return [
                FieldError(
                    code=ValidationErrorCode.TOO_SHORT,
                    field="key",
                    message=f"Key must be at least {self.rules.min_key_length} characters",
                )
            ]

        generated = url_key.generate(key)
        if key != generated:
            return [
                FieldError(
                    code=ValidationErrorCode.NOT_NORMALIZED,
                    field="key",
                    message=(
                        "Key must be in all lower case and contain alphanumerics only. "
                        f"A valid key would be: {generated}"
                    ),
                )
            ]

        prefix = self.rules.reserved_prefix(generated)
        if prefix is not None:
            return [reserved_prefix_error(prefix)]

        if await self.repository.find_by_key(AllAuthorization(), key) is not None:
            return [duplicate_key_error()]
        return []

    @staticmethod
    def _domain_errors(domains: list[str]) -> list[FieldError]:
        return [invalid_domain_error(domain) for domain in domains if not is_domain_valid(domain)]


def duplicate_name_error() -> FieldError:
    return FieldError(
        code=ValidationErrorCode.DUPLICATE_NAME,
        field="name",
        message="Org with this name already exists",
    )


def duplicate_key_error() -> FieldError:
    return FieldError(
        code=ValidationErrorCode.DUPLICATE_KEY,
        field="key",
        message="Org with this key already exists",
    )


def reserved_prefix_error(prefix: str) -> FieldError:
    return FieldError(
        code=ValidationErrorCode.RESERVED_PREFIX,
        field="key",
        message=f"Prefix {prefix} is a reserved word and cannot be used for the key of an organization",
    )


def invalid_domain_error(domain: str) -> FieldError:
    return FieldError(
        code=ValidationErrorCode.INVALID_DOMAIN,
        field="domains",
        message=f"Domain {domain} is not valid. Expected a domain name like apidoc.me",
    )
