"""Organization service: validation, creation and lifecycle."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from uuid import uuid4

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from orgdir.core import url_key
from orgdir.core.exceptions import (
    OrganizationNotFoundError,
    OrganizationPersistenceError,
    OrganizationValidationError,
    UnvalidatedFormError,
)
from orgdir.core.metrics import observe_organization_create
from orgdir.core.structured_logging import log_json
from orgdir.models.enums import AuditAction, MembershipRole
from orgdir.models.organization import Organization, OrganizationDomain, OrganizationMetadata
from orgdir.models.user import User
from orgdir.schemas.errors import FieldError
from orgdir.schemas.organization import OrganizationForm, OrganizationMetadataForm
from orgdir.services.audit_service import AuditService
from orgdir.services.authorization import AllAuthorization, Authorization
from orgdir.services.membership_service import MembershipService
from orgdir.services.org_repository import OrganizationRepository
from orgdir.services.org_validation import (
    OrganizationValidator,
    ValidationRules,
    duplicate_key_error,
    duplicate_name_error,
    get_validation_rules,
    invalid_domain_error,
    is_domain_valid,
)

logger = logging.getLogger(__name__)


def reverse_domain(domain: str) -> str:
    """Reverse the labels of a domain: ``apidoc.me`` -> ``me.apidoc``."""
    return ".".join(reversed(domain.split(".")))


def resolve_metadata_form(form: OrganizationForm) -> OrganizationMetadataForm:
    """Metadata to persist, defaulting the package name from the first domain."""
    metadata_form = form.metadata or OrganizationMetadataForm()
    if metadata_form.package_name is None and form.domains:
        metadata_form = metadata_form.model_copy(
            update={"package_name": reverse_domain(form.domains[0])}
        )
    return metadata_form


class OrganizationService:
    """Service for creating and managing organizations."""

    def __init__(self, db: AsyncSession, rules: ValidationRules | None = None):
        """Initialize organization service.

        Args:
            db: Database session; write operations commit it
            rules: Validation rules, defaults to the ones built from settings
        """
        self.db = db
        self.repository = OrganizationRepository(db)
        self.validator = OrganizationValidator(self.repository, rules or get_validation_rules())
        self.membership_service = MembershipService(db)
        self.audit_service = AuditService(db)

    async def validate(self, form: OrganizationForm) -> list[FieldError]:
        return await self.validator.validate(form)

    async def create(self, user: User, form: OrganizationForm) -> Organization:
        """Validate the form, then create the organization with ``user`` as admin.

        Raises:
            OrganizationValidationError: form is invalid, or a concurrent
                creation claimed the same name or key
            OrganizationPersistenceError: storage failed; nothing was written
        """
        errors = await self.validate(form)
        if errors:
            observe_organization_create("invalid")
            log_json(
                logger,
                logging.INFO,
                "organization.create_rejected",
                name=form.name,
                codes=[error.code.value for error in errors],
            )
            raise OrganizationValidationError(errors)
        return await self._create(user, form)

    async def create_with_administrator(self, user: User, form: OrganizationForm) -> Organization:
        """Create an organization from a form the caller already validated.

        Raises:
            UnvalidatedFormError: the form does not pass validation
        """
        errors = await self.validate(form)
        if errors:
            raise UnvalidatedFormError("\n".join(error.message for error in errors))
        return await self._create(user, form)

    async def _create(self, user: User, form: OrganizationForm) -> Organization:
        user_guid = user.guid
        key = (form.key if form.key is not None else url_key.generate(form.name)).strip()
        organization = Organization(guid=uuid4(), name=form.name.strip(), key=key)

        try:
            await self.repository.insert(
                user, organization, form.domains, resolve_metadata_form(form)
            )
            await self.membership_service.create(
                created_by_guid=user_guid,
                organization_guid=organization.guid,
                user_guid=user_guid,
                role=MembershipRole.ADMIN,
            )
            await self.audit_service.log(
                organization_guid=organization.guid,
                user_guid=user_guid,
                action=AuditAction.ORG_CREATE,
                message=f"Created organization and joined as {MembershipRole.ADMIN.value}",
            )
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            conflicts = await self._conflict_errors(form.name, key)
            if not conflicts:
                observe_organization_create("failed")
                log_json(logger, logging.ERROR, "organization.create_failed", key=key, error=str(exc))
                raise OrganizationPersistenceError("Organization could not be created") from exc
            observe_organization_create("conflict")
            log_json(
                logger,
                logging.WARNING,
                "organization.create_conflict",
                key=key,
                codes=[error.code.value for error in conflicts],
            )
            raise OrganizationValidationError(conflicts) from exc
        except SQLAlchemyError as exc:
            await self.db.rollback()
            observe_organization_create("failed")
            log_json(logger, logging.ERROR, "organization.create_failed", key=key, error=str(exc))
            raise OrganizationPersistenceError("Organization could not be created") from exc
        except Exception:
            await self.db.rollback()
            raise

        observe_organization_create("created")
        log_json(
            logger,
            logging.INFO,
            "organization.created",
            organization_guid=organization.guid,
            key=organization.key,
            created_by=user_guid,
        )
        return organization

    async def _conflict_errors(self, name: str, key: str) -> list[FieldError]:
        """Explain a uniqueness violation by looking up what now holds the name or key."""
        errors = []
        if await self.repository.find_by_name(AllAuthorization(), name) is not None:
            errors.append(duplicate_name_error())
        if await self.repository.find_by_key(AllAuthorization(), key) is not None:
            errors.append(duplicate_key_error())
        return errors

    @asynccontextmanager
    async def _transaction(self, event: str, **fields):
        try:
            yield
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            log_json(logger, logging.ERROR, f"{event}_failed", error=str(exc), **fields)
            raise OrganizationPersistenceError(f"{event} failed") from exc
        except Exception:
            await self.db.rollback()
            raise
        log_json(logger, logging.INFO, event, **fields)

    async def get_by_key(self, authorization: Authorization, key: str) -> Organization:
        """Get a visible organization by key.

        Raises:
            OrganizationNotFoundError: no visible organization has this key
        """
        organization = await self.repository.find_by_key(authorization, key)
        if organization is None:
            raise OrganizationNotFoundError(f"Organization {key} not found")
        return organization

    async def is_admin(self, user: User, organization: Organization) -> bool:
        return await self.membership_service.has_role(
            organization.guid, user.guid, MembershipRole.ADMIN
        )

    async def soft_delete(self, user: User, organization: Organization) -> None:
        """Soft-delete the organization with its domains and metadata."""
        async with self._transaction(
            "organization.deleted", organization_guid=organization.guid, deleted_by=user.guid
        ):
            await self.repository.soft_delete(user, organization)
            await self.audit_service.log(
                organization_guid=organization.guid,
                user_guid=user.guid,
                action=AuditAction.ORG_DELETE,
                message="Deleted organization",
            )

    async def add_domain(
        self, user: User, organization: Organization, domain: str
    ) -> OrganizationDomain:
        """Attach a domain to the organization; existing domains are returned as-is.

        Raises:
            OrganizationValidationError: domain contains whitespace
        """
        if not is_domain_valid(domain):
            raise OrganizationValidationError([invalid_domain_error(domain)])

        existing = await self.repository.find_domains(
            organization_guid=organization.guid, domain=domain
        )
        if existing:
            return existing[0]

        async with self._transaction(
            "organization.domain_added", organization_guid=organization.guid, domain=domain
        ):
            row = await self.repository.add_domain(user, organization, domain)
            await self.audit_service.log(
                organization_guid=organization.guid,
                user_guid=user.guid,
                action=AuditAction.DOMAIN_CREATE,
                message=f"Added domain {domain}",
            )
        return row

    async def remove_domain(self, user: User, organization: Organization, domain: str) -> None:
        """Soft-delete a domain of the organization.

        Raises:
            OrganizationNotFoundError: the organization does not own the domain
        """
        rows = await self.repository.find_domains(
            organization_guid=organization.guid, domain=domain
        )
        if not rows:
            raise OrganizationNotFoundError(f"Domain {domain} not found")

        async with self._transaction(
            "organization.domain_removed", organization_guid=organization.guid, domain=domain
        ):
            for row in rows:
                await self.repository.soft_delete_domain(user, row)
            await self.audit_service.log(
                organization_guid=organization.guid,
                user_guid=user.guid,
                action=AuditAction.DOMAIN_DELETE,
                message=f"Removed domain {domain}",
            )

    async def update_metadata(
        self,
        user: User,
        organization: Organization,
        form: OrganizationMetadataForm,
    ) -> OrganizationMetadata | None:
        """Replace the organization's metadata row."""
        async with self._transaction(
            "organization.metadata_updated", organization_guid=organization.guid
        ):
            row = await self.repository.replace_metadata(user, organization, form)
            await self.audit_service.log(
                organization_guid=organization.guid,
                user_guid=user.guid,
                action=AuditAction.METADATA_UPDATE,
                message="Updated organization metadata",
            )
        return row
