"""Integration tests for organization creation and lifecycle.

Covers the transactional create (organization, domains, metadata, admin
membership, audit entry), translation of storage conflicts into validation
errors, and the soft-delete, domain and metadata operations.
"""
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from orgdir.core.exceptions import (
    OrganizationNotFoundError,
    OrganizationPersistenceError,
    OrganizationValidationError,
    UnvalidatedFormError,
)
from orgdir.models.audit_event import AuditEvent
from orgdir.models.enums import AuditAction, MembershipRole, Visibility
from orgdir.models.membership import Membership
from orgdir.models.organization import Organization, OrganizationDomain, OrganizationMetadata
from orgdir.schemas.errors import ValidationErrorCode
from orgdir.schemas.organization import OrganizationMetadataForm
from orgdir.services.authorization import AllAuthorization
from orgdir.services.org_service import OrganizationService


async def count(db, model, *criteria):
    result = await db.execute(select(func.count()).select_from(model).where(*criteria))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_create_organization_complete_flow(service, db, user, make_form):
    """Gilt Group: generated key, default package name, admin membership, audit entry."""
    organization = await service.create(user, make_form(domains=["gilt.com"]))

    assert organization.name == "Gilt Group"
    assert organization.key == "gilt-group"
    assert [row.domain for row in organization.domains] == ["gilt.com"]
    assert organization.organization_metadata.package_name == "com.gilt"

    memberships = await service.membership_service.find_all(organization_guid=organization.guid)
    assert [(m.user_guid, m.role) for m in memberships] == [(user.guid, MembershipRole.ADMIN)]
    assert await service.is_admin(user, organization)

    events = await service.audit_service.list_for_organization(organization.guid)
    assert len(events) == 1
    assert events[0].action == AuditAction.ORG_CREATE
    assert events[0].user_guid == user.guid
    assert events[0].message == "Created organization and joined as admin"

    with pytest.raises(OrganizationValidationError) as exc_info:
        await service.create(user, make_form())
    assert [e.code for e in exc_info.value.errors] == [ValidationErrorCode.DUPLICATE_NAME]


@pytest.mark.asyncio
async def test_create_trims_name_and_package_name(service, user, make_form):
    organization = await service.create(
        user,
        make_form(
            name="  Gilt Group  ",
            domains=["gilt.com"],
            metadata=OrganizationMetadataForm(package_name="  com.gilt.api "),
        ),
    )

    assert organization.name == "Gilt Group"
    assert organization.organization_metadata.package_name == "com.gilt.api"


@pytest.mark.asyncio
async def test_create_uses_first_domain_for_package_name(service, user, make_form):
    organization = await service.create(user, make_form(domains=["apidoc.me", "gilt.com"]))

    assert organization.organization_metadata.package_name == "me.apidoc"


@pytest.mark.asyncio
async def test_empty_metadata_is_not_persisted(service, db, user, make_form):
    organization = await service.create(user, make_form(key="gilt"))

    assert organization.key == "gilt"
    assert organization.organization_metadata is None
    assert await count(db, OrganizationMetadata) == 0


@pytest.mark.asyncio
async def test_create_with_explicit_visibility(service, user, make_form):
    organization = await service.create(
        user, make_form(metadata=OrganizationMetadataForm(visibility=Visibility.PUBLIC))
    )

    assert organization.organization_metadata.visibility == Visibility.PUBLIC
    assert organization.organization_metadata.package_name is None


@pytest.mark.asyncio
async def test_create_reports_all_errors(service, user, make_form):
    with pytest.raises(OrganizationValidationError) as exc_info:
        await service.create(user, make_form(name="abc", domains=["bad domain"]))

    assert [e.code for e in exc_info.value.errors] == [
        ValidationErrorCode.TOO_SHORT,
        ValidationErrorCode.INVALID_DOMAIN,
    ]


@pytest.mark.asyncio
async def test_create_with_administrator_rejects_unvalidated_form(service, db, user, make_form):
    with pytest.raises(UnvalidatedFormError):
        await service.create_with_administrator(user, make_form(key="Not Normalized"))

    assert await count(db, Organization) == 0


@pytest.mark.asyncio
async def test_create_with_administrator(service, user, make_form):
    organization = await service.create_with_administrator(user, make_form())

    assert organization.key == "gilt-group"


@pytest.mark.asyncio
async def test_side_effect_failure_rolls_back_everything(
    session_factory, rules, user, make_form
):
    async with session_factory() as session:
        service = OrganizationService(session, rules)
        service.audit_service.log = AsyncMock(side_effect=SQLAlchemyError("audit insert failed"))

        with pytest.raises(OrganizationPersistenceError):
            await service.create(user, make_form(domains=["gilt.com"]))

    async with session_factory() as session:
        assert await count(session, Organization) == 0
        assert await count(session, OrganizationDomain) == 0
        assert await count(session, OrganizationMetadata) == 0
        assert await count(session, Membership) == 0


@pytest.mark.asyncio
async def test_commit_time_key_conflict_is_reported_as_duplicate_key(
    service, session_factory, rules, user, make_form
):
    await service.create(user, make_form(key="gilt-group"))

    async with session_factory() as session:
        racer = OrganizationService(session, rules)
        # Simulate a creation that passed its pre-check before the first commit
        racer.validator.validate = AsyncMock(return_value=[])

        with pytest.raises(OrganizationValidationError) as exc_info:
            await racer.create(user, make_form(name="Gilt Holdings", key="gilt-group"))

    assert [e.code for e in exc_info.value.errors] == [ValidationErrorCode.DUPLICATE_KEY]


@pytest.mark.asyncio
async def test_commit_time_name_conflict_is_reported_as_duplicate_name(
    service, session_factory, rules, user, make_form
):
    await service.create(user, make_form(key="gilt-group"))

    async with session_factory() as session:
        racer = OrganizationService(session, rules)
        racer.validator.validate = AsyncMock(return_value=[])

        with pytest.raises(OrganizationValidationError) as exc_info:
            await racer.create(user, make_form(name="GILT GROUP ", key="gilt-inc"))

    assert [e.code for e in exc_info.value.errors] == [ValidationErrorCode.DUPLICATE_NAME]


@pytest.mark.asyncio
async def test_creations_validated_before_either_commits(
    session_factory, rules, user, other_user, make_form
):
    first_form = make_form(name="Gilt Group", key="gilt-group")
    second_form = make_form(name="Gilt Holdings", key="gilt-group")

    async with session_factory() as first_session, session_factory() as second_session:
        first = OrganizationService(first_session, rules)
        second = OrganizationService(second_session, rules)

        # Both pre-checks run before anything is written
        assert await first.validate(first_form) == []
        assert await second.validate(second_form) == []
        first.validator.validate = AsyncMock(return_value=[])
        second.validator.validate = AsyncMock(return_value=[])

        created = await first.create(user, first_form)
        with pytest.raises(OrganizationValidationError) as exc_info:
            await second.create(other_user, second_form)

    assert created.key == "gilt-group"
    assert [e.code for e in exc_info.value.errors] == [ValidationErrorCode.DUPLICATE_KEY]

    async with session_factory() as session:
        assert await count(session, Organization) == 1


@pytest.mark.asyncio
async def test_get_by_key_raises_when_missing(service):
    with pytest.raises(OrganizationNotFoundError):
        await service.get_by_key(AllAuthorization(), "missing")


@pytest.mark.asyncio
async def test_soft_delete_cascades_to_domains_and_metadata(service, db, user, make_form):
    organization = await service.create(user, make_form(domains=["gilt.com"]))

    await service.soft_delete(user, organization)

    assert organization.deleted_at is not None
    assert organization.deleted_by_guid == user.guid
    assert await count(db, OrganizationDomain, OrganizationDomain.deleted_at.is_(None)) == 0
    assert await count(db, OrganizationMetadata, OrganizationMetadata.deleted_at.is_(None)) == 0
    # memberships are not owned by the organization
    assert await count(db, Membership, Membership.deleted_at.is_(None)) == 1
    assert await count(db, AuditEvent, AuditEvent.action == AuditAction.ORG_DELETE) == 1


@pytest.mark.asyncio
async def test_add_and_remove_domain(service, user, make_form):
    organization = await service.create(user, make_form(domains=["gilt.com"]))

    row = await service.add_domain(user, organization, "apidoc.me")
    again = await service.add_domain(user, organization, "apidoc.me")
    assert again.guid == row.guid
    assert (await service.repository.find_by_email_domain("bob@apidoc.me")).guid == organization.guid

    await service.remove_domain(user, organization, "apidoc.me")

    assert await service.repository.find_by_email_domain("bob@apidoc.me") is None
    reloaded = await service.get_by_key(AllAuthorization(), "gilt-group")
    assert [d.domain for d in reloaded.domains] == ["gilt.com"]

    with pytest.raises(OrganizationNotFoundError):
        await service.remove_domain(user, organization, "apidoc.me")


@pytest.mark.asyncio
async def test_add_domain_rejects_whitespace(service, user, make_form):
    organization = await service.create(user, make_form())

    with pytest.raises(OrganizationValidationError) as exc_info:
        await service.add_domain(user, organization, "gilt com")

    assert [e.code for e in exc_info.value.errors] == [ValidationErrorCode.INVALID_DOMAIN]


@pytest.mark.asyncio
async def test_update_metadata_replaces_previous_row(service, db, user, make_form):
    organization = await service.create(user, make_form(domains=["gilt.com"]))

    row = await service.update_metadata(
        user,
        organization,
        OrganizationMetadataForm(visibility=Visibility.PUBLIC, package_name="com.gilt.v2"),
    )

    assert row.package_name == "com.gilt.v2"
    assert await count(db, OrganizationMetadata) == 2
    assert await count(db, OrganizationMetadata, OrganizationMetadata.deleted_at.is_(None)) == 1

    reloaded = await service.get_by_key(AllAuthorization(), "gilt-group")
    assert reloaded.organization_metadata.visibility == Visibility.PUBLIC

    assert await service.update_metadata(user, organization, OrganizationMetadataForm()) is None
    reloaded = await service.get_by_key(AllAuthorization(), "gilt-group")
    assert reloaded.organization_metadata is None
