"""Organization API endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from orgdir.api.deps import get_current_user, get_organization_service
from orgdir.core.config import get_settings
from orgdir.core.exceptions import OrganizationNotFoundError, OrganizationValidationError
from orgdir.models.organization import Organization
from orgdir.models.user import User
from orgdir.schemas.errors import ErrorResponse
from orgdir.schemas.organization import (
    DomainForm,
    DomainResponse,
    OrganizationForm,
    OrganizationMetadataForm,
    OrganizationMetadataResponse,
    OrganizationResponse,
)
from orgdir.services.authorization import UserAuthorization
from orgdir.services.org_service import OrganizationService

router = APIRouter()
settings = get_settings()


def _validation_failed(exc: OrganizationValidationError) -> HTTPException:
    body = ErrorResponse(
        error="validation_error",
        message="Organization validation failed",
        details=exc.errors,
    )
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=body.model_dump(mode="json"),
    )


async def _visible_organization(
    key: str, current_user: User, service: OrganizationService
) -> Organization:
    try:
        return await service.get_by_key(UserAuthorization(current_user.guid), key)
    except OrganizationNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Organization not found",
        )


async def _administered_organization(
    key: str, current_user: User, service: OrganizationService
) -> Organization:
    organization = await _visible_organization(key, current_user, service)
    if not await service.is_admin(current_user, organization):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only organization administrators can do this",
        )
    return organization


@router.post(
    "",
    response_model=OrganizationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}},
    summary="Create organization",
    description="Creates an organization and makes the caller its administrator.",
)
async def create_organization(
    form: OrganizationForm,
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service),
) -> OrganizationResponse:
    """Create organization with the current user as administrator.

    Raises:
        HTTPException: 422 with every field error if validation fails
    """
    try:
        organization = await service.create(current_user, form)
    except OrganizationValidationError as exc:
        raise _validation_failed(exc)
    return OrganizationResponse.model_validate(organization)


@router.get(
    "",
    response_model=list[OrganizationResponse],
    summary="List organizations visible to the caller",
)
async def list_organizations(
    guid: UUID | None = Query(None),
    user_guid: UUID | None = Query(None, description="Only organizations this user belongs to"),
    service_guid: UUID | None = Query(None, description="Only the owner of this service"),
    key: str | None = Query(None),
    name: str | None = Query(None),
    limit: int = Query(settings.default_page_limit, ge=0, le=settings.max_page_limit),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service),
) -> list[OrganizationResponse]:
    organizations = await service.repository.find_all(
        UserAuthorization(current_user.guid),
        guid=guid,
        user_guid=user_guid,
        service_guid=service_guid,
        key=key,
        name=name,
        limit=limit,
        offset=offset,
    )
    return [OrganizationResponse.model_validate(org) for org in organizations]


@router.get(
    "/by-email-domain",
    response_model=OrganizationResponse,
    summary="Find the organization owning an email's domain",
)
async def get_organization_by_email_domain(
    email: str = Query(..., min_length=3),
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service),
) -> OrganizationResponse:
    organization = await service.repository.find_by_email_domain(email)
    if organization is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No organization owns this email domain",
        )
    return OrganizationResponse.model_validate(organization)


@router.get(
    "/{key}",
    response_model=OrganizationResponse,
    summary="Get organization by key",
)
async def get_organization(
    key: str,
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service),
) -> OrganizationResponse:
    organization = await _visible_organization(key, current_user, service)
    return OrganizationResponse.model_validate(organization)


@router.delete(
    "/{key}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete organization (admin only)",
)
async def delete_organization(
    key: str,
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service),
) -> Response:
    organization = await _administered_organization(key, current_user, service)
    await service.soft_delete(current_user, organization)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{key}/domains",
    response_model=DomainResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}},
    summary="Add a domain (admin only)",
)
async def add_domain(
    key: str,
    form: DomainForm,
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service),
) -> DomainResponse:
    organization = await _administered_organization(key, current_user, service)
    try:
        row = await service.add_domain(current_user, organization, form.domain)
    except OrganizationValidationError as exc:
        raise _validation_failed(exc)
    return DomainResponse.model_validate(row)


@router.delete(
    "/{key}/domains/{domain}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a domain (admin only)",
)
async def remove_domain(
    key: str,
    domain: str,
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service),
) -> Response:
    organization = await _administered_organization(key, current_user, service)
    try:
        await service.remove_domain(current_user, organization, domain)
    except OrganizationNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Domain not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put(
    "/{key}/metadata",
    response_model=OrganizationMetadataResponse | None,
    summary="Replace organization metadata (admin only)",
)
async def update_metadata(
    key: str,
    form: OrganizationMetadataForm,
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service),
) -> OrganizationMetadataResponse | None:
    organization = await _administered_organization(key, current_user, service)
    row = await service.update_metadata(current_user, organization, form)
    if row is None:
        return None
    return OrganizationMetadataResponse.model_validate(row)
