"""Pydantic schemas for organization forms and responses."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from orgdir.models.enums import Visibility


class OrganizationMetadataForm(BaseModel):
    """Optional metadata supplied when creating or updating an organization.

    The empty form (no visibility, no package name) is never persisted.
    """

    visibility: Visibility | None = None
    package_name: str | None = Field(
        None, max_length=255, description="Default package name, e.g. me.apidoc"
    )


class OrganizationForm(BaseModel):
    """Organization creation form.

    Only types are checked here. Business rules (lengths, key normalization,
    reserved prefixes, uniqueness, domains) are reported by the validator so
    that every problem is returned in one response.
    """

    name: str = Field(..., max_length=255, description="Organization display name")
    key: str | None = Field(
        None, max_length=255, description="URL key; generated from the name when omitted"
    )
    domains: list[str] = Field(default_factory=list, description="Owned internet domains")
    metadata: OrganizationMetadataForm | None = None


class DomainForm(BaseModel):
    domain: str = Field(..., min_length=1, max_length=255, examples=["apidoc.me"])


class DomainResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str = Field(..., validation_alias="domain")


class OrganizationMetadataResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    visibility: Visibility | None = None
    package_name: str | None = None


class OrganizationResponse(BaseModel):
    """Organization as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    guid: UUID = Field(..., description="Organization unique identifier")
    key: str = Field(..., description="URL key")
    name: str = Field(..., description="Organization display name")
    domains: list[DomainResponse] = Field(default_factory=list)
    metadata: OrganizationMetadataResponse | None = Field(
        None, validation_alias="organization_metadata"
    )
    created_at: datetime = Field(..., description="Creation timestamp")
