"""Error schemas shared by the services and the API."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ValidationErrorCode(str, Enum):
    """Reasons an organization form can be rejected."""

    TOO_SHORT = "too_short"
    DUPLICATE_NAME = "duplicate_name"
    DUPLICATE_KEY = "duplicate_key"
    NOT_NORMALIZED = "not_normalized"
    RESERVED_PREFIX = "reserved_prefix"
    INVALID_DOMAIN = "invalid_domain"


class FieldError(BaseModel):
    """Single validation failure tied to a form field."""

    model_config = ConfigDict(frozen=True)

    code: ValidationErrorCode = Field(..., description="Machine readable error code")
    field: str = Field(..., description="Form field the error refers to", examples=["key"])
    message: str = Field(..., description="Human-readable error message")


class ErrorResponse(BaseModel):
    """Standard error response body for 4xx responses."""

    error: str = Field(
        ...,
        description="Error type identifier",
        examples=["validation_error", "not_found", "permission_denied"],
    )
    message: str = Field(..., description="Human-readable error message")
    details: list[FieldError] | None = Field(
        None, description="Field errors when error is validation_error"
    )
