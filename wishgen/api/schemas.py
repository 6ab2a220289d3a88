"""API request and response schemas.

Pydantic v2 models for API serialization/deserialization.
"""

import datetime
import uuid
from typing import Any

from pydantic import BaseModel, Field, field_validator

from wishgen.db.models import GeneratedMessageBase, GeneratedMessageRead
from wishgen.interfaces.catalog import Category
from wishgen.interfaces.matcher import MatchResult


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


# =============================================================================
# Generation Schemas
# =============================================================================


class GenerateRequest(BaseModel):
    """Request to generate a message from a prompt."""

    prompt: str = Field(description="Free-text description of the message wanted")
    user_id: str | None = Field(
        default=None,
        max_length=255,
        description="Optional caller identifier used to scope history",
    )

    @field_validator("prompt")
    @classmethod
    def prompt_not_blank(cls, v: str) -> str:
        return _strip_required(v)

    model_config = {
        "json_schema_extra": {
            "example": {
                "prompt": "I want to send Diwali wishes to my customers",
                "user_id": "demo-user",
            }
        }
    }


class MatchResponse(BaseModel):
    """Template match without persistence metadata."""

    category: str
    template_id: str
    template_used: str
    generated_message: str
    variables_detected: list[str]

    @classmethod
    def from_match(cls, result: MatchResult) -> "MatchResponse":
        return cls(
            category=result.category.value,
            template_id=result.template_id,
            template_used=result.template_name,
            generated_message=result.content,
            variables_detected=list(result.variables),
        )


class GenerateResponse(MatchResponse):
    """Response for the generate endpoint.

    ``id`` is None when the record could not be stored.
    """

    id: uuid.UUID | None = None
    saved: bool = False
    success: bool = True


class ExampleResult(BaseModel):
    prompt: str
    result: MatchResponse


class ExamplesResponse(BaseModel):
    examples: list[ExampleResult]


# =============================================================================
# Catalog Schemas
# =============================================================================


class CategoryInfo(BaseModel):
    name: str
    display_name: str


class CategoryListResponse(BaseModel):
    categories: list[CategoryInfo]


class TemplateResponse(BaseModel):
    """A catalog template."""

    id: str
    name: str
    category: str
    content: str
    variables: list[str]


# =============================================================================
# Edit & History Schemas
# =============================================================================


class EditRequest(BaseModel):
    """Request to overwrite the final text of a stored message."""

    message_id: uuid.UUID
    edited_message: str

    @field_validator("edited_message")
    @classmethod
    def edited_not_blank(cls, v: str) -> str:
        return _strip_required(v)


class EditResponse(BaseModel):
    success: bool = True
    message: str = "Message updated successfully"


class StatsResponse(BaseModel):
    """Aggregated usage statistics over stored messages."""

    total_messages: int
    edited_messages: int
    category_counts: dict[str, int]
    template_counts: dict[str, int]
    daily_usage: dict[str, int] = Field(description="Messages per UTC day (YYYY-MM-DD)")


# =============================================================================
# Export & Import Schemas
# =============================================================================


class ExportResponse(BaseModel):
    """Stored messages, newest first, in a form /messages/import accepts."""

    exported_at: datetime.datetime
    count: int
    messages: list[GeneratedMessageRead]


class MessageImport(GeneratedMessageBase):
    """One message to restore.

    ``id`` and timestamps are kept when present, generated otherwise.
    """

    id: uuid.UUID | None = None
    variables_detected: list[str] = []
    created_at: datetime.datetime | None = None
    updated_at: datetime.datetime | None = None

    @field_validator("category")
    @classmethod
    def known_category(cls, v: str) -> str:
        return Category(v).value


class ImportRequest(BaseModel):
    messages: list[MessageImport]


class ImportResponse(BaseModel):
    """Outcome of an import. Messages whose id is already stored are skipped."""

    imported: int
    skipped: int


class ClearResponse(BaseModel):
    deleted: int


# =============================================================================
# Error Schemas
# =============================================================================


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str = Field(description="Error message")
    error_code: str | None = Field(default=None, description="Application-specific error code")
    extra: dict[str, Any] | None = Field(default=None, description="Additional error context")
