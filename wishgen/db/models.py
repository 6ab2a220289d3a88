"""Database models using SQLModel.

Defines the stored record of a generated message. A record copies the
match result at generation time together with the original prompt, and is
later updated when the user edits the final text.
"""

import datetime
import uuid

from sqlalchemy import JSON, Column, DateTime, Uuid, func
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


# =============================================================================
# Shared Models (for API responses, not database tables)
# =============================================================================


class GeneratedMessageBase(SQLModel):
    """Base generated message fields."""

    user_prompt: str = Field(min_length=1)
    generated_message: str
    template_id: str = Field(max_length=100, index=True)
    template_used: str = Field(max_length=255)
    category: str = Field(max_length=50, index=True)
    is_edited: bool = Field(default=False)
    final_message: str | None = Field(default=None)
    user_id: str | None = Field(default=None, max_length=255, index=True)


# =============================================================================
# Database Models
# =============================================================================


class GeneratedMessage(GeneratedMessageBase, table=True):
    """A message produced from a prompt.

    ``generated_message`` keeps the template text with placeholders;
    ``final_message`` holds the user's edited version, if any.
    """

    __tablename__ = "generated_messages"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(Uuid(as_uuid=True), primary_key=True),
    )
    variables_detected: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    created_at: datetime.datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), server_default=func.now(), index=True),
    )
    updated_at: datetime.datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
        ),
    )


# =============================================================================
# Response Models
# =============================================================================


class GeneratedMessageRead(GeneratedMessageBase):
    """Generated message response model."""

    id: uuid.UUID
    variables_detected: list[str]
    created_at: datetime.datetime
    updated_at: datetime.datetime
