"""Message generation service.

Runs the matcher and hands its result to the database. Matching never
depends on storage: when a save fails, or no store is configured at all,
the caller still gets the message, just without an id.
"""

import datetime
import logging
import uuid
from collections import Counter
from collections.abc import Iterable

from sqlalchemy import Select, or_, select
from sqlalchemy import delete as sa_delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wishgen.api.schemas import (
    ExampleResult,
    GenerateResponse,
    MatchResponse,
    MessageImport,
    StatsResponse,
)
from wishgen.core.logging_config import get_logger
from wishgen.db.models import GeneratedMessage
from wishgen.interfaces.matcher import BaseTemplateMatcher

logger = logging.getLogger(__name__)
events = get_logger(__name__)

EXAMPLE_PROMPTS: tuple[str, ...] = (
    "I want to send Diwali wishes to my customers",
    "Generate a Christmas greeting for my business clients",
    "Create a birthday message for our valued customer",
    "I need a thank you message for my customers",
    "Generate a welcome message for new customers",
)


def as_utc(value: datetime.datetime) -> datetime.datetime:
    # Naive bounds are read as UTC, the zone timestamps are stored in.
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)


class MessageService:
    """Generate, store and review greeting messages.

    ``session`` may be None for callers that only match; every operation
    other than :meth:`generate` and :meth:`examples` needs a session.
    """

    def __init__(self, matcher: BaseTemplateMatcher, session: AsyncSession | None) -> None:
        self._matcher = matcher
        self._session = session

    @property
    def session(self) -> AsyncSession:
        if self._session is None:
            raise RuntimeError("MessageService has no database session")
        return self._session

    async def generate(self, prompt: str, user_id: str | None = None) -> GenerateResponse:
        """Match a prompt and store the result, best effort.

        Args:
            prompt: Validated, non-empty prompt.
            user_id: Optional caller identifier.

        Returns:
            GenerateResponse. ``saved`` is False and ``id`` None when there
            is no session or the database write failed.
        """
        result = self._matcher.match(prompt)
        response = GenerateResponse(**MatchResponse.from_match(result).model_dump())

        if self._session is None:
            logger.warning("No message store, returning unsaved message")
        else:
            record = GeneratedMessage(
                user_prompt=prompt,
                generated_message=result.content,
                template_id=result.template_id,
                template_used=result.template_name,
                category=result.category.value,
                variables_detected=list(result.variables),
                user_id=user_id,
            )
            try:
                self._session.add(record)
                await self._session.commit()
            except (SQLAlchemyError, OSError) as e:
                logger.warning(f"Could not save generated message: {e}")
                await self._safe_rollback()
            else:
                response.id = record.id
                response.saved = True

        events.info(
            "message_generated",
            category=response.category,
            template_id=response.template_id,
            saved=response.saved,
        )
        return response

    async def edit(self, message_id: uuid.UUID, edited_message: str) -> bool:
        """Overwrite the final text of a stored message.

        Returns:
            True if the message existed and was updated.
        """
        message = await self.session.get(GeneratedMessage, message_id)
        if message is None:
            return False

        message.final_message = edited_message
        message.is_edited = True
        message.updated_at = datetime.datetime.now(datetime.timezone.utc)
        await self.session.commit()

        logger.info(f"Message edited: {message_id}")
        return True

    def _filtered(
        self,
        user_id: str | None = None,
        category: str | None = None,
        search: str | None = None,
        start: datetime.datetime | None = None,
        end: datetime.datetime | None = None,
    ) -> Select:
        statement = select(GeneratedMessage)
        if user_id:
            statement = statement.where(GeneratedMessage.user_id == user_id)
        if category:
            statement = statement.where(GeneratedMessage.category == category)
        if search:
            statement = statement.where(
                or_(
                    GeneratedMessage.user_prompt.icontains(search, autoescape=True),
                    GeneratedMessage.generated_message.icontains(search, autoescape=True),
                    GeneratedMessage.category.icontains(search, autoescape=True),
                    GeneratedMessage.template_used.icontains(search, autoescape=True),
                )
            )
        if start is not None:
            statement = statement.where(GeneratedMessage.created_at >= as_utc(start))
        if end is not None:
            statement = statement.where(GeneratedMessage.created_at <= as_utc(end))
        return statement.order_by(GeneratedMessage.created_at.desc())

    async def history(
        self,
        user_id: str | None = None,
        category: str | None = None,
        search: str | None = None,
        limit: int = 50,
        start: datetime.datetime | None = None,
        end: datetime.datetime | None = None,
    ) -> list[GeneratedMessage]:
        """Return stored messages, newest first.

        Args:
            user_id: Only messages of this user.
            category: Only messages of this category.
            search: Case-insensitive substring matched against prompt,
                message, category and template name.
            limit: Maximum number of records.
            start: Only messages created at or after this instant.
            end: Only messages created at or before this instant.
        """
        statement = self._filtered(user_id, category, search, start, end).limit(limit)
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def export(self, user_id: str | None = None) -> list[GeneratedMessage]:
        """Return every stored message (of one user, if given), newest first."""
        result = await self.session.execute(self._filtered(user_id=user_id))
        return list(result.scalars().all())

    async def import_messages(self, messages: Iterable[MessageImport]) -> tuple[int, int]:
        """Store exported messages again.

        Messages whose id is already stored, or repeated in the batch, are
        skipped. Everything is committed at once.

        Returns:
            ``(imported, skipped)`` counts.
        """
        imported = skipped = 0
        seen: set[uuid.UUID] = set()

        for item in messages:
            if item.id is not None:
                if item.id in seen or await self.session.get(GeneratedMessage, item.id):
                    skipped += 1
                    continue
                seen.add(item.id)

            self.session.add(GeneratedMessage(**item.model_dump(exclude_none=True)))
            imported += 1

        await self.session.commit()
        logger.info(f"Imported {imported} messages, skipped {skipped}")
        return imported, skipped

    async def delete(self, message_id: uuid.UUID) -> bool:
        message = await self.session.get(GeneratedMessage, message_id)
        if message is None:
            return False

        await self.session.delete(message)
        await self.session.commit()

        logger.info(f"Message deleted: {message_id}")
        return True

    async def clear(self, user_id: str | None = None) -> int:
        """Delete all stored messages, or all of one user.

        Returns:
            Number of deleted messages.
        """
        statement = sa_delete(GeneratedMessage)
        if user_id:
            statement = statement.where(GeneratedMessage.user_id == user_id)

        result = await self.session.execute(statement)
        await self.session.commit()

        logger.warning(f"Cleared {result.rowcount} messages (user_id={user_id!r})")
        return result.rowcount

    async def stats(self, user_id: str | None = None) -> StatsResponse:
        """Aggregate counts per category, template and day."""
        statement = select(
            GeneratedMessage.category,
            GeneratedMessage.template_used,
            GeneratedMessage.is_edited,
            GeneratedMessage.created_at,
        )
        if user_id:
            statement = statement.where(GeneratedMessage.user_id == user_id)

        rows = (await self.session.execute(statement)).all()

        categories: Counter[str] = Counter()
        templates: Counter[str] = Counter()
        days: Counter[str] = Counter()
        edited = 0
        for category, template_used, is_edited, created_at in rows:
            categories[category] += 1
            templates[template_used] += 1
            days[created_at.date().isoformat()] += 1
            if is_edited:
                edited += 1

        return StatsResponse(
            total_messages=len(rows),
            edited_messages=edited,
            category_counts=dict(categories.most_common()),
            template_counts=dict(templates.most_common()),
            daily_usage=dict(sorted(days.items())),
        )

    def examples(self) -> list[ExampleResult]:
        """Match the demo prompts without storing anything."""
        return [
            ExampleResult(
                prompt=prompt,
                result=MatchResponse.from_match(self._matcher.match(prompt)),
            )
            for prompt in EXAMPLE_PROMPTS
        ]

    async def _safe_rollback(self) -> None:
        try:
            await self.session.rollback()
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Rollback failed: {e}", exc_info=True)
