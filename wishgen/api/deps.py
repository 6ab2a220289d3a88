"""Route dependencies.

The catalog and matcher are built once in the lifespan and read from
``app.state``; database sessions are opened per request.
"""

import logging
from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wishgen.core.config import Settings, get_settings
from wishgen.db.session import get_async_session, get_session_maker
from wishgen.interfaces.catalog import BaseTemplateCatalog
from wishgen.interfaces.matcher import BaseTemplateMatcher
from wishgen.services.message_service import MessageService

logger = logging.getLogger(__name__)


def _store_available(settings: Settings) -> bool:
    """Build the engine if needed; False when the database URL is unusable.

    Unknown dialects raise ``NoSuchModuleError``; a missing driver package
    raises ``ImportError``.
    """
    try:
        get_session_maker(settings)
    except (SQLAlchemyError, ImportError) as e:
        logger.warning(f"Message store unavailable: {e}")
        return False
    return True


async def get_db(
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[AsyncSession, None]:
    """Open a session for the duration of one request.

    Raises:
        HTTPException: 503 if no engine can be built for ``database_url``.
    """
    if not _store_available(settings):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Message store unavailable",
        )
    async for session in get_async_session(settings):
        yield session


async def get_optional_db(
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[AsyncSession | None, None]:
    """Like :func:`get_db`, but yields None instead of failing.

    Used where storage is best effort.
    """
    if not _store_available(settings):
        yield None
        return
    async for session in get_async_session(settings):
        yield session


def get_matcher(request: Request) -> BaseTemplateMatcher:
    """Return the matcher created during application startup.

    Raises:
        HTTPException: If the application was started without a matcher.
    """
    matcher: BaseTemplateMatcher | None = getattr(request.app.state, "matcher", None)
    if matcher is None:
        logger.error("Template matcher not initialized")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Template matcher not initialized",
        )
    return matcher


def get_catalog(request: Request) -> BaseTemplateCatalog:
    catalog: BaseTemplateCatalog | None = getattr(request.app.state, "catalog", None)
    if catalog is None:
        logger.error("Template catalog not initialized")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Template catalog not initialized",
        )
    return catalog


def get_message_service(
    matcher: BaseTemplateMatcher = Depends(get_matcher),
    session: AsyncSession = Depends(get_db),
) -> MessageService:
    return MessageService(matcher, session)


def get_generation_service(
    matcher: BaseTemplateMatcher = Depends(get_matcher),
    session: AsyncSession | None = Depends(get_optional_db),
) -> MessageService:
    """Service for generation, which still answers without a message store."""
    return MessageService(matcher, session)


def get_matching_service(
    matcher: BaseTemplateMatcher = Depends(get_matcher),
) -> MessageService:
    """Service that only matches, for routes that never store anything."""
    return MessageService(matcher, None)
