"""Database models and session management."""

from wishgen.db.models import GeneratedMessage, GeneratedMessageRead
from wishgen.db.session import (
    AsyncSession,
    close_db,
    create_all_tables,
    drop_all_tables,
    get_async_session,
    init_db,
)

__all__ = [
    # Models
    "GeneratedMessage",
    "GeneratedMessageRead",
    # Session
    "AsyncSession",
    "get_async_session",
    "create_all_tables",
    "drop_all_tables",
    "init_db",
    "close_db",
]
