"""Application services."""

from wishgen.services.message_service import EXAMPLE_PROMPTS, MessageService

__all__ = [
    "EXAMPLE_PROMPTS",
    "MessageService",
]
