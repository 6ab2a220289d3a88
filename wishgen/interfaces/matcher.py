"""Prompt matching interfaces."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from wishgen.interfaces.catalog import Category


@dataclass(frozen=True)
class MatchResult:
    """Outcome of matching one prompt against the catalog.

    ``content`` keeps its ``{placeholder}`` tokens; filling them in is left
    to whoever presents the message.
    """

    category: Category
    template_id: str
    template_name: str
    content: str
    variables: tuple[str, ...]


class BaseTemplateMatcher(ABC):
    """Abstract base class for prompt-to-template matching strategies."""

    @abstractmethod
    def match(self, prompt: str) -> MatchResult:
        """Pick a category and template for a free-text prompt.

        Args:
            prompt: Arbitrary user text. Callers reject empty prompts.

        Returns:
            A fully populated MatchResult. Implementations fall back to a
            default template rather than raising.
        """
