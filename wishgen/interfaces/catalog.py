"""Template catalog interfaces.

Defines the template record, the closed category set and the abstract
read-only catalog that the matcher consumes.
"""

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass


class Category(str, enum.Enum):
    """Closed set of message categories.

    Every template belongs to exactly one category. Declaration order is
    the order categories are listed to clients.
    """

    DIWALI = "diwali"
    CHRISTMAS = "christmas"
    BIRTHDAY = "birthday"
    NEW_YEAR = "new_year"
    PROMOTION = "promotion"
    GENERAL = "general"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    Category.DIWALI: "Diwali",
    Category.CHRISTMAS: "Christmas",
    Category.BIRTHDAY: "Birthday",
    Category.NEW_YEAR: "New Year",
    Category.PROMOTION: "Promotion",
    Category.GENERAL: "General",
}


@dataclass(frozen=True)
class Template:
    """An immutable message template.

    Attributes:
        id: Stable identifier, unique across the catalog.
        name: Human readable name (e.g. "Welcome Message").
        category: The category this template belongs to.
        content: Message text with ``{placeholder}`` tokens.
        variables: Placeholder names in first-seen order, no duplicates.
    """

    id: str
    name: str
    category: Category
    content: str
    variables: tuple[str, ...]


class ConfigurationError(Exception):
    """Raised when the template catalog is missing, empty or inconsistent.

    This is fatal at startup: the application must not serve requests
    without a valid catalog.
    """

    pass


class BaseTemplateCatalog(ABC):
    """Abstract read-only mapping from Category to an ordered template list.

    The first template listed for a category is its default.
    """

    @abstractmethod
    def categories(self) -> tuple[Category, ...]:
        """Return the categories present in the catalog."""

    @abstractmethod
    def templates_for(self, category: Category) -> tuple[Template, ...]:
        """Return the ordered templates for a category.

        Args:
            category: The category to look up.

        Returns:
            Templates in authoring order. Never empty for a valid catalog.
        """

    @abstractmethod
    def all_templates(self) -> tuple[Template, ...]:
        """Return every template, grouped by category in category order."""

    @abstractmethod
    def get(self, template_id: str) -> Template | None:
        """Return the template with the given id, or None."""
