"""Template catalog strategy.

Holds the built-in greeting templates and loads alternative catalogs from
JSON. Catalogs are validated once at construction and never mutated.
"""

import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from types import MappingProxyType

from pydantic import BaseModel, Field, ValidationError

from wishgen.interfaces.catalog import (
    BaseTemplateCatalog,
    Category,
    ConfigurationError,
    Template,
)
from wishgen.strategies.template_engine.variables import extract_variables

logger = logging.getLogger(__name__)


def make_template(
    template_id: str,
    name: str,
    category: Category,
    content: str,
    variables: Iterable[str] | None = None,
) -> Template:
    """Build a Template whose variables agree with its content.

    Args:
        template_id: Unique template id.
        name: Display name.
        category: Owning category.
        content: Template text with ``{placeholder}`` tokens.
        variables: Declared variables. Derived from content when omitted.

    Returns:
        The immutable Template.

    Raises:
        ConfigurationError: If declared variables differ from the
            placeholders found in the content.
    """
    derived = tuple(extract_variables(content))
    if variables is not None:
        declared = tuple(variables)
        if declared != derived:
            raise ConfigurationError(
                f"Template '{template_id}' declares variables {list(declared)} "
                f"but its content uses {list(derived)}"
            )
    return Template(
        id=template_id,
        name=name,
        category=category,
        content=content,
        variables=derived,
    )


class StaticTemplateCatalog(BaseTemplateCatalog):
    """In-memory, read-only template catalog.

    Every category of the closed set must have at least one template so
    the matcher's default fallback is always defined.
    """

    def __init__(self, templates: Mapping[Category, Iterable[Template]]) -> None:
        """Validate and freeze the catalog.

        Args:
            templates: Ordered templates keyed by category.

        Raises:
            ConfigurationError: If the catalog is empty, a category has no
                templates, a template sits under the wrong category, or
                template ids collide.
        """
        frozen = {category: tuple(items) for category, items in templates.items()}

        if not any(frozen.values()):
            raise ConfigurationError("Template catalog is empty")

        missing = [c.value for c in Category if not frozen.get(c)]
        if missing:
            raise ConfigurationError(
                f"Template catalog has no templates for: {', '.join(missing)}"
            )

        by_id: dict[str, Template] = {}
        for category, items in frozen.items():
            for template in items:
                if template.category is not category:
                    raise ConfigurationError(
                        f"Template '{template.id}' has category "
                        f"'{template.category.value}' but is listed under '{category.value}'"
                    )
                if template.id in by_id:
                    raise ConfigurationError(f"Duplicate template id: '{template.id}'")
                by_id[template.id] = template

        self._templates = MappingProxyType(
            {category: frozen[category] for category in Category}
        )
        self._by_id = MappingProxyType(by_id)

        logger.info(
            f"Template catalog ready: {len(by_id)} templates "
            f"in {len(self._templates)} categories"
        )

    def categories(self) -> tuple[Category, ...]:
        return tuple(self._templates)

    def templates_for(self, category: Category) -> tuple[Template, ...]:
        return self._templates[category]

    def all_templates(self) -> tuple[Template, ...]:
        return tuple(t for items in self._templates.values() for t in items)

    def get(self, template_id: str) -> Template | None:
        return self._by_id.get(template_id)

    def __len__(self) -> int:
        return len(self._by_id)


# =============================================================================
# Built-in Templates
# =============================================================================

_BUILTIN_TEMPLATES: tuple[tuple[str, str, Category, str], ...] = (
    (
        "diwali-business-greeting",
        "Diwali Business Greeting",
        Category.DIWALI,
        "Hello {name}, Wishing you a very Happy Diwali! May this festival of lights "
        "bring prosperity and joy to you and your family. {company_name} wishes you the best!",
    ),
    (
        "diwali-customer-wishes",
        "Diwali Customer Wishes",
        Category.DIWALI,
        "Dear {name}, Diwali greetings from all of us at {company_name}! May your life "
        "be filled with happiness, wealth, and success. Happy Diwali!",
    ),
    (
        "diwali-simple-greeting",
        "Simple Diwali Greeting",
        Category.DIWALI,
        "Hello {name}, Diwali greetings! We wish you the best holiday. Namaste!",
    ),
    (
        "christmas-business-greeting",
        "Christmas Business Greeting",
        Category.CHRISTMAS,
        "Dear {name}, Merry Christmas and Happy New Year! May this festive season bring "
        "you joy, peace, and prosperity. Best regards from {company_name}.",
    ),
    (
        "christmas-customer-wishes",
        "Christmas Customer Wishes",
        Category.CHRISTMAS,
        "Hello {name}, Wishing you a Merry Christmas filled with love, laughter, and "
        "wonderful memories. Thank you for being a valued customer!",
    ),
    (
        "birthday-business-greeting",
        "Birthday Business Greeting",
        Category.BIRTHDAY,
        "Happy Birthday, {name}! Hope your special day is filled with happiness, laughter, "
        "and wonderful surprises. Best wishes from all of us at {company_name}!",
    ),
    (
        "birthday-simple-wish",
        "Simple Birthday Wish",
        Category.BIRTHDAY,
        "Happy Birthday, {name}! Wishing you a fantastic year ahead filled with success "
        "and happiness!",
    ),
    (
        "new-year-business-greeting",
        "New Year Business Greeting",
        Category.NEW_YEAR,
        "Dear {name}, Happy New Year! May this year bring you new opportunities, success, "
        "and happiness. Thank you for your continued support. Best regards, {company_name}.",
    ),
    (
        "promotion-special-offer",
        "Special Promotion",
        Category.PROMOTION,
        "Exciting news {name}! Don't miss {promotion_name} from {company_name}: get "
        "{discount}% off on {product_category}. Limited time offer!",
    ),
    (
        "promotion-customer-discount",
        "Customer Discount",
        Category.PROMOTION,
        "Hello {name}, as a thank you for being with us, enjoy {discount}% off your next "
        "purchase. See you soon!",
    ),
    (
        "general-thank-you",
        "Thank You Message",
        Category.GENERAL,
        "Dear {name}, Thank you for your business and support. We appreciate your trust "
        "in {company_name} and look forward to serving you better.",
    ),
    (
        "general-welcome",
        "Welcome Message",
        Category.GENERAL,
        "Hello {name}, Welcome to {company_name}! We're excited to have you on board. "
        "If you have any questions, please don't hesitate to reach out.",
    ),
)


def default_catalog() -> StaticTemplateCatalog:
    """Build the catalog of built-in templates."""
    grouped: dict[Category, list[Template]] = {category: [] for category in Category}
    for template_id, name, category, content in _BUILTIN_TEMPLATES:
        grouped[category].append(make_template(template_id, name, category, content))
    return StaticTemplateCatalog(grouped)


# =============================================================================
# JSON Catalog Files
# =============================================================================


class TemplateEntry(BaseModel):
    """One template as written in a catalog file."""

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    category: Category
    content: str
    variables: list[str] | None = None


class CatalogFile(BaseModel):
    """Top-level structure of a catalog file."""

    templates: list[TemplateEntry]


def load_catalog(path: str | Path) -> StaticTemplateCatalog:
    """Load a template catalog from a JSON file.

    The file has the shape ``{"templates": [{"id", "name", "category",
    "content", "variables"?}, ...]}``. Templates keep file order within
    their category.

    Args:
        path: Path to the JSON file.

    Returns:
        The validated catalog.

    Raises:
        ConfigurationError: If the file is missing, unreadable, malformed
            or describes an invalid catalog.
    """
    path = Path(path)
    logger.info(f"Loading template catalog from {path}")

    if not path.is_file():
        raise ConfigurationError(f"Template catalog not found: {path}")

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        parsed = CatalogFile.model_validate(raw)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read template catalog {path}: {e}") from e
    except ValidationError as e:
        raise ConfigurationError(f"Invalid template catalog {path}: {e}") from e

    grouped: dict[Category, list[Template]] = {}
    for entry in parsed.templates:
        grouped.setdefault(entry.category, []).append(
            make_template(
                entry.id,
                entry.name,
                entry.category,
                entry.content,
                entry.variables,
            )
        )

    return StaticTemplateCatalog(grouped)
