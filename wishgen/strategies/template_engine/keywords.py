"""Keyword tables for prompt classification.

Single source of truth for trigger words and their priority. Matching is
plain substring containment on the lowercased prompt.
"""

from dataclasses import dataclass

from wishgen.interfaces.catalog import Category

WELCOME_KEYWORDS: tuple[str, ...] = ("welcome", "onboard", "join")
THANK_YOU_KEYWORDS: tuple[str, ...] = ("thank", "appreciate", "grateful")

# Template names the general category selects on explicit intent.
WELCOME_TEMPLATE_MARKER = "Welcome"
THANK_YOU_TEMPLATE_MARKER = "Thank You"


@dataclass(frozen=True)
class KeywordGroup:
    """Keywords that route a prompt to a category."""

    category: Category
    keywords: tuple[str, ...]


# Evaluated top to bottom, first hit wins. Festivals precede courtesy
# intents, courtesy intents precede promotions.
CATEGORY_PRIORITY: tuple[KeywordGroup, ...] = (
    KeywordGroup(Category.DIWALI, ("diwali", "deepavali", "festival of lights")),
    KeywordGroup(Category.CHRISTMAS, ("christmas", "xmas", "festive season")),
    KeywordGroup(Category.BIRTHDAY, ("birthday", "birth day", "special day")),
    KeywordGroup(Category.NEW_YEAR, ("new year", "newyear")),
    KeywordGroup(Category.GENERAL, WELCOME_KEYWORDS),
    KeywordGroup(Category.GENERAL, THANK_YOU_KEYWORDS),
    KeywordGroup(Category.PROMOTION, ("promotion", "discount", "offer", "sale")),
)

DEFAULT_CATEGORY = Category.GENERAL

# Prompt nouns hinting at which placeholders the caller wants filled.
VARIABLE_HINTS: dict[str, tuple[str, ...]] = {
    "name": ("customer", "client", "name"),
    "company_name": ("company", "business", "organization", "team"),
}


def contains_any(text: str, words: tuple[str, ...]) -> bool:
    return any(word in text for word in words)
