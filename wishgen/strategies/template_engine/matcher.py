"""Keyword template matcher.

Routes a free-text prompt to a category by prioritized keyword groups,
then picks a template inside that category from explicit intent words or
from the placeholders the prompt appears to ask for.
"""

import logging

from wishgen.interfaces.catalog import BaseTemplateCatalog, Category, Template
from wishgen.interfaces.matcher import BaseTemplateMatcher, MatchResult
from wishgen.strategies.template_engine.keywords import (
    CATEGORY_PRIORITY,
    DEFAULT_CATEGORY,
    THANK_YOU_KEYWORDS,
    THANK_YOU_TEMPLATE_MARKER,
    VARIABLE_HINTS,
    WELCOME_KEYWORDS,
    WELCOME_TEMPLATE_MARKER,
    contains_any,
)
from wishgen.strategies.template_engine.variables import covers_hints

logger = logging.getLogger(__name__)


def normalize_prompt(prompt: str) -> str:
    return prompt.lower()


def detect_category(text: str) -> Category:
    """Return the category of the first keyword group hit by ``text``.

    Args:
        text: Normalized (lowercased) prompt.

    Returns:
        The matched category, or the general category when nothing hits.
    """
    for group in CATEGORY_PRIORITY:
        if contains_any(text, group.keywords):
            return group.category
    return DEFAULT_CATEGORY


def infer_variable_hints(text: str) -> list[str]:
    """Return the placeholder names the prompt seems to want, in table order."""
    return [
        variable
        for variable, nouns in VARIABLE_HINTS.items()
        if contains_any(text, nouns)
    ]


def _find_by_name(templates: tuple[Template, ...], marker: str) -> Template | None:
    for template in templates:
        if marker in template.name:
            return template
    return None


def select_intent_template(text: str, templates: tuple[Template, ...]) -> Template | None:
    """Pick the welcome or thank-you template on explicit intent words.

    Welcome words are checked first. Returns None when no intent word is
    present or the named template is not in the list.
    """
    if contains_any(text, WELCOME_KEYWORDS):
        return _find_by_name(templates, WELCOME_TEMPLATE_MARKER)
    if contains_any(text, THANK_YOU_KEYWORDS):
        return _find_by_name(templates, THANK_YOU_TEMPLATE_MARKER)
    return None


def select_by_hints(templates: tuple[Template, ...], hints: list[str]) -> Template:
    """Return the first template covering ``hints``, else the first template."""
    for template in templates:
        if covers_hints(template, hints):
            return template
    return templates[0]


class KeywordTemplateMatcher(BaseTemplateMatcher):
    """Deterministic keyword matcher over an injected catalog.

    Holds no state besides the catalog reference, so a single instance can
    serve any number of concurrent requests.
    """

    def __init__(self, catalog: BaseTemplateCatalog) -> None:
        self._catalog = catalog

    @property
    def catalog(self) -> BaseTemplateCatalog:
        return self._catalog

    def match(self, prompt: str) -> MatchResult:
        """Match a prompt to a category and template.

        Args:
            prompt: Free text from the user.

        Returns:
            MatchResult with the template content left unfilled.
        """
        text = normalize_prompt(prompt)
        category = detect_category(text)
        hints = infer_variable_hints(text)
        templates = self._catalog.templates_for(category)

        template = None
        if category is Category.GENERAL:
            template = select_intent_template(text, templates)
        if template is None:
            template = select_by_hints(templates, hints)

        logger.debug(
            f"Matched prompt to {category.value}/{template.id} (hints={hints})"
        )

        return MatchResult(
            category=category,
            template_id=template.id,
            template_name=template.name,
            content=template.content,
            variables=template.variables,
        )
