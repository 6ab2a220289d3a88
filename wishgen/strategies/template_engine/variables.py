"""Placeholder scanning helpers.

Templates mark substitution slots as ``{variable_name}``. These helpers
derive the declared variable list from template content and test whether
a template offers the slots a prompt seems to ask for.
"""

import re
from collections.abc import Iterable

from wishgen.interfaces.catalog import Template

PLACEHOLDER_PATTERN = re.compile(r"\{([^{}]+)\}")


def extract_variables(content: str) -> list[str]:
    """Return placeholder names in first-seen order without duplicates.

    Args:
        content: Template text.

    Returns:
        Variable names, e.g. ``["name", "company_name"]`` for
        ``"{name} at {company_name} and {name} again"``.
    """
    seen: dict[str, None] = {}
    for match in PLACEHOLDER_PATTERN.finditer(content):
        seen.setdefault(match.group(1), None)
    return list(seen)


def covers_hints(template: Template, hints: Iterable[str]) -> bool:
    """Check that a template declares every hinted variable.

    An empty hint set is covered by any template.
    """
    return set(hints) <= set(template.variables)
