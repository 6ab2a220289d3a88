"""Abstract base classes for template catalogs and matchers."""

from wishgen.interfaces.catalog import (
    BaseTemplateCatalog,
    Category,
    ConfigurationError,
    Template,
)
from wishgen.interfaces.matcher import BaseTemplateMatcher, MatchResult

__all__ = [
    "BaseTemplateCatalog",
    "BaseTemplateMatcher",
    "Category",
    "ConfigurationError",
    "MatchResult",
    "Template",
]
