"""Concrete strategy implementations."""

from wishgen.strategies.template_engine import (
    KeywordTemplateMatcher,
    StaticTemplateCatalog,
)

__all__ = [
    "KeywordTemplateMatcher",
    "StaticTemplateCatalog",
]
