"""Template engine strategies.

Implements the greeting template catalog and keyword-based prompt matching.
"""

from wishgen.strategies.template_engine.catalog import (
    StaticTemplateCatalog,
    default_catalog,
    load_catalog,
    make_template,
)
from wishgen.strategies.template_engine.matcher import KeywordTemplateMatcher
from wishgen.strategies.template_engine.variables import covers_hints, extract_variables

__all__ = [
    "KeywordTemplateMatcher",
    "StaticTemplateCatalog",
    "covers_hints",
    "default_catalog",
    "extract_variables",
    "load_catalog",
    "make_template",
]
