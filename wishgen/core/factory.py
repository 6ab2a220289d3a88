"""Component Factory for strategy instantiation.

Builds the template catalog and matcher from configuration so the rest of
the application depends only on the abstract interfaces.
"""

import logging

from wishgen.core.config import Settings, get_settings
from wishgen.interfaces.catalog import BaseTemplateCatalog
from wishgen.interfaces.matcher import BaseTemplateMatcher
from wishgen.strategies.template_engine import (
    KeywordTemplateMatcher,
    default_catalog,
    load_catalog,
)

logger = logging.getLogger(__name__)


class ComponentFactory:
    """Factory for creating component instances based on configuration.

    Example:
        ```python
        factory = ComponentFactory(get_settings())
        matcher = factory.get_matcher()
        result = matcher.match("Send Diwali wishes to my customers")
        ```
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize the factory with optional settings.

        Args:
            settings: Application settings. If None, uses global settings.
        """
        self._settings = settings or get_settings()
        self._catalog_cache: BaseTemplateCatalog | None = None
        self._matcher_cache: BaseTemplateMatcher | None = None

    def get_catalog(self) -> BaseTemplateCatalog:
        """Get the template catalog, loading it on first access.

        Returns:
            The configured catalog: the JSON file at ``catalog_path`` when
            set, the built-in templates otherwise.

        Raises:
            ConfigurationError: If the catalog cannot be loaded or is invalid.
        """
        if self._catalog_cache is None:
            catalog_path = self._settings.catalog_path
            if catalog_path is not None:
                logger.info(f"Instantiating template catalog from file: {catalog_path}")
                self._catalog_cache = load_catalog(catalog_path)
            else:
                logger.info("Instantiating built-in template catalog")
                self._catalog_cache = default_catalog()

        return self._catalog_cache

    def get_matcher(self) -> BaseTemplateMatcher:
        """Get the template matcher bound to the configured catalog."""
        if self._matcher_cache is None:
            logger.info("Instantiating keyword template matcher")
            self._matcher_cache = KeywordTemplateMatcher(self.get_catalog())

        return self._matcher_cache

    def clear_cache(self) -> None:
        """Clear all cached component instances.

        Useful for testing or when settings change.
        """
        self._catalog_cache = None
        self._matcher_cache = None
        logger.info("Component cache cleared")
