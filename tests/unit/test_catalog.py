"""Unit tests for template catalogs."""

import json

import pytest

from wishgen.core.config import Settings
from wishgen.core.factory import ComponentFactory
from wishgen.interfaces.catalog import Category, ConfigurationError
from wishgen.strategies.template_engine import (
    KeywordTemplateMatcher,
    StaticTemplateCatalog,
    default_catalog,
    extract_variables,
    load_catalog,
    make_template,
)


def _entry(template_id: str, category: str, content: str = "Hello {name}") -> dict:
    return {
        "id": template_id,
        "name": template_id.title(),
        "category": category,
        "content": content,
    }


def _full_entries() -> list[dict]:
    return [_entry(f"{c.value}-1", c.value) for c in Category]


@pytest.fixture
def write_catalog(tmp_path):
    def _write(payload) -> str:
        path = tmp_path / "catalog.json"
        text = payload if isinstance(payload, str) else json.dumps(payload)
        path.write_text(text, encoding="utf-8")
        return str(path)

    return _write


# =============================================================================
# Built-in Catalog Tests
# =============================================================================


class TestDefaultCatalog:
    """Test suite for the built-in templates."""

    @pytest.fixture
    def catalog(self):
        return default_catalog()

    def test_every_category_has_templates(self, catalog):
        """Test that every category has at least one template."""
        assert catalog.categories() == tuple(Category)
        for category in Category:
            assert len(catalog.templates_for(category)) >= 1

    def test_variables_consistent_with_content(self, catalog):
        """Test that declared variables equal the placeholders in the content."""
        for template in catalog.all_templates():
            assert list(template.variables) == extract_variables(template.content)

    def test_templates_sit_in_their_category(self, catalog):
        """Test that templates are listed under their own category."""
        for category in Category:
            assert all(t.category is category for t in catalog.templates_for(category))

    def test_general_has_intent_templates(self, catalog):
        """Test that the general category has Welcome and Thank You templates."""
        names = [t.name for t in catalog.templates_for(Category.GENERAL)]
        assert any("Welcome" in n for n in names)
        assert any("Thank You" in n for n in names)

    def test_lookup_by_id(self, catalog):
        """Test looking templates up by id."""
        template = catalog.get("general-welcome")
        assert template is not None
        assert template.category is Category.GENERAL
        assert catalog.get("missing") is None

    def test_len_matches_all_templates(self, catalog):
        """Test that len() counts every template."""
        assert len(catalog) == len(catalog.all_templates())


# =============================================================================
# Validation Tests
# =============================================================================


class TestCatalogValidation:
    """Test suite for StaticTemplateCatalog invariants."""

    def test_empty_catalog(self):
        """Test that an empty catalog raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="empty"):
            StaticTemplateCatalog({})

    def test_missing_category(self):
        """Test that a category without templates raises ConfigurationError."""
        templates = {
            Category.DIWALI: [make_template("d", "D", Category.DIWALI, "Happy Diwali")],
        }
        with pytest.raises(ConfigurationError, match="no templates for"):
            StaticTemplateCatalog(templates)

    def test_duplicate_ids(self):
        """Test that duplicate template ids raise ConfigurationError."""
        templates = {
            c: [make_template("same", "Same", c, "Hi")] for c in Category
        }
        with pytest.raises(ConfigurationError, match="Duplicate"):
            StaticTemplateCatalog(templates)

    def test_wrong_category(self):
        """Test that a template listed under another category raises ConfigurationError."""
        templates = {
            c: [make_template(f"{c.value}-1", "T", c, "Hi")] for c in Category
        }
        templates[Category.BIRTHDAY] = [
            make_template("misplaced", "M", Category.DIWALI, "Hi")
        ]
        with pytest.raises(ConfigurationError, match="listed under"):
            StaticTemplateCatalog(templates)

    def test_declared_variables_must_match_content(self):
        """Test that variables disagreeing with the content are rejected."""
        with pytest.raises(ConfigurationError, match="declares variables"):
            make_template("t", "T", Category.GENERAL, "Hi {name}", ["name", "company_name"])

    def test_declared_variables_in_order_accepted(self):
        """Test that variables matching the content are accepted."""
        template = make_template(
            "t", "T", Category.GENERAL, "Hi {name} from {company_name}", ["name", "company_name"]
        )
        assert template.variables == ("name", "company_name")


# =============================================================================
# JSON Loading Tests
# =============================================================================


class TestLoadCatalog:
    """Test suite for loading catalogs from JSON files."""

    def test_load_valid_file(self, write_catalog):
        """Test loading a valid catalog file, keeping file order."""
        entries = _full_entries()
        entries.append(_entry("diwali-2", "diwali", "Happy Diwali {name} from {company_name}"))
        path = write_catalog({"templates": entries})

        catalog = load_catalog(path)

        diwali = catalog.templates_for(Category.DIWALI)
        assert [t.id for t in diwali] == ["diwali-1", "diwali-2"]
        assert diwali[1].variables == ("name", "company_name")

    def test_loaded_catalog_drives_matcher(self, write_catalog):
        """Test that a loaded catalog can back the matcher."""
        path = write_catalog({"templates": _full_entries()})
        matcher = KeywordTemplateMatcher(load_catalog(path))

        assert matcher.match("Happy Diwali!").template_id == "diwali-1"

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="not found"):
            load_catalog(tmp_path / "nope.json")

    def test_malformed_json(self, write_catalog):
        """Test that malformed JSON raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="Cannot read"):
            load_catalog(write_catalog("{not json"))

    def test_unknown_category(self, write_catalog):
        """Test that an unknown category raises ConfigurationError."""
        entries = _full_entries() + [_entry("halloween-1", "halloween")]
        with pytest.raises(ConfigurationError, match="Invalid template catalog"):
            load_catalog(write_catalog({"templates": entries}))

    def test_missing_keys(self, write_catalog):
        """Test that entries without required keys raise ConfigurationError."""
        with pytest.raises(ConfigurationError, match="Invalid template catalog"):
            load_catalog(write_catalog({"templates": [{"id": "x"}]}))

    def test_empty_template_list(self, write_catalog):
        """Test that a file without templates raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="empty"):
            load_catalog(write_catalog({"templates": []}))

    def test_inconsistent_variables(self, write_catalog):
        """Test that inconsistent declared variables raise ConfigurationError."""
        entries = _full_entries()
        entries[0]["variables"] = ["company_name"]
        with pytest.raises(ConfigurationError, match="declares variables"):
            load_catalog(write_catalog({"templates": entries}))


# =============================================================================
# Factory Tests
# =============================================================================


class TestComponentFactory:
    """Test suite for catalog and matcher construction from settings."""

    def test_builtin_catalog_by_default(self, tmp_path):
        """Test that the built-in catalog is used when no path is set."""
        factory = ComponentFactory(Settings(catalog_path=None, log_dir=tmp_path))
        assert factory.get_catalog().get("general-welcome") is not None

    def test_catalog_from_settings_path(self, tmp_path, write_catalog):
        """Test that catalog_path selects a catalog file."""
        path = write_catalog({"templates": _full_entries()})
        factory = ComponentFactory(Settings(catalog_path=path, log_dir=tmp_path))

        assert factory.get_catalog().get("diwali-1") is not None

    def test_matcher_is_cached(self, tmp_path):
        """Test that the matcher is cached until clear_cache()."""
        factory = ComponentFactory(Settings(log_dir=tmp_path))
        assert factory.get_matcher() is factory.get_matcher()

        first = factory.get_matcher()
        factory.clear_cache()
        assert factory.get_matcher() is not first

    def test_invalid_catalog_path_raises(self, tmp_path):
        """Test that a bad catalog_path surfaces as ConfigurationError."""
        factory = ComponentFactory(Settings(catalog_path=tmp_path / "missing.json", log_dir=tmp_path))
        with pytest.raises(ConfigurationError):
            factory.get_matcher()
