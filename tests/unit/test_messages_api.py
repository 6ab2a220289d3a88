"""API tests for the message routes against a temporary SQLite database."""

import datetime
import json
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError

from wishgen.core.config import Settings, get_settings
from wishgen.db import session as db_session
from wishgen.interfaces.catalog import ConfigurationError
from wishgen.main import create_app


@pytest.fixture(autouse=True)
def reset_engine(monkeypatch):
    """Start every test without a cached engine."""
    monkeypatch.setattr(db_session, "_engine", None)
    monkeypatch.setattr(db_session, "_async_session_maker", None)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'messages.db'}",
        log_dir=tmp_path / "logs",
        prompt_max_length=100,
        history_max_limit=20,
    )


def _client(settings: Settings) -> TestClient:
    app = create_app(settings)
    app.dependency_overrides[get_settings] = lambda: settings
    return TestClient(app)


@pytest.fixture
def client(settings):
    with _client(settings) as test_client:
        yield test_client


def _generate(client: TestClient, prompt: str, user_id: str | None = None) -> dict:
    response = client.post("/messages/generate", json={"prompt": prompt, "user_id": user_id})
    assert response.status_code == 200, response.text
    return response.json()


# =============================================================================
# Meta Endpoints
# =============================================================================


class TestMeta:
    def test_health(self, client):
        """Test that /health reports a healthy service."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root_lists_endpoints(self, client):
        """Test that the root lists the message endpoints."""
        body = client.get("/").json()
        assert "POST /messages/generate" in body["endpoints"]


# =============================================================================
# Generation
# =============================================================================


class TestGenerate:
    """Test suite for POST /messages/generate."""

    def test_generate_diwali(self, client):
        """Test that a Diwali prompt is matched and stored."""
        body = _generate(client, "I want to send Diwali wishes to my customers")

        assert body["success"] is True
        assert body["saved"] is True
        assert body["category"] == "diwali"
        assert body["template_id"] == "diwali-business-greeting"
        assert body["variables_detected"] == ["name", "company_name"]
        assert "{name}" in body["generated_message"]
        uuid.UUID(body["id"])

    def test_generate_welcome(self, client):
        """Test that a welcome prompt gets the Welcome template."""
        body = _generate(client, "Generate a welcome message for new customers")
        assert body["category"] == "general"
        assert "Welcome" in body["template_used"]

    def test_prompt_is_stripped_before_storage(self, client):
        """Test that surrounding whitespace is removed before storing."""
        _generate(client, "   birthday wishes   ")
        history = client.get("/messages/history").json()
        assert history[0]["user_prompt"] == "birthday wishes"

    @pytest.mark.parametrize("prompt", ["", "   ", "\n\t"])
    def test_blank_prompt_rejected(self, client, prompt):
        """Test that blank prompts are rejected with 422."""
        response = client.post("/messages/generate", json={"prompt": prompt})
        assert response.status_code == 422
        assert response.json()["detail"] == "Validation error"

    def test_missing_prompt_rejected(self, client):
        """Test that a body without a prompt is rejected with 422."""
        response = client.post("/messages/generate", json={})
        assert response.status_code == 422

    def test_prompt_too_long_rejected(self, client):
        """Test that prompts over prompt_max_length are rejected with 422."""
        response = client.post("/messages/generate", json={"prompt": "a" * 101})
        assert response.status_code == 422

    def test_examples_are_not_stored(self, client):
        """Test that the examples endpoint stores nothing."""
        response = client.post("/messages/examples")
        assert response.status_code == 200
        examples = response.json()["examples"]
        assert len(examples) == 5
        assert examples[0]["result"]["category"] == "diwali"
        assert client.get("/messages/history").json() == []


# =============================================================================
# Catalog
# =============================================================================


class TestCatalogEndpoints:
    def test_categories(self, client):
        """Test that categories are listed in order with display names."""
        categories = client.get("/messages/categories").json()["categories"]
        names = [c["name"] for c in categories]
        assert names == ["diwali", "christmas", "birthday", "new_year", "promotion", "general"]
        assert {"name": "new_year", "display_name": "New Year"} in categories

    def test_templates(self, client):
        """Test that templates are listed with their variables."""
        templates = client.get("/messages/templates").json()
        welcome = next(t for t in templates if t["id"] == "general-welcome")
        assert welcome["category"] == "general"
        assert welcome["variables"] == ["name", "company_name"]


# =============================================================================
# Stored Messages
# =============================================================================


class TestStoredMessages:
    """Test suite for edit, history, stats and delete."""

    def test_edit_round_trip(self, client):
        """Test that an edit is visible in history."""
        created = _generate(client, "Christmas greeting for clients")

        response = client.post(
            "/messages/edit",
            json={"message_id": created["id"], "edited_message": "Merry Christmas, Asha!"},
        )
        assert response.status_code == 200
        assert response.json()["success"] is True

        record = client.get("/messages/history").json()[0]
        assert record["is_edited"] is True
        assert record["final_message"] == "Merry Christmas, Asha!"
        assert record["generated_message"] == created["generated_message"]

    def test_edit_unknown_message(self, client):
        """Test that editing an unknown id returns 404."""
        response = client.post(
            "/messages/edit",
            json={"message_id": str(uuid.uuid4()), "edited_message": "text"},
        )
        assert response.status_code == 404

    def test_edit_requires_text(self, client):
        """Test that a blank edit is rejected with 422."""
        created = _generate(client, "birthday")
        response = client.post(
            "/messages/edit",
            json={"message_id": created["id"], "edited_message": "  "},
        )
        assert response.status_code == 422

    def test_history_newest_first(self, client):
        """Test that history lists the newest message first."""
        for prompt in ["diwali one", "christmas two", "birthday three"]:
            _generate(client, prompt)

        prompts = [m["user_prompt"] for m in client.get("/messages/history").json()]
        assert prompts == ["birthday three", "christmas two", "diwali one"]

    def test_history_filters(self, client):
        """Test the user, category, search and limit filters."""
        _generate(client, "diwali for team", user_id="alice")
        _generate(client, "xmas for team", user_id="alice")
        _generate(client, "diwali for clients", user_id="bob")

        alice = client.get("/messages/history", params={"user_id": "alice"}).json()
        assert len(alice) == 2

        diwali = client.get("/messages/history", params={"category": "diwali"}).json()
        assert {m["user_id"] for m in diwali} == {"alice", "bob"}

        search = client.get("/messages/history", params={"q": "CLIENTS"}).json()
        assert [m["user_id"] for m in search] == ["bob"]

        limited = client.get("/messages/history", params={"limit": 1}).json()
        assert len(limited) == 1

    def test_history_search_escapes_wildcards(self, client):
        """Test that LIKE wildcards in the search are literal."""
        _generate(client, "diwali wishes")
        assert client.get("/messages/history", params={"q": "%"}).json() == []

    def test_history_limit_bounds(self, client):
        """Test that out-of-range limits are rejected with 422."""
        assert client.get("/messages/history", params={"limit": 0}).status_code == 422
        assert client.get("/messages/history", params={"limit": 21}).status_code == 422

    def test_stats(self, client):
        """Test the aggregated counts, overall and per user."""
        first = _generate(client, "diwali wishes", user_id="alice")
        _generate(client, "another diwali note", user_id="alice")
        _generate(client, "thank you note", user_id="bob")
        client.post(
            "/messages/edit",
            json={"message_id": first["id"], "edited_message": "Happy Diwali, Ravi!"},
        )

        stats = client.get("/messages/stats").json()
        assert stats["total_messages"] == 3
        assert stats["edited_messages"] == 1
        assert stats["category_counts"] == {"diwali": 2, "general": 1}
        assert stats["template_counts"]["Thank You Message"] == 1
        assert sum(stats["daily_usage"].values()) == 3

        bob = client.get("/messages/stats", params={"user_id": "bob"}).json()
        assert bob["total_messages"] == 1

    def test_delete(self, client):
        """Test deleting a message, then deleting it again."""
        created = _generate(client, "new year wishes")

        assert client.delete(f"/messages/{created['id']}").status_code == 204
        assert client.get("/messages/history").json() == []
        assert client.delete(f"/messages/{created['id']}").status_code == 404


# =============================================================================
# Date Range, Export, Import & Clear
# =============================================================================


class TestDataManagement:
    """Test suite for date-range history, export, import and clearing."""

    def test_history_date_range(self, client):
        """Test that start and end bound history by creation time."""
        _generate(client, "diwali wishes")
        now = datetime.datetime.now(datetime.timezone.utc)
        hour = datetime.timedelta(hours=1)

        def count(**bounds) -> int:
            params = {k: v.isoformat() for k, v in bounds.items()}
            response = client.get("/messages/history", params=params)
            assert response.status_code == 200, response.text
            return len(response.json())

        assert count(start=now - hour) == 1
        assert count(start=now + hour) == 0
        assert count(end=now - hour) == 0
        assert count(start=now - hour, end=now + hour) == 1

        ist = datetime.timezone(datetime.timedelta(hours=5, minutes=30))
        assert count(start=(now - hour).astimezone(ist)) == 1
        assert count(end=(now - hour).astimezone(ist)) == 0

    def test_history_start_after_end_rejected(self, client):
        """Test that an inverted date range is rejected with 422."""
        now = datetime.datetime.now(datetime.timezone.utc)
        response = client.get(
            "/messages/history",
            params={"start": now.isoformat(), "end": (now - datetime.timedelta(days=1)).isoformat()},
        )
        assert response.status_code == 422

    def test_export_clear_import_round_trip(self, client):
        """Test that an export restores every message after clearing."""
        _generate(client, "diwali wishes", user_id="alice")
        created = _generate(client, "thank you note", user_id="bob")
        client.post(
            "/messages/edit",
            json={"message_id": created["id"], "edited_message": "Thanks, Ravi!"},
        )

        export = client.get("/messages/export").json()
        assert export["count"] == 2
        assert [m["user_id"] for m in export["messages"]] == ["bob", "alice"]

        cleared = client.delete("/messages")
        assert cleared.status_code == 200
        assert cleared.json() == {"deleted": 2}
        assert client.get("/messages/history").json() == []

        response = client.post("/messages/import", json={"messages": export["messages"]})
        assert response.status_code == 200
        assert response.json() == {"imported": 2, "skipped": 0}

        history = client.get("/messages/history").json()
        assert {m["id"] for m in history} == {m["id"] for m in export["messages"]}
        restored = next(m for m in history if m["id"] == created["id"])
        assert restored["is_edited"] is True
        assert restored["final_message"] == "Thanks, Ravi!"

        again = client.post("/messages/import", json={"messages": export["messages"]})
        assert again.json() == {"imported": 0, "skipped": 2}

    def test_import_without_ids(self, client):
        """Test that imported messages without an id get a new one."""
        message = {
            "user_prompt": "birthday",
            "generated_message": "Happy Birthday, {name}!",
            "template_id": "birthday-simple-wish",
            "template_used": "Simple Birthday Wish",
            "category": "birthday",
            "variables_detected": ["name"],
        }

        response = client.post("/messages/import", json={"messages": [message, message]})
        assert response.json() == {"imported": 2, "skipped": 0}

        history = client.get("/messages/history").json()
        assert len({m["id"] for m in history}) == 2
        assert all(m["variables_detected"] == ["name"] for m in history)

    def test_import_rejects_unknown_category(self, client):
        """Test that an import with an unknown category is rejected with 422."""
        message = {
            "user_prompt": "boo",
            "generated_message": "Boo!",
            "template_id": "halloween-1",
            "template_used": "Halloween",
            "category": "halloween",
        }
        response = client.post("/messages/import", json={"messages": [message]})
        assert response.status_code == 422
        assert client.get("/messages/history").json() == []

    def test_clear_and_export_one_user(self, client):
        """Test that user_id scopes clearing and exporting."""
        _generate(client, "diwali wishes", user_id="alice")
        _generate(client, "xmas wishes", user_id="bob")

        assert client.get("/messages/export", params={"user_id": "bob"}).json()["count"] == 1
        assert client.delete("/messages", params={"user_id": "alice"}).json() == {"deleted": 1}

        remaining = client.get("/messages/history").json()
        assert [m["user_id"] for m in remaining] == ["bob"]


# =============================================================================
# Startup & Degraded Operation
# =============================================================================


class TestStartup:
    """Test suite for catalog and database failures at startup."""

    def test_invalid_catalog_prevents_startup(self, settings, tmp_path):
        """Test that an invalid catalog file aborts startup."""
        bad = tmp_path / "catalog.json"
        bad.write_text(json.dumps({"templates": []}), encoding="utf-8")
        settings.catalog_path = bad

        with pytest.raises(ConfigurationError):
            with _client(settings):
                pass

    def test_generate_without_database(self, tmp_path):
        """Test that generation works when the database cannot be opened."""
        settings = Settings(
            database_url=f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'db.sqlite'}",
            log_dir=tmp_path / "logs",
        )

        with _client(settings) as client:
            body = _generate(client, "I want to send Diwali wishes to my customers")

            assert body["saved"] is False
            assert body["id"] is None
            assert body["category"] == "diwali"

            assert client.get("/messages/history").status_code == 500

    def test_generate_with_unloadable_driver(self, tmp_path):
        """Test that an unusable database URL leaves matching available."""
        settings = Settings(
            database_url="postgresql+nosuchdriver://user@localhost/db",
            log_dir=tmp_path / "logs",
        )

        with _client(settings) as client:
            body = _generate(client, "diwali wishes")

            assert body["saved"] is False
            assert body["id"] is None
            assert body["category"] == "diwali"

            examples = client.post("/messages/examples")
            assert examples.status_code == 200
            assert len(examples.json()["examples"]) == 5

            assert client.get("/messages/history").status_code == 503
            assert client.get("/messages/export").status_code == 503

    def test_required_database_prevents_startup(self, tmp_path):
        """Test that a required but unreachable database aborts startup."""
        settings = Settings(
            database_url=f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'db.sqlite'}",
            database_required=True,
            log_dir=tmp_path / "logs",
        )

        with pytest.raises(SQLAlchemyError):
            with _client(settings):
                pass
