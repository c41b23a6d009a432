from __future__ import annotations

import importlib
from pathlib import Path
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def api(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Fresh app bound to a temporary SQLite file."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path}/newsroom.db")
    monkeypatch.delenv("CARD_REDIS_URL", raising=False)
    monkeypatch.setenv("LOG_LEVEL", "WARNING")

    from api.settings import reset_portal_settings_cache
    from cards.settings import reset_card_settings_cache

    reset_portal_settings_cache()
    reset_card_settings_cache()

    api_database = importlib.reload(importlib.import_module("api.database"))
    api_routes = importlib.reload(importlib.import_module("api.routes"))
    api_main = importlib.reload(importlib.import_module("api.main"))

    client = TestClient(api_main.app)
    yield SimpleNamespace(client=client, app=api_main.app, routes=api_routes, database=api_database)

    api_main.app.dependency_overrides.clear()
    reset_portal_settings_cache()
    reset_card_settings_cache()


@pytest.fixture
def article_payload():
    def _payload(**overrides) -> dict:
        payload = {
            "title": "India GDP",
            "summary": "Growth beats forecasts.",
            "body": "Quarterly growth came in strong.",
            "category": "India",
            "status": "published",
        }
        payload.update(overrides)
        return payload

    return _payload
