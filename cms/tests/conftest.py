"""Pytest configuration and shared fixtures.

This module provides:
- A throwaway assets tree (templates + a stylesheet) per test
- Settings pointing at that tree
- The FastAPI app and an httpx client bound to it
"""

from collections.abc import AsyncGenerator, Callable, Generator
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from core.config import Settings, clear_settings_cache

BASE_HTML = """<html><head><title>{% block title %}CMS{% endblock %}</title></head>
<body>{% include "nav.part.html" %}{% block content %}{% endblock %}</body></html>
"""

ERROR_HTML = """{% extends "base.html" %}
{% block content %}<h1>{{ form.error_code }}</h1><p>{{ form.error_details }}</p>
<span id="env">{{ env }}</span>{{ csrf_field }}{% endblock %}
"""

HOME_HTML = """{% extends "base.html" %}
{% block content %}<h1>Home</h1>{% endblock %}
"""

NAV_HTML = '<nav><a href="/">Home</a></nav>\n'

APP_CSS = "body { margin: 0; }\n"

SITE_FILES = {
    "templates/layout/base.html": BASE_HTML,
    "templates/errors/error.html": ERROR_HTML,
    "templates/pages/home.html": HOME_HTML,
    "templates/partials/nav.part.html": NAV_HTML,
    "css/app.css": APP_CSS,
}


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write a file below the assets root, creating directories."""

    def _write(rel_path: str, content: str) -> Path:
        path = tmp_path / "assets" / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def site(write_file: Callable[[str, str], Path], tmp_path: Path) -> Path:
    """A complete assets tree; returns its root."""
    for rel_path, content in SITE_FILES.items():
        write_file(rel_path, content)
    return tmp_path / "assets"


@pytest.fixture
def settings(site: Path) -> Settings:
    return Settings(
        assets_dir=str(site),
        runtime={"environment": "test"},
        session_secret_key="test_session_secret_key_for_testing",
    )


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None]:
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    from main import create_app

    return create_app(settings)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Async HTTP client; app exceptions become responses, not test errors."""
    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as ac:
        yield ac
