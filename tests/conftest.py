"""Shared pytest fixtures for the Code Architect test suite.

Provides reusable fixtures for:
- Settings with credentials for each provider (and one without)
- Canned provider response bodies
- A recording ``httpx.MockTransport`` for provider tests
- In-memory zip archives
"""

from __future__ import annotations

import io
import json
import zipfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from code_architect.config import AppSettings, ProviderName
from code_architect.models import Blueprint, FileRecord
from code_architect.storage import JsonKeyValueStore

_ENV_VARS = (
    "CODE_ARCHITECT_HOME",
    "CODE_ARCHITECT_PROVIDER",
    "CODE_ARCHITECT_TIMEOUT",
    "CODE_ARCHITECT_GOOGLE_API_KEY",
    "CODE_ARCHITECT_GOOGLE_MODEL",
    "CODE_ARCHITECT_OPENROUTER_API_KEY",
    "CODE_ARCHITECT_OPENROUTER_MODEL",
    "CODE_ARCHITECT_GITHUB_TOKEN",
    "CODE_ARCHITECT_GITHUB_MODEL",
    "GEMINI_API_KEY",
    "OPENROUTER_API_KEY",
    "GITHUB_TOKEN",
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep credentials from the developer's shell out of every test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@pytest.fixture
def google_settings() -> AppSettings:
    return AppSettings.model_validate({
        "active_provider": "google",
        "google": {"api_key": "test-google-key", "model": "gemini-2.0-flash"},
    })


@pytest.fixture
def openrouter_settings() -> AppSettings:
    return AppSettings.model_validate({
        "active_provider": "openrouter",
        "openrouter": {"api_key": "test-openrouter-key", "model": "openrouter/free"},
    })


@pytest.fixture
def github_settings() -> AppSettings:
    return AppSettings.model_validate({
        "active_provider": "github",
        "github": {"api_key": "ghp_testtoken", "model": "gpt-4o-mini"},
    })


@pytest.fixture
def keyless_settings() -> AppSettings:
    """Google is active but no key has been configured."""
    return AppSettings(active_provider=ProviderName.GOOGLE)


# ---------------------------------------------------------------------------
# Blueprints and provider bodies
# ---------------------------------------------------------------------------

@pytest.fixture
def blueprint_payload() -> dict[str, Any]:
    """A minimal blueprint as a provider would return it."""
    return {
        "description": "A small todo list app",
        "structure": "todo/\n  index.html",
        "files": [
            {
                "path": "index.html",
                "content": "<!doctype html><title>Todo</title>",
                "language": "html",
            }
        ],
    }


@pytest.fixture
def sample_blueprint() -> Blueprint:
    return Blueprint(
        project_name="Todo App",
        description="A small todo list app",
        structure="todo/\n  index.html\n  app.js",
        files=[
            FileRecord(path="index.html", content="<!doctype html>", language="html"),
            FileRecord(path="src/app.js", content="console.log('hi');", language="javascript"),
            FileRecord(path=".env.example", content="API_URL=", language="plaintext"),
        ],
    )


def gemini_body(text: str) -> dict[str, Any]:
    """Shape of a ``generateContent`` response carrying *text*."""
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def chat_body(content: Any) -> dict[str, Any]:
    """Shape of a chat-completions response carrying *content*."""
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}


@pytest.fixture
def gemini_response() -> Callable[[str], dict[str, Any]]:
    return gemini_body


@pytest.fixture
def chat_response() -> Callable[[Any], dict[str, Any]]:
    return chat_body


# ---------------------------------------------------------------------------
# HTTP transport
# ---------------------------------------------------------------------------

class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers every request it was handed."""

    def __init__(self, responder: Callable[[httpx.Request], Any]) -> None:
        self.requests: list[httpx.Request] = []

        def _handler(request: httpx.Request) -> Any:
            self.requests.append(request)
            return responder(request)

        super().__init__(_handler)

    @property
    def last_json(self) -> Any:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def make_transport() -> Callable[..., RecordingTransport]:
    """Factory: ``make_transport(json_body, status_code=200)`` or ``make_transport(handler)``."""

    def _factory(body: Any = None, status_code: int = 200) -> RecordingTransport:
        if callable(body):
            return RecordingTransport(body)
        return RecordingTransport(lambda request: httpx.Response(status_code, json=body))

    return _factory


# ---------------------------------------------------------------------------
# Archives and storage
# ---------------------------------------------------------------------------

def build_zip(entries: dict[str, str | bytes]) -> bytes:
    """Build a zip in memory.  Names ending in ``/`` become directory entries."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, content in entries.items():
            if name.endswith("/"):
                archive.writestr(zipfile.ZipInfo(name), b"")
            else:
                archive.writestr(name, content)
    return buffer.getvalue()


@pytest.fixture
def make_zip() -> Callable[[dict[str, str | bytes]], bytes]:
    return build_zip


@pytest.fixture
def kv_store(tmp_path: Path) -> JsonKeyValueStore:
    return JsonKeyValueStore(tmp_path / "data")
