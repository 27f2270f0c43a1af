"""Code Architect configuration.

Typed settings for provider selection, credentials, and the viewer
preferences that are persisted between runs.  All settings use Pydantic v2
models so they are validated at construction time and can be serialised
to/from JSON or built from environment variables.

The settings object is always passed explicitly into the generator; nothing
in the package reads global configuration on its own.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, model_validator

from code_architect.errors import PreconditionError


class ProviderName(str, Enum):
    """Tag selecting the active remote provider."""
    GOOGLE = "google"
    OPENROUTER = "openrouter"
    GITHUB = "github"


class ProviderConfig(BaseModel):
    """Credentials and model for a single remote provider."""

    api_key: str = Field(default="", description="API key or token forwarded to the provider")
    model: str = Field(default="", description="Provider model identifier")

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key.strip())


class GoogleConfig(ProviderConfig):
    """Google Generative Language API (structured JSON output)."""

    model: str = Field(default="gemini-2.0-flash")


class OpenRouterConfig(ProviderConfig):
    """OpenRouter chat completions."""

    model: str = Field(default="openrouter/free")


class GitHubModelsConfig(ProviderConfig):
    """GitHub Models chat completions."""

    model: str = Field(default="gpt-4o-mini")


# Flat keys written by the browser build of the app, mapped onto nested fields.
_LEGACY_KEYS: dict[str, tuple[str, str]] = {
    "googleApiKey": ("google", "api_key"),
    "openRouterApiKey": ("openrouter", "api_key"),
    "customModelId": ("openrouter", "model"),
    "githubToken": ("github", "api_key"),
    "githubModelId": ("github", "model"),
}

_LEGACY_FLAGS: dict[str, str] = {
    "activeProvider": "active_provider",
    "wordWrap": "word_wrap",
    "syntaxHighlight": "syntax_highlight",
    "autoSave": "auto_save",
    "showHidden": "show_hidden",
}


class AppSettings(BaseModel):
    """User settings: provider selection plus viewer preferences.

    Exactly one provider is active at a time; its block is returned by
    :meth:`provider_config`.
    """

    active_provider: ProviderName = Field(default=ProviderName.GOOGLE)
    google: GoogleConfig = Field(default_factory=GoogleConfig)
    openrouter: OpenRouterConfig = Field(default_factory=OpenRouterConfig)
    github: GitHubModelsConfig = Field(default_factory=GitHubModelsConfig)

    word_wrap: bool = Field(default=False, description="Wrap long lines when showing files")
    syntax_highlight: bool = Field(default=True, description="Highlight file contents")
    auto_save: bool = Field(default=True, description="Save successful results to history")
    show_hidden: bool = Field(default=False, description="List dotfiles in file tables")

    timeout: int = Field(default=120, ge=10, description="Per-request timeout in seconds")
    history_limit: int = Field(default=50, ge=1, description="Maximum saved history items")

    @model_validator(mode="before")
    @classmethod
    def _migrate_legacy(cls, data: Any) -> Any:
        """Accept the flat camelCase settings layout of older saves."""
        if not isinstance(data, dict):
            return data
        if not any(key in data for key in (*_LEGACY_KEYS, *_LEGACY_FLAGS, "useCustomApi")):
            return data

        migrated: dict[str, Any] = {}
        for key, value in data.items():
            if key in _LEGACY_KEYS:
                block, field = _LEGACY_KEYS[key]
                nested = migrated.setdefault(block, {})
                if isinstance(nested, dict) and value:
                    nested.setdefault(field, value)
            elif key in _LEGACY_FLAGS:
                migrated[_LEGACY_FLAGS[key]] = value
            elif key == "useCustomApi":
                continue
            elif key in cls.model_fields:
                if isinstance(value, dict) and isinstance(migrated.get(key), dict):
                    migrated[key] = {**migrated[key], **value}
                else:
                    migrated[key] = value

        if data.get("useCustomApi") and "activeProvider" not in data and "active_provider" not in data:
            migrated["active_provider"] = ProviderName.OPENROUTER.value
        return migrated

    # ------------------------------------------------------------------
    # Provider selection
    # ------------------------------------------------------------------

    def provider_config(self, name: ProviderName | str | None = None) -> ProviderConfig:
        """Return the config block of *name* (default: the active provider)."""
        provider = ProviderName(name) if name is not None else self.active_provider
        return getattr(self, provider.value)

    def with_provider(self, name: ProviderName | str, model: str | None = None) -> "AppSettings":
        """Return a copy with *name* active and, optionally, its model replaced."""
        provider = ProviderName(name)
        updated = self.model_copy(update={"active_provider": provider})
        if model:
            block = updated.provider_config(provider).model_copy(update={"model": model})
            updated = updated.model_copy(update={provider.value: block})
        return updated

    def with_value(self, key: str, value: Any) -> "AppSettings":
        """Return a validated copy with a (possibly dotted) key replaced.

        Examples::

            settings.with_value("google.api_key", "AIza...")
            settings.with_value("auto_save", "false")

        Raises:
            KeyError: If *key* does not name a setting.
            pydantic.ValidationError: If *value* is invalid for the setting.
        """
        data = self.model_dump(mode="json")
        parts = key.split(".")
        target = data
        for part in parts[:-1]:
            if part not in target or not isinstance(target[part], dict):
                raise KeyError(key)
            target = target[part]
        if parts[-1] not in target:
            raise KeyError(key)
        target[parts[-1]] = value
        return type(self).model_validate(data)

    def redacted(self) -> dict[str, Any]:
        """Return a JSON-ready dump with API keys masked."""
        data = self.model_dump(mode="json")
        for provider in ProviderName:
            block = data[provider.value]
            block["api_key"] = _mask(block["api_key"])
        return data

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls, base: "AppSettings | None" = None) -> "AppSettings":
        """Overlay environment variables on *base* (default: fresh settings).

        Recognised variables (all optional):
            CODE_ARCHITECT_PROVIDER, CODE_ARCHITECT_TIMEOUT,
            CODE_ARCHITECT_GOOGLE_API_KEY (or GEMINI_API_KEY),
            CODE_ARCHITECT_GOOGLE_MODEL,
            CODE_ARCHITECT_OPENROUTER_API_KEY (or OPENROUTER_API_KEY),
            CODE_ARCHITECT_OPENROUTER_MODEL,
            CODE_ARCHITECT_GITHUB_TOKEN (or GITHUB_TOKEN),
            CODE_ARCHITECT_GITHUB_MODEL.
        """
        data = (base or cls()).model_dump(mode="json")

        def _first(*names: str) -> str | None:
            for name in names:
                if os.environ.get(name):
                    return os.environ[name]
            return None

        if os.environ.get("CODE_ARCHITECT_PROVIDER"):
            data["active_provider"] = os.environ["CODE_ARCHITECT_PROVIDER"].strip().lower()
        if os.environ.get("CODE_ARCHITECT_TIMEOUT"):
            raw_timeout = os.environ["CODE_ARCHITECT_TIMEOUT"]
            try:
                data["timeout"] = int(raw_timeout)
            except ValueError as exc:
                raise PreconditionError(
                    "CODE_ARCHITECT_TIMEOUT must be a whole number of seconds, "
                    f"got {raw_timeout!r}."
                ) from exc

        overrides = {
            ("google", "api_key"): _first("CODE_ARCHITECT_GOOGLE_API_KEY", "GEMINI_API_KEY"),
            ("google", "model"): _first("CODE_ARCHITECT_GOOGLE_MODEL"),
            ("openrouter", "api_key"): _first("CODE_ARCHITECT_OPENROUTER_API_KEY", "OPENROUTER_API_KEY"),
            ("openrouter", "model"): _first("CODE_ARCHITECT_OPENROUTER_MODEL"),
            ("github", "api_key"): _first("CODE_ARCHITECT_GITHUB_TOKEN", "GITHUB_TOKEN"),
            ("github", "model"): _first("CODE_ARCHITECT_GITHUB_MODEL"),
        }
        for (block, field), value in overrides.items():
            if value:
                data[block][field] = value

        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            error = exc.errors()[0]
            location = ".".join(str(part) for part in error["loc"]) or "settings"
            raise PreconditionError(
                f"Invalid environment setting for {location}: {error['msg']}."
            ) from exc


def default_data_dir() -> Path:
    """Directory holding persisted history and settings.

    ``$CODE_ARCHITECT_HOME`` when set, otherwise ``~/.code-architect``.
    """
    override = os.environ.get("CODE_ARCHITECT_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".code-architect"


def _mask(secret: str) -> str:
    if not secret:
        return ""
    if len(secret) <= 8:
        return "*" * len(secret)
    return f"{secret[:4]}...{secret[-4:]}"
