"""Remote LLM provider adapters and response normalisation.

One :class:`ProviderAdapter` variant exists per provider tag; the active tag
in :class:`~code_architect.config.AppSettings` picks which one is built.
Adding a provider means adding a variant and registering it in
:data:`PROVIDERS`.

Usage::

    from code_architect.providers import create_provider, normalize_response

    provider = create_provider(settings)
    data = normalize_response(await provider.call(system, prompt))
"""

from __future__ import annotations

import httpx

from code_architect.config import AppSettings, ProviderName
from code_architect.errors import PreconditionError
from code_architect.providers.base import ProviderAdapter, looks_rate_limited
from code_architect.providers.chat import (
    ChatCompletionsProvider,
    GitHubModelsProvider,
    OpenRouterProvider,
)
from code_architect.providers.google import GoogleProvider
from code_architect.providers.normalizer import normalize_response, strip_code_fences

PROVIDERS: dict[str, type[ProviderAdapter]] = {
    ProviderName.GOOGLE.value: GoogleProvider,
    ProviderName.OPENROUTER.value: OpenRouterProvider,
    ProviderName.GITHUB.value: GitHubModelsProvider,
}


def create_provider(
    settings: AppSettings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ProviderAdapter:
    """Build the adapter for the active provider in *settings*.

    Raises:
        PreconditionError: If the provider tag is not registered or its API
            key is empty.  No network request is made in either case.
    """
    tag = settings.active_provider.value
    adapter_cls = PROVIDERS.get(tag)
    if adapter_cls is None:
        raise PreconditionError(f"Unknown AI provider: {tag!r}.")
    return adapter_cls(
        settings.provider_config(tag),
        timeout=settings.timeout,
        transport=transport,
    )


__all__ = [
    "PROVIDERS",
    "ChatCompletionsProvider",
    "GitHubModelsProvider",
    "GoogleProvider",
    "OpenRouterProvider",
    "ProviderAdapter",
    "create_provider",
    "looks_rate_limited",
    "normalize_response",
    "strip_code_fences",
]
