"""Common contract for remote LLM providers.

Each provider turns a ``(system_instruction, user_prompt)`` pair into the raw
text the model produced, using exactly one unary HTTPS request.  The
credential check happens in the constructor so a missing key fails before
any network activity, and every transport failure is mapped onto the
:mod:`code_architect.errors` taxonomy.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar

import httpx

from code_architect.config import ProviderConfig
from code_architect.errors import (
    ArchitectError,
    PreconditionError,
    RateLimitError,
    TransportError,
)

_RATE_LIMIT_MARKERS = ("429", "RESOURCE_EXHAUSTED")


def looks_rate_limited(message: str) -> bool:
    """Return ``True`` if an error message signals quota exhaustion."""
    return any(marker in message for marker in _RATE_LIMIT_MARKERS) or "quota" in message.lower()


class ProviderAdapter(ABC):
    """Base class for provider backends.

    Subclasses set :attr:`name` (the settings tag), :attr:`display_name`, and
    :attr:`default_model`, and implement :meth:`call`.

    Parameters
    ----------
    config:
        Credentials and model for this provider.
    timeout:
        Per-request timeout in seconds.
    transport:
        Optional ``httpx`` transport, used to route requests somewhere other
        than the network (``httpx.MockTransport`` in tests).
    """

    name: ClassVar[str] = ""
    display_name: ClassVar[str] = ""
    default_model: ClassVar[str] = ""

    def __init__(
        self,
        config: ProviderConfig,
        *,
        timeout: int = 120,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not config.has_credentials:
            raise PreconditionError(f"{self.display_name} API key is missing in settings.")
        self.api_key = config.api_key.strip()
        self.model = config.model.strip() or self.default_model
        self.timeout = timeout
        self.transport = transport

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    @abstractmethod
    async def call(self, system_instruction: str, user_prompt: str) -> str:
        """Send one request and return the raw response text.

        Raises:
            TransportError: On network failure or a non-2xx response.
            RateLimitError: When the provider reports quota exhaustion.
            EmptyResponseError: When the response carries no text.
        """

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient`` configured with our timeout and transport."""
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            transport=self.transport,
        )

    def _failure(self, message: str, status_code: int | None = None) -> ArchitectError:
        """Classify a failed request as a rate limit or a generic transport error."""
        if status_code == 429 or looks_rate_limited(message):
            return RateLimitError(self.name, message)
        return TransportError(self.display_name, message, status_code=status_code)

    async def _post_json(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> Any:
        """POST *payload* as JSON and return the decoded JSON body."""
        try:
            async with self._client() as client:
                response = await client.post(url, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            raise TransportError(
                self.display_name, f"request timed out after {self.timeout}s."
            ) from exc
        except httpx.ConnectError as exc:
            raise TransportError(
                self.display_name, f"cannot connect to {url}: {exc}"
            ) from exc
        except httpx.HTTPError as exc:
            raise self._failure(str(exc) or exc.__class__.__name__) from exc

        if not response.is_success:
            raise self._failure(
                f"HTTP {response.status_code} - {response.text[:500]}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(
                self.display_name, f"response body is not JSON: {response.text[:200]}"
            ) from exc
