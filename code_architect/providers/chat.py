"""OpenAI-compatible chat-completions backends.

These endpoints cannot enforce an output schema, so the system instruction
gets an explicit "JSON only" directive appended and the returned text may
still arrive wrapped in prose or code fences.
"""

from __future__ import annotations

from typing import Any, ClassVar

from code_architect.errors import EmptyResponseError

from .base import ProviderAdapter

JSON_ONLY_DIRECTIVE = "\n\nIMPORTANT: Return ONLY valid JSON."


class ChatCompletionsProvider(ProviderAdapter):
    """Base for providers speaking the ``/chat/completions`` protocol."""

    endpoint: ClassVar[str] = ""

    def build_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def build_payload(self, system_instruction: str, user_prompt: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_instruction + JSON_ONLY_DIRECTIVE},
                {"role": "user", "content": user_prompt},
            ],
        }

    async def call(self, system_instruction: str, user_prompt: str) -> str:
        data = await self._post_json(
            self.endpoint,
            self.build_payload(system_instruction, user_prompt),
            headers=self.build_headers(),
        )

        # Some gateways report upstream failures inside a 200 body.
        error = data.get("error") if isinstance(data, dict) else None
        if error:
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            code = error.get("code") if isinstance(error, dict) else None
            raise self._failure(message, status_code=code if isinstance(code, int) else None)

        content = self._extract_content(data)
        if not content:
            raise EmptyResponseError(f"No content received from {self.display_name}.")
        return content

    @staticmethod
    def _extract_content(data: Any) -> str:
        """Return ``choices[0].message.content`` or ``""`` when absent."""
        if not isinstance(data, dict):
            return ""
        choices = data.get("choices") or []
        if not choices or not isinstance(choices[0], dict):
            return ""
        content = (choices[0].get("message") or {}).get("content")
        return content if isinstance(content, str) else ""


class OpenRouterProvider(ChatCompletionsProvider):
    """OpenRouter gateway to many hosted models."""

    name = "openrouter"
    display_name = "OpenRouter"
    default_model = "openai/gpt-3.5-turbo"
    endpoint = "https://openrouter.ai/api/v1/chat/completions"

    def build_headers(self) -> dict[str, str]:
        headers = super().build_headers()
        headers["X-Title"] = "Code Architect"
        return headers


class GitHubModelsProvider(ChatCompletionsProvider):
    """GitHub Models inference endpoint, authenticated with a GitHub token."""

    name = "github"
    display_name = "GitHub Models"
    default_model = "gpt-4o-mini"
    endpoint = "https://models.inference.ai.azure.com/chat/completions"
