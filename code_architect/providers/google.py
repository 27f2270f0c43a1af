"""Google Generative Language API backend.

Requests JSON output constrained by a response schema, so the returned text
is expected to already be a syntactically valid blueprint object.
"""

from __future__ import annotations

from typing import Any

import httpx

from code_architect.config import ProviderConfig
from code_architect.errors import EmptyResponseError

from .base import ProviderAdapter

GOOGLE_API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"

FILE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "path": {"type": "STRING", "description": "Relative file path (e.g., src/App.tsx)"},
        "content": {"type": "STRING", "description": "The full source code content of the file"},
        "language": {
            "type": "STRING",
            "description": "The programming language (e.g., typescript, json, css)",
        },
    },
    "required": ["path", "content", "language"],
}

BLUEPRINT_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "description": {
            "type": "STRING",
            "description": "A brief technical summary of the generated architecture.",
        },
        "structure": {
            "type": "STRING",
            "description": "A visual tree string representation of the folder structure.",
        },
        "files": {
            "type": "ARRAY",
            "items": FILE_SCHEMA,
            "description": "List of essential files to bootstrap the project.",
        },
    },
    "required": ["description", "structure", "files"],
}


class GoogleProvider(ProviderAdapter):
    """Structured-output backend for Gemini models."""

    name = "google"
    display_name = "Google AI"
    default_model = "gemini-2.0-flash"

    def __init__(
        self,
        config: ProviderConfig,
        *,
        timeout: int = 120,
        transport: httpx.AsyncBaseTransport | None = None,
        base_url: str = GOOGLE_API_BASE,
    ) -> None:
        super().__init__(config, timeout=timeout, transport=transport)
        self.base_url = base_url.rstrip("/")

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/{self.model}:generateContent"

    def build_payload(self, system_instruction: str, user_prompt: str) -> dict[str, Any]:
        return {
            "systemInstruction": {"parts": [{"text": system_instruction}]},
            "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": BLUEPRINT_SCHEMA,
            },
        }

    async def call(self, system_instruction: str, user_prompt: str) -> str:
        data = await self._post_json(
            self.endpoint,
            self.build_payload(system_instruction, user_prompt),
            headers={"x-goog-api-key": self.api_key},
        )
        text = self._extract_text(data)
        if not text:
            feedback = data.get("promptFeedback") if isinstance(data, dict) else None
            block_reason = (feedback or {}).get("blockReason")
            if block_reason:
                raise EmptyResponseError(f"Gemini blocked the request ({block_reason}).")
            raise EmptyResponseError("No response generated from Gemini.")
        return text

    @staticmethod
    def _extract_text(data: Any) -> str:
        """Join the text parts of the first candidate.

        ``generateContent`` puts the output in
        ``candidates[0].content.parts[*].text``.
        """
        if not isinstance(data, dict):
            return ""
        candidates = data.get("candidates") or []
        if not candidates or not isinstance(candidates[0], dict):
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts if isinstance(part, dict))
