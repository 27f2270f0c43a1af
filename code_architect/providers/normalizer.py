"""Turn raw provider text into parsed JSON.

Chat backends frequently wrap their JSON in a markdown code fence even when
told not to.  Only a fence that opens the text *and* one that closes it are
removed; fences occurring inside the payload (for example inside a file's
content) are left alone.
"""

from __future__ import annotations

import json
import re
from typing import Any

from code_architect.errors import EmptyResponseError, InvalidJsonError

_FENCE = "```"
_OPENING_FENCE = re.compile(r"\A```[\w.+-]*[ \t]*")


def strip_code_fences(text: str) -> str:
    """Remove a leading and trailing markdown fence from *text*.

    Examples::

        strip_code_fences('```json\\n{"a": 1}\\n```') -> '{"a": 1}'
        strip_code_fences('{"a": 1}')                 -> '{"a": 1}'
    """
    cleaned = text.strip()
    if len(cleaned) >= 2 * len(_FENCE) and cleaned.startswith(_FENCE) and cleaned.endswith(_FENCE):
        cleaned = _OPENING_FENCE.sub("", cleaned, count=1)
        cleaned = cleaned[: -len(_FENCE)]
        cleaned = cleaned.strip()
    return cleaned


def normalize_response(raw_text: str | None) -> Any:
    """Strip formatting wrappers from *raw_text* and parse it as JSON.

    No field validation happens here; the blueprint generator checks the
    shape of the parsed value.

    Raises:
        EmptyResponseError: If *raw_text* is empty or ``None``.
        InvalidJsonError: If the cleaned text is not valid JSON.  The
            original provider text is kept on ``raw_text``.
    """
    if not raw_text or not raw_text.strip():
        raise EmptyResponseError("Empty response from AI.")

    cleaned = strip_code_fences(raw_text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise InvalidJsonError(raw_text, reason=str(exc)) from exc
