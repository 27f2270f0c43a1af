"""Blueprint generation and enhancement.

Each request runs as one coroutine through the stages
``building_prompt -> awaiting_provider -> normalizing -> success | failed``.
The provider call is the only suspension point.  Nothing is retried; a
failed request raises and the caller may simply try again.

Requests are independent: the generator keeps no per-request state, so
concurrent calls do not interfere.  A caller that needs a deadline or wants
to abandon a request wraps the coroutine in ``asyncio.wait_for`` or cancels
its task, which closes the in-flight HTTP request.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import httpx
from pydantic import ValidationError

from code_architect.archive.languages import classify_path
from code_architect.config import AppSettings
from code_architect.errors import BlueprintShapeError
from code_architect.models import Blueprint, FileRecord, GenerationStage
from code_architect.providers import create_provider, normalize_response

from .prompts import PromptPair, PromptRenderer, build_enhance_prompts, build_generate_prompts

StageCallback = Callable[[GenerationStage], None]

REQUIRED_FIELDS = ("description", "structure", "files")


# ---------------------------------------------------------------------------
# Payload validation
# ---------------------------------------------------------------------------

def to_blueprint(data: Any, project_name: str) -> Blueprint:
    """Validate a parsed provider payload and stamp *project_name* on it.

    Any project name the model chose itself is discarded.  Files without a
    ``language`` are classified from their extension, and when a path occurs
    more than once only its first occurrence is kept.

    Raises:
        BlueprintShapeError: If the payload is not an object, lacks a
            required field, or contains no usable files.
    """
    if not isinstance(data, dict):
        raise BlueprintShapeError("AI response is not a JSON object.")

    missing = [name for name in REQUIRED_FIELDS if data.get(name) is None]
    if missing:
        raise BlueprintShapeError(
            f"AI response is missing required field(s): {', '.join(missing)}."
        )

    raw_files = data["files"]
    if not isinstance(raw_files, list) or not raw_files:
        raise BlueprintShapeError("AI response contains no files.")

    files: list[FileRecord] = []
    seen: set[str] = set()
    for index, raw in enumerate(raw_files, start=1):
        if not isinstance(raw, dict):
            raise BlueprintShapeError(f"File #{index} in the AI response is not an object.")
        path = raw.get("path")
        if not isinstance(path, str) or not path.strip():
            raise BlueprintShapeError(f"File #{index} in the AI response has no path.")
        path = path.strip()
        if path in seen:
            continue

        content = raw.get("content")
        if content is None:
            content = ""
        if not isinstance(content, str):
            raise BlueprintShapeError(f"File {path!r} has non-text content.")
        language = str(raw.get("language") or "").strip().lower() or classify_path(path)

        try:
            record = FileRecord(path=path, content=content, language=language)
        except ValidationError as exc:
            reason = exc.errors()[0].get("msg", "invalid file")
            raise BlueprintShapeError(f"File {path!r} is invalid: {reason}") from exc

        seen.add(path)
        files.append(record)

    return Blueprint(
        project_name=project_name,
        description=str(data["description"]),
        structure=str(data["structure"]),
        files=files,
    )


# ---------------------------------------------------------------------------
# BlueprintGenerator
# ---------------------------------------------------------------------------

class BlueprintGenerator:
    """Builds prompts, calls the active provider, and normalises the answer.

    Parameters
    ----------
    transport:
        Optional ``httpx`` transport handed to every provider adapter.
    on_stage:
        Callback invoked with each :class:`GenerationStage` a request enters.
    renderer:
        Prompt renderer; defaults to the packaged templates.
    """

    def __init__(
        self,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        on_stage: StageCallback | None = None,
        renderer: PromptRenderer | None = None,
    ) -> None:
        self.transport = transport
        self.on_stage = on_stage
        self.renderer = renderer

    # -- Public API --------------------------------------------------------

    async def generate(self, project_name: str, stack_id: str, settings: AppSettings) -> Blueprint:
        """Generate a fresh multi-file project for *stack_id*.

        Unknown stack ids fall back to the default stack.
        """
        return await self._run(
            project_name,
            settings,
            lambda: build_generate_prompts(project_name, stack_id, self.renderer),
        )

    async def enhance(
        self,
        files: Sequence[FileRecord],
        instructions: str | None,
        project_name: str,
        settings: AppSettings,
    ) -> Blueprint:
        """Ask for the full, improved version of an existing file set."""
        return await self._run(
            project_name,
            settings,
            lambda: build_enhance_prompts(files, instructions, project_name, self.renderer),
        )

    # -- Internals ---------------------------------------------------------

    def _emit(self, stage: GenerationStage) -> None:
        if self.on_stage is not None:
            self.on_stage(stage)

    async def _run(
        self,
        project_name: str,
        settings: AppSettings,
        build_prompts: Callable[[], PromptPair],
    ) -> Blueprint:
        self._emit(GenerationStage.BUILDING_PROMPT)
        try:
            provider = create_provider(settings, transport=self.transport)
            prompts = build_prompts()

            self._emit(GenerationStage.AWAITING_PROVIDER)
            raw_text = await provider.call(prompts.system_instruction, prompts.user_prompt)

            self._emit(GenerationStage.NORMALIZING)
            blueprint = to_blueprint(normalize_response(raw_text), project_name)
        except BaseException:
            self._emit(GenerationStage.FAILED)
            raise

        self._emit(GenerationStage.SUCCESS)
        return blueprint


# ---------------------------------------------------------------------------
# Convenience wrappers
# ---------------------------------------------------------------------------

async def generate_blueprint(
    project_name: str,
    stack_id: str,
    settings: AppSettings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Blueprint:
    """Shortcut for ``BlueprintGenerator().generate(...)``."""
    return await BlueprintGenerator(transport=transport).generate(project_name, stack_id, settings)


async def enhance_blueprint(
    files: Sequence[FileRecord],
    instructions: str | None,
    project_name: str,
    settings: AppSettings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Blueprint:
    """Shortcut for ``BlueprintGenerator().enhance(...)``."""
    return await BlueprintGenerator(transport=transport).enhance(
        files, instructions, project_name, settings
    )
