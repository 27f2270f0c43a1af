"""Prompt construction for blueprint generation and enhancement.

Prompts are Jinja2 templates stored under ``generator/templates/``.  The
:class:`PromptRenderer` loads them and the ``build_*`` helpers assemble the
``(system_instruction, user_prompt)`` pairs sent to a provider.
"""

from __future__ import annotations

from collections.abc import Sequence
from functools import lru_cache
from pathlib import Path
from typing import Any, NamedTuple

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from code_architect.models import FileRecord

# ---------------------------------------------------------------------------
# Stack catalogue
# ---------------------------------------------------------------------------

DEFAULT_STACK = "react-node"

STACK_PROMPTS: dict[str, str] = {
    "react-node": (
        "Use React with TypeScript, TailwindCSS for frontend, and Node.js/Express for backend."
    ),
    "nextjs": "Use Next.js 14+ with App Router, TypeScript, and TailwindCSS.",
    "esp32": (
        "Target ESP32 Microcontrollers using C++ (Arduino Framework) via PlatformIO. "
        'Include "platformio.ini", "src/main.cpp", and header files. Focus on embedded '
        "efficiency, WiFi connection, and sensor handling examples if applicable."
    ),
    "python-fastapi": "Use Python with FastAPI for the backend and a simple HTML/JS frontend.",
    "vue-firebase": "Use Vue 3 (Composition API) and assume Firebase SDK integration.",
    "flutter": "Use Dart and Flutter widgets.",
    "vanilla": "Use vanilla HTML5, CSS3, and modern JavaScript (ES6+).",
}

STACK_LABELS: dict[str, str] = {
    "react-node": "React + Node",
    "esp32": "ESP32 / IoT",
    "nextjs": "Next.js",
    "python-fastapi": "Python FastAPI",
    "vue-firebase": "Vue + Firebase",
    "flutter": "Flutter",
    "vanilla": "HTML/CSS/JS",
}

DEFAULT_ENHANCE_INSTRUCTIONS = "General code quality improvement, optimization, and bug fixing."

TARGET_FILE_RANGE = (8, 15)


def resolve_stack(stack_id: str | None) -> str:
    """Return the instruction text for *stack_id*, falling back to the default stack."""
    return STACK_PROMPTS.get(stack_id or "", STACK_PROMPTS[DEFAULT_STACK])


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


class PromptPair(NamedTuple):
    """System instruction and user prompt for one provider call."""
    system_instruction: str
    user_prompt: str


class PromptRenderer:
    """Renders the prompt templates with request-specific context."""

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            undefined=StrictUndefined,
            keep_trailing_newline=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, template_name: str, context: dict[str, Any]) -> str:
        """Render ``<template_name>.j2`` and strip surrounding whitespace."""
        template = self.env.get_template(f"{template_name}.j2")
        return template.render(**context).strip()


@lru_cache(maxsize=1)
def _default_renderer() -> PromptRenderer:
    return PromptRenderer()


# ---------------------------------------------------------------------------
# Prompt builders
# ---------------------------------------------------------------------------

def build_generate_prompts(
    project_name: str,
    stack_id: str | None,
    renderer: PromptRenderer | None = None,
) -> PromptPair:
    """Build the prompts for a fresh project scaffold."""
    renderer = renderer or _default_renderer()
    min_files, max_files = TARGET_FILE_RANGE
    return PromptPair(
        system_instruction=renderer.render(
            "generate_system", {"min_files": min_files, "max_files": max_files}
        ),
        user_prompt=renderer.render(
            "generate_user",
            {"project_name": project_name, "stack_instruction": resolve_stack(stack_id)},
        ),
    )


def build_enhance_prompts(
    files: Sequence[FileRecord],
    instructions: str | None,
    project_name: str,
    renderer: PromptRenderer | None = None,
) -> PromptPair:
    """Build the prompts asking for an improved version of *files*.

    Each file is rendered as a labelled fenced block.  Blank *instructions*
    fall back to :data:`DEFAULT_ENHANCE_INSTRUCTIONS`.
    """
    renderer = renderer or _default_renderer()
    directive = (instructions or "").strip() or DEFAULT_ENHANCE_INSTRUCTIONS
    return PromptPair(
        system_instruction=renderer.render("enhance_system", {}),
        user_prompt=renderer.render(
            "enhance_user",
            {"project_name": project_name, "instructions": directive, "files": list(files)},
        ),
    )
