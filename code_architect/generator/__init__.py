"""Blueprint generation -- prompts, provider dispatch, and validation.

Quick usage::

    from code_architect.config import AppSettings
    from code_architect.generator import BlueprintGenerator

    settings = AppSettings.from_env()
    blueprint = await BlueprintGenerator().generate("Todo App", "vanilla", settings)
    for file in blueprint.files:
        print(file.path, file.language)
"""

from code_architect.generator.blueprint import (
    BlueprintGenerator,
    enhance_blueprint,
    generate_blueprint,
    to_blueprint,
)
from code_architect.generator.prompts import (
    DEFAULT_STACK,
    STACK_LABELS,
    STACK_PROMPTS,
    PromptPair,
    PromptRenderer,
    build_enhance_prompts,
    build_generate_prompts,
    resolve_stack,
)

__all__ = [
    "DEFAULT_STACK",
    "STACK_LABELS",
    "STACK_PROMPTS",
    "BlueprintGenerator",
    "PromptPair",
    "PromptRenderer",
    "build_enhance_prompts",
    "build_generate_prompts",
    "enhance_blueprint",
    "generate_blueprint",
    "resolve_stack",
    "to_blueprint",
]
