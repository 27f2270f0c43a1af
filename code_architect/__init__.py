"""Code Architect -- AI project blueprint generator.

Generates multi-file project scaffolds with a hosted LLM, improves existing
projects uploaded as zip archives, and keeps a local history of results.

Usage::

    from code_architect import AppSettings, BlueprintGenerator

    settings = AppSettings.from_env()
    blueprint = await BlueprintGenerator().generate("Todo App", "vanilla", settings)
    print(blueprint.structure)
"""

from code_architect.config import AppSettings, ProviderName
from code_architect.generator import BlueprintGenerator, enhance_blueprint, generate_blueprint
from code_architect.models import Blueprint, FileRecord, HistoryItem

__version__ = "0.1.0"

__all__ = [
    "AppSettings",
    "Blueprint",
    "BlueprintGenerator",
    "FileRecord",
    "HistoryItem",
    "ProviderName",
    "enhance_blueprint",
    "generate_blueprint",
]
