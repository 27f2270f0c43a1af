"""Pydantic v2 models for Code Architect.

Defines the records that flow between the archive codec, the blueprint
generator, and the history store.  Blueprint-shaped models serialise with
camelCase aliases (``projectName``) so persisted history keeps the same JSON
shape as the browser application it replaces; they can be populated by either
the field name or the alias.
"""

from __future__ import annotations

from collections import Counter
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class GenerationStage(str, Enum):
    """Lifecycle of a single generate or enhance request."""
    IDLE = "idle"
    BUILDING_PROMPT = "building_prompt"
    AWAITING_PROVIDER = "awaiting_provider"
    NORMALIZING = "normalizing"
    SUCCESS = "success"
    FAILED = "failed"


class SkipReason(str, Enum):
    """Why an archive entry was left out of a decoded file list."""
    EXCLUDED_PATH = "excluded_path"
    UNSUPPORTED_EXTENSION = "unsupported_extension"
    BINARY_CONTENT = "binary_content"
    EMPTY_CONTENT = "empty_content"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Blueprint models
# ---------------------------------------------------------------------------

class FileRecord(_CamelModel):
    """One generated or imported file."""
    path: str = Field(..., min_length=1, description="Relative posix path, e.g. 'src/App.tsx'")
    content: str = Field(default="", description="UTF-8 text content")
    language: str = Field(default="plaintext", description="Canonical language tag")

    @field_validator("content")
    @classmethod
    def _no_null_bytes(cls, value: str) -> str:
        if "\x00" in value:
            raise ValueError("file content must not contain a null byte")
        return value


class Blueprint(_CamelModel):
    """Normalised result of a generation or enhancement request."""
    project_name: str = Field(..., description="Caller-supplied project name")
    description: str = Field(default="", description="Technical summary of the architecture")
    structure: str = Field(default="", description="Folder tree rendering, display only")
    files: list[FileRecord] = Field(default_factory=list, description="Ordered file list")

    def paths(self) -> list[str]:
        return [f.path for f in self.files]

    def get_file(self, path: str) -> FileRecord | None:
        """Return the file stored at *path*, ignoring one leading slash."""
        wanted = path.lstrip("/")
        for record in self.files:
            if record.path.lstrip("/") == wanted:
                return record
        return None

    def language_counts(self) -> dict[str, int]:
        """Return ``{language: file_count}`` ordered by descending count."""
        return dict(Counter(f.language for f in self.files).most_common())


class HistoryItem(_CamelModel):
    """A blueprint saved after a successful generation or enhancement."""
    id: str = Field(..., description="Unique, time-derived identifier")
    timestamp: int = Field(..., description="Creation time in epoch milliseconds")
    project_name: str = Field(..., description="Project name at creation time")
    blueprint: Blueprint


# ---------------------------------------------------------------------------
# Archive models
# ---------------------------------------------------------------------------

class SkippedEntry(BaseModel):
    """An archive entry that was not admitted into the decoded file list."""
    path: str
    reason: SkipReason


class DecodedArchive(BaseModel):
    """Result of decoding an uploaded project archive."""
    files: list[FileRecord] = Field(default_factory=list)
    guessed_name: str = Field(default="", description="Archive name without its extension")
    skipped: list[SkippedEntry] = Field(default_factory=list)


class ExportedArchive(BaseModel):
    """A named zip blob produced from a blueprint's files."""
    filename: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)
