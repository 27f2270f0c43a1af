"""Zip import/export for blueprint file lists.

Encoding writes every :class:`FileRecord` as a text entry of a deflated zip.
Decoding reads an uploaded project archive back into file records, keeping
only text files that look like project sources: build output, VCS metadata,
and binary files are skipped and recorded on the result instead of failing
the whole import.
"""

from __future__ import annotations

import asyncio
import io
import zipfile
import zlib
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from rich.markup import escape

from code_architect.errors import ArchiveOpenError
from code_architect.models import (
    Blueprint,
    DecodedArchive,
    ExportedArchive,
    FileRecord,
    SkippedEntry,
    SkipReason,
)
from code_architect.utils import console

from .languages import classify_extension, extension_of

# ---------------------------------------------------------------------------
# Admission rules
# ---------------------------------------------------------------------------

# Plain substring match against the whole entry path.  Note that this also
# excludes names such as ``mybuild.ts`` or ``distance.py``.
EXCLUDED_SUBSTRINGS: tuple[str, ...] = (
    "node_modules",
    ".git",
    "dist",
    "build",
    ".next",
    "__pycache__",
    ".DS_Store",
)

ALLOWED_EXTENSIONS: frozenset[str] = frozenset({
    # source
    ".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx", ".py", ".java", ".kt",
    ".c", ".h", ".cpp", ".cc", ".hpp", ".ino", ".cs", ".go", ".rs", ".php",
    ".rb", ".swift", ".dart", ".sh", ".sql",
    # markup and styles
    ".html", ".htm", ".css", ".scss", ".sass", ".less", ".vue", ".svelte",
    ".xml",
    # config
    ".json", ".yaml", ".yml", ".toml", ".ini", ".cfg", ".conf",
    # docs
    ".md", ".markdown", ".txt",
})

ALLOWED_FILENAME_SUFFIXES: tuple[str, ...] = (
    "Makefile",
    "Dockerfile",
    "Jenkinsfile",
    ".env.example",
)


def is_excluded_path(path: str) -> bool:
    """Return ``True`` if *path* contains any excluded substring."""
    return any(fragment in path for fragment in EXCLUDED_SUBSTRINGS)


def is_allowed_file(path: str) -> bool:
    """Return ``True`` if the extension or filename suffix is admitted."""
    if extension_of(path) in ALLOWED_EXTENSIONS:
        return True
    return path.endswith(ALLOWED_FILENAME_SUFFIXES)


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------

def archive_filename(project_name: str) -> str:
    return f"{project_name}-blueprint.zip"


def encode_archive(project_name: str, files: Iterable[FileRecord]) -> ExportedArchive:
    """Pack *files* into a zip named ``<project_name>-blueprint.zip``.

    One leading ``/`` is stripped from each path so the archive does not
    get an empty root folder entry.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for record in files:
            path = record.path[1:] if record.path.startswith("/") else record.path
            archive.writestr(path, record.content.encode("utf-8"))
    return ExportedArchive(filename=archive_filename(project_name), data=buffer.getvalue())


def encode_blueprint(blueprint: Blueprint) -> ExportedArchive:
    return encode_archive(blueprint.project_name, blueprint.files)


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------

def guess_project_name(archive_name: str) -> str:
    """Strip directories and a trailing ``.zip`` from an archive filename."""
    base = PurePosixPath(archive_name.replace("\\", "/")).name
    if base.lower().endswith(".zip"):
        base = base[: -len(".zip")]
    return base


def _open_zip(data: bytes) -> zipfile.ZipFile:
    try:
        return zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError, OSError) as exc:
        raise ArchiveOpenError(f"Could not open archive: {exc}") from exc


async def decode_archive(data: bytes, name: str = "project.zip") -> DecodedArchive:
    """Decode an uploaded zip into classified file records.

    Entries are visited one at a time in the archive's own order.  Directory
    entries, excluded paths, unsupported extensions, and entries that are
    not UTF-8 text (or are empty, or contain a null byte) are skipped and
    listed on :attr:`DecodedArchive.skipped`.

    Args:
        data: Raw bytes of the archive.
        name: Filename the archive was uploaded under; its base name without
            ``.zip`` becomes the guessed project name.

    Returns:
        A :class:`DecodedArchive` with the admitted files.

    Raises:
        ArchiveOpenError: If *data* is not a readable zip archive.
    """
    archive = await asyncio.to_thread(_open_zip, data)
    result = DecodedArchive(guessed_name=guess_project_name(name))

    with archive:
        for info in archive.infolist():
            path = info.filename
            if info.is_dir():
                continue
            if is_excluded_path(path):
                result.skipped.append(SkippedEntry(path=path, reason=SkipReason.EXCLUDED_PATH))
                continue
            ext = extension_of(path)
            if not is_allowed_file(path):
                result.skipped.append(
                    SkippedEntry(path=path, reason=SkipReason.UNSUPPORTED_EXTENSION)
                )
                continue

            try:
                raw = await asyncio.to_thread(archive.read, info)
                content = raw.decode("utf-8")
            except (
                UnicodeDecodeError,
                zipfile.BadZipFile,
                zlib.error,
                EOFError,
                OSError,
                RuntimeError,
            ) as exc:
                console.print(
                    f"[dim yellow]Skipping binary or unreadable file: {escape(path)} "
                    f"({exc.__class__.__name__})[/dim yellow]"
                )
                result.skipped.append(SkippedEntry(path=path, reason=SkipReason.BINARY_CONTENT))
                continue

            if not content:
                result.skipped.append(SkippedEntry(path=path, reason=SkipReason.EMPTY_CONTENT))
                continue
            if "\x00" in content:
                result.skipped.append(SkippedEntry(path=path, reason=SkipReason.BINARY_CONTENT))
                continue

            result.files.append(
                FileRecord(path=path, content=content, language=classify_extension(ext))
            )

    return result


async def read_archive_file(path: str | Path) -> DecodedArchive:
    """Read a zip from disk and decode it, naming the project after the file."""
    archive_path = Path(path)
    try:
        data = await asyncio.to_thread(archive_path.read_bytes)
    except OSError as exc:
        raise ArchiveOpenError(f"Could not read archive {archive_path}: {exc}") from exc
    return await decode_archive(data, name=archive_path.name)


# ---------------------------------------------------------------------------
# Writing blueprints to disk
# ---------------------------------------------------------------------------

def safe_relative_path(path: str) -> PurePosixPath:
    """Return *path* as a relative posix path, rejecting escapes.

    Raises:
        ValueError: For absolute paths, drive-letter paths, or ``..`` parts.
    """
    normalized = path.replace("\\", "/")
    if normalized.startswith("/"):
        normalized = normalized[1:]
    if normalized.startswith("/") or (len(normalized) > 1 and normalized[1] == ":"):
        raise ValueError(f"Absolute path not allowed: {path}")
    relative = PurePosixPath(normalized)
    if ".." in relative.parts:
        raise ValueError(f"Directory traversal not allowed: {path}")
    if not relative.parts:
        raise ValueError("Empty path")
    return relative


async def write_blueprint(blueprint: Blueprint, output_dir: str | Path) -> list[Path]:
    """Write every file of *blueprint* beneath ``output_dir/<project_name>``.

    The project name and every file path must stay inside *output_dir*.

    Returns:
        The written file paths, in blueprint order.

    Raises:
        ValueError: If the project name or a file path is absolute or
            contains ``..``.
    """
    project_root = Path(output_dir).joinpath(*safe_relative_path(blueprint.project_name).parts)
    written: list[Path] = []
    for record in blueprint.files:
        target = project_root.joinpath(*safe_relative_path(record.path).parts)
        await asyncio.to_thread(_write_file, target, record.content)
        written.append(target)
    return written


def _write_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
