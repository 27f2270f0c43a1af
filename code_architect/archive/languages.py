"""Language classification for generated and imported files.

Maps file extensions to the canonical language tags stored on
:class:`~code_architect.models.FileRecord`, and picks a syntax-highlighting
lexer for display from a stored tag plus the file's own extension.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Canonical tags
# ---------------------------------------------------------------------------

PLAINTEXT = "plaintext"

# Several extensions collapse onto one tag; native-code and config files in
# particular share a single tag each.
_EXTENSION_GROUPS: dict[str, tuple[str, ...]] = {
    "typescript": (".ts", ".tsx"),
    "javascript": (".js", ".jsx", ".mjs", ".cjs"),
    "python": (".py",),
    "css": (".css", ".scss", ".sass", ".less"),
    "json": (".json",),
    "html": (".html", ".htm"),
    "cpp": (".cpp", ".cc", ".c", ".h", ".hpp", ".ino", ".cs", ".java"),
    "ini": (".ini", ".yaml", ".yml", ".toml", ".cfg", ".conf"),
    "markdown": (".md", ".markdown"),
}

EXTENSION_LANGUAGES: dict[str, str] = {
    ext: language for language, exts in _EXTENSION_GROUPS.items() for ext in exts
}

# Pygments lexer names used by the terminal viewer, keyed by canonical tag.
_DISPLAY_LEXERS: dict[str, str] = {
    "typescript": "tsx",
    "javascript": "jsx",
    "python": "python",
    "css": "css",
    "json": "json",
    "html": "html",
    "cpp": "cpp",
    "ini": "ini",
    "markdown": "markdown",
}


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def extension_of(path: str) -> str:
    """Return the lower-cased extension of *path*, including the dot.

    The extension is everything after the final ``.`` in the whole path.  A
    path without any dot yields ``"."``, which matches no known extension.

    Examples::

        extension_of("src/App.TSX") -> ".tsx"
        extension_of("Makefile")    -> "."
    """
    if "." not in path:
        return "."
    return "." + path.rsplit(".", 1)[1].lower()


def classify_extension(ext: str) -> str:
    """Map an extension (with or without a leading dot) to a canonical tag.

    Always returns a value; unrecognised extensions map to ``"plaintext"``.
    """
    ext = ext.lower()
    if not ext.startswith("."):
        ext = "." + ext
    return EXTENSION_LANGUAGES.get(ext, PLAINTEXT)


def classify_path(path: str) -> str:
    """Classify a file by the extension of its path."""
    return classify_extension(extension_of(path))


def is_known_language(language: str) -> bool:
    return language in _DISPLAY_LEXERS


def display_language(path: str, language: str = "", *, syntax_highlight: bool = True) -> str:
    """Choose the lexer used to render a file.

    The stored *language* tag wins when it is one of the canonical tags;
    otherwise the file's own extension decides.  Returns ``"text"`` when
    highlighting is disabled or neither source is recognised.
    """
    if not syntax_highlight:
        return "text"
    tag = (language or "").lower()
    if not is_known_language(tag):
        tag = classify_path(path)
    return _DISPLAY_LEXERS.get(tag, "text")
