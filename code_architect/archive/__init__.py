"""Project archive import/export and language classification.

Quick usage::

    from code_architect.archive import decode_archive, encode_archive

    exported = encode_archive("todo-app", blueprint.files)
    decoded = await decode_archive(exported.data, name=exported.filename)
    print(decoded.guessed_name, [f.path for f in decoded.files])
"""

from code_architect.archive.codec import (
    ALLOWED_EXTENSIONS,
    EXCLUDED_SUBSTRINGS,
    decode_archive,
    encode_archive,
    encode_blueprint,
    read_archive_file,
    write_blueprint,
)
from code_architect.archive.languages import (
    classify_extension,
    classify_path,
    display_language,
    extension_of,
)

__all__ = [
    "ALLOWED_EXTENSIONS",
    "EXCLUDED_SUBSTRINGS",
    "classify_extension",
    "classify_path",
    "decode_archive",
    "display_language",
    "encode_archive",
    "encode_blueprint",
    "extension_of",
    "read_archive_file",
    "write_blueprint",
]
