"""Language detection from file names."""

from __future__ import annotations

from pathlib import PurePosixPath

FALLBACK_LANGUAGE = "javascript"

EXTENSION_LANGUAGES: dict[str, str] = {
    "ts": "typescript",
    "tsx": "typescript",
    "py": "python",
    "html": "html",
    "htm": "html",
    "css": "css",
    "json": "json",
    "md": "markdown",
}


def detect_language(filename: str) -> str:
    """Map a file name to a language tag by its extension (case-insensitive).

    Unknown or missing extensions map to javascript.
    """
    suffix = PurePosixPath(filename.replace("\\", "/")).suffix.lstrip(".").lower()
    return EXTENSION_LANGUAGES.get(suffix, FALLBACK_LANGUAGE)
