"""Language labels and extension-based detection."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Dict, Optional, Tuple

UNKNOWN = "unknown"

# label -> extensions
LANGUAGES: Dict[str, Tuple[str, ...]] = {
    "javascript": (".js", ".mjs", ".cjs", ".jsx"),
    "typescript": (".ts", ".tsx", ".mts", ".cts"),
    "python": (".py", ".pyw", ".pyi"),
    "java": (".java",),
    "csharp": (".cs", ".csx"),
    "php": (".php", ".phtml"),
    "ruby": (".rb", ".rake", ".gemspec"),
    "go": (".go",),
    "rust": (".rs",),
    "cpp": (".cpp", ".cxx", ".cc", ".hpp", ".hxx"),
    "c": (".c", ".h"),
    "kotlin": (".kt", ".kts"),
    "swift": (".swift",),
    "scala": (".scala",),
    "shell": (".sh", ".bash", ".zsh"),
}

_BY_EXTENSION: Dict[str, str] = {
    ext: label for label, exts in LANGUAGES.items() for ext in exts
}

# Languages whose line comments start with '#'.
HASH_COMMENT_LANGUAGES = frozenset({"python", "ruby", "shell"})


def is_supported(language: Optional[str]) -> bool:
    return language in LANGUAGES


def normalize(language: Optional[str]) -> str:
    if not language:
        return UNKNOWN
    label = language.strip().lower()
    aliases = {"js": "javascript", "ts": "typescript", "py": "python", "c#": "csharp"}
    return aliases.get(label, label)


def detect_language(file_name: str) -> str:
    suffix = PurePosixPath(file_name.replace("\\", "/")).suffix.lower()
    return _BY_EXTENSION.get(suffix, UNKNOWN)


def comment_prefix(language: str) -> str:
    return "#" if language in HASH_COMMENT_LANGUAGES else "//"
