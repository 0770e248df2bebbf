"""Shared building blocks for rule packs.

Every module in this package that defines a module-level ``RULES`` list is
picked up by ``codeguardian.core.loader.discover_rule_packs``. Rules are plain
records; add one by appending to a pack or by dropping a new module here.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from ..core.models import WILDCARD, Matcher

JS_TS = frozenset({"javascript", "typescript"})
PYTHON = frozenset({"python"})
JAVA = frozenset({"java"})
ANY_LANGUAGE = frozenset({WILDCARD})

SQL_KEYWORDS = r"(?:SELECT|INSERT|UPDATE|DELETE|DROP|MERGE|FROM|WHERE|VALUES)"
SQL_VERBS = r"(?:SELECT|INSERT|UPDATE|DELETE|DROP|MERGE)"
SQL_CLAUSES = r"(?:FROM|WHERE|SET|INTO|VALUES|TABLE)"

# A string literal delimited by ', " or ` on one line; group 1 is the delimiter.
QUOTED = r"([\"'`])(?:(?!\1)[^\n])*\1"

_CONTROL_WORDS = r"(?!(?:if|else|for|while|switch|catch|with|return|function|new|do|try)\b)"

JS_FUNCTION_HEADERS = (
    r"\bfunction\b\s*\*?\s*[\w$]*\s*\([^()]*\)\s*(?::\s*[^{;=]+)?\{",
    r"\b(?:const|let|var)\s+[\w$]+\s*=\s*(?:async\s*)?\([^()]*\)\s*(?::\s*[^{;=]+)?=>\s*\{",
    r"^[ \t]*(?:(?:public|private|protected|static|async|get|set|override)\s+)*"
    + _CONTROL_WORDS
    + r"[\w$]+\s*\([^()]*\)\s*(?::\s*[^{;=]+)?\{",
)

JAVA_METHOD_HEADERS = (
    r"^[ \t]*(?:(?:public|protected|private|static|final|synchronized|abstract|native|default)\s+)*"
    + _CONTROL_WORDS
    + r"(?:<[^>\n]+>\s+)?[\w<>\[\],.?]+(?:\s*<[^>\n]*>)?\s+[\w$]+\s*\([^()]*\)\s*(?:throws\s+[\w.,\s]+)?\{",
)


def regex(*patterns: str, flags: Iterable[str] = ("IGNORECASE",), **options: Any) -> Matcher:
    return Matcher(kind="regex", patterns=tuple(patterns), flags=tuple(flags), options=options)


def lines(
    *patterns: str,
    exclude: Optional[str] = None,
    flags: Iterable[str] = (),
    **options: Any,
) -> Matcher:
    if exclude is not None:
        options["exclude"] = exclude
    return Matcher(kind="line", patterns=tuple(patterns), flags=tuple(flags), options=options)


def function_blocks(headers: Iterable[str], metric: str, maximum: int) -> Matcher:
    return Matcher(
        kind="brace_function",
        patterns=tuple(headers),
        flags=("MULTILINE",),
        options={"metric": metric, "max": maximum},
    )


def python_functions(metric: str, maximum: int) -> Matcher:
    return Matcher(kind="python_ast", options={"metric": metric, "max": maximum})
