from __future__ import annotations

from typing import List

from ..core.models import Category, IssueType, Rule, Severity
from .base import JS_TS, regex

_RELIABILITY = dict(category=Category.RELIABILITY, issue_type=IssueType.BUG)

RULES: List[Rule] = [
    Rule(
        id="typescript:S2259",
        title="Null pointers should not be dereferenced",
        description="Dereferencing a binding just set to null or undefined fails at runtime.",
        severity=Severity.HIGH,
        languages=JS_TS,
        matcher=regex(r"\b(?:const|let|var)\s+([\w$]+)\s*=\s*(?:null|undefined)\s*;\s*\1\s*\.", flags=()),
        tags=("null-pointer", "bug"),
        cwe=("CWE-476",),
        remediation_minutes=15,
        **_RELIABILITY,
    ),
    Rule(
        id="typescript:S6544",
        title="Promises should not be misused",
        description="A promise chain without .catch() turns rejections into silent failures.",
        severity=Severity.HIGH,
        languages=JS_TS,
        matcher=regex(
            r"\.then\s*\((?:[^()]|\((?:[^()]|\([^()]*\))*\))*\)(?!\s*\.(?:then|catch|finally)\b)",
            flags=(),
        ),
        tags=("promise", "async", "error-handling"),
        remediation_minutes=10,
        **_RELIABILITY,
    ),
    Rule(
        id="typescript:S1143",
        title="Jump statements should not occur in finally blocks",
        description="return or throw inside finally discards the exception or result of the try block.",
        severity=Severity.HIGH,
        languages=JS_TS,
        matcher=regex(r"\bfinally\s*\{[^{}]*\b(?:return|throw)\b", flags=()),
        tags=("error-handling",),
        cwe=("CWE-584",),
        remediation_minutes=15,
        **_RELIABILITY,
    ),
]
