from __future__ import annotations

from typing import List

from ..core.models import Category, IssueType, Rule, Severity
from .base import JS_TS, regex

_PERF = dict(category=Category.PERFORMANCE, issue_type=IssueType.CODE_SMELL)

RULES: List[Rule] = [
    Rule(
        id="typescript:S6353",
        title="Regular expressions should not be created in loops",
        description="new RegExp() inside a loop body recompiles the pattern on every iteration.",
        severity=Severity.HIGH,
        languages=JS_TS,
        matcher=regex(r"\b(?:for|while)\s*\([^)]*\)\s*\{[^}]*\bnew\s+RegExp\s*\(", flags=()),
        tags=("regex",),
        remediation_minutes=10,
        **_PERF,
    ),
    Rule(
        id="typescript:S6582",
        title="Array methods should be used efficiently",
        description=".filter().map() walks the array twice; a single reduce or flatMap suffices.",
        severity=Severity.MEDIUM,
        languages=JS_TS,
        matcher=regex(r"\.filter\s*\([^)]*\)\s*\.map\s*\(", flags=()),
        tags=("optimization",),
        remediation_minutes=15,
        **_PERF,
    ),
]
