"""Known-safe rewrites for findings whose rule carries a ``Fix``."""

from __future__ import annotations

import re
from typing import List, Mapping, Optional

from .catalog import RuleCatalog, default_catalog
from .diff import generate_diff
from .models import Finding, FixSuggestion, ScanResult


def suggest_fix(
    finding: Finding, code: str, catalog: Optional[RuleCatalog] = None
) -> Optional[FixSuggestion]:
    rule = (catalog or default_catalog()).get(finding.rule_id)
    if rule is None or rule.fix is None:
        return None
    lines = code.split("\n")
    if not 1 <= finding.line <= len(lines):
        return None
    original = lines[finding.line - 1]
    suggested = re.sub(rule.fix.pattern, rule.fix.replacement, original)
    if suggested == original:
        return None
    return FixSuggestion(
        rule_id=finding.rule_id,
        file=finding.file,
        line=finding.line,
        original=original,
        suggested=suggested,
        description=rule.fix.description or rule.title,
        diff=tuple(generate_diff(original, suggested)),
    )


def suggest_fixes(
    result: ScanResult, sources: Mapping[str, str], catalog: Optional[RuleCatalog] = None
) -> List[FixSuggestion]:
    """One suggestion per fixable finding; ``sources`` maps file name to content."""

    suggestions: List[FixSuggestion] = []
    for finding in result.issues:
        code = sources.get(finding.file)
        if code is None:
            continue
        suggestion = suggest_fix(finding, code, catalog)
        if suggestion is not None:
            suggestions.append(suggestion)
    return suggestions
