from __future__ import annotations

import math
from collections import Counter
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from .languages import is_supported


WILDCARD = "*"


class Severity(str, Enum):
    """Four-band severity scale used for every finding."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @property
    def score(self) -> float:
        """Representative score for the band."""

        return _SEVERITY_SCORE[self]

    @classmethod
    def from_score(cls, score: float) -> "Severity":
        """Classify a numeric score (CVSS-like, 0-10) into a band.

        Anything below the medium band, including scores under 1.0, is ``low``.
        """

        value = float(score)
        if math.isnan(value) or value < 0:
            raise ValueError(f"Invalid severity score: {score!r}")
        if value >= 9.0:
            return cls.CRITICAL
        if value >= 7.0:
            return cls.HIGH
        if value >= 4.0:
            return cls.MEDIUM
        return cls.LOW

    @classmethod
    def from_label(cls, label: str) -> "Severity":
        key = str(label).strip().lower()
        if key in _LEGACY_LABELS:
            return _LEGACY_LABELS[key]
        raise ValueError(f"Unknown severity label: {label!r}")


_SEVERITY_RANK = {
    Severity.CRITICAL: 3,
    Severity.HIGH: 2,
    Severity.MEDIUM: 1,
    Severity.LOW: 0,
}

_SEVERITY_SCORE = {
    Severity.CRITICAL: 9.0,
    Severity.HIGH: 7.0,
    Severity.MEDIUM: 4.0,
    Severity.LOW: 2.0,
}

# Five-level labels from SonarQube-style rule sets fold into the four bands.
_LEGACY_LABELS = {
    "critical": Severity.CRITICAL,
    "high": Severity.HIGH,
    "medium": Severity.MEDIUM,
    "low": Severity.LOW,
    "blocker": Severity.CRITICAL,
    "major": Severity.HIGH,
    "minor": Severity.MEDIUM,
    "info": Severity.LOW,
}

SEVERITY_ORDER: Tuple[Severity, ...] = (
    Severity.CRITICAL,
    Severity.HIGH,
    Severity.MEDIUM,
    Severity.LOW,
)


class Category(str, Enum):
    SECURITY = "security"
    RELIABILITY = "reliability"
    MAINTAINABILITY = "maintainability"
    PERFORMANCE = "performance"


class IssueType(str, Enum):
    VULNERABILITY = "vulnerability"
    BUG = "bug"
    CODE_SMELL = "code_smell"
    SECURITY_HOTSPOT = "security_hotspot"


_CONFIDENCE = {
    IssueType.VULNERABILITY: 95,
    IssueType.BUG: 90,
    IssueType.SECURITY_HOTSPOT: 80,
    IssueType.CODE_SMELL: 75,
}

_LIKELIHOOD = {
    IssueType.VULNERABILITY: "High",
    IssueType.BUG: "Medium",
    IssueType.SECURITY_HOTSPOT: "Medium",
    IssueType.CODE_SMELL: "Low",
}

_IMPACT = {
    Severity.CRITICAL: "High impact on application security or reliability",
    Severity.HIGH: "Moderate impact on code quality and maintainability",
    Severity.MEDIUM: "Minor impact on code quality",
    Severity.LOW: "Informational - no immediate impact",
}

_PRIORITY = {
    Severity.CRITICAL: 5,
    Severity.HIGH: 4,
    Severity.MEDIUM: 3,
    Severity.LOW: 2,
}

OWASP_TOP10_URL = "https://owasp.org/Top10/"

# Rule id prefixes that have a page on rules.sonarsource.com.
_RSPEC_LANGUAGES = frozenset({"typescript", "javascript", "python", "java"})


@dataclass(frozen=True)
class Matcher:
    """How a rule searches text. ``kind`` selects the matching strategy."""

    kind: str
    patterns: Tuple[str, ...] = ()
    flags: Tuple[str, ...] = ()
    options: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Fix:
    """A known-safe rewrite applied to the line holding a finding."""

    pattern: str
    replacement: str
    description: str = ""


@dataclass(frozen=True)
class Rule:
    id: str
    title: str
    severity: Severity
    languages: FrozenSet[str]
    matcher: Matcher
    category: Category = Category.SECURITY
    issue_type: IssueType = IssueType.VULNERABILITY
    description: str = ""
    tags: Tuple[str, ...] = ()
    cwe: Tuple[str, ...] = ()
    owasp: Tuple[str, ...] = ()
    remediation_minutes: int = 10
    fix: Optional[Fix] = None
    allowlist: Tuple[str, ...] = ()

    def applies_to(self, language: str) -> bool:
        """Named languages always match; the wildcard covers the built-in languages only."""

        return language in self.languages or (WILDCARD in self.languages and is_supported(language))

    @property
    def confidence(self) -> int:
        return _CONFIDENCE[self.issue_type]

    @property
    def likelihood(self) -> str:
        return _LIKELIHOOD[self.issue_type]

    @property
    def impact(self) -> str:
        return _IMPACT[self.severity]

    @property
    def priority(self) -> int:
        return _PRIORITY[self.severity]

    @property
    def effort(self) -> str:
        """Remediation effort band: ``Low`` up to 15 minutes, ``Medium`` up to 45."""

        if self.remediation_minutes <= 15:
            return "Low"
        if self.remediation_minutes <= 45:
            return "Medium"
        return "High"

    @property
    def recommendation(self) -> str:
        return f"{self.description or self.title} (Rule: {self.id})"

    @property
    def references(self) -> Tuple[str, ...]:
        refs = [
            f"https://cwe.mitre.org/data/definitions/{cwe.upper().replace('CWE-', '')}.html"
            for cwe in self.cwe
        ]
        if self.owasp:
            refs.append(OWASP_TOP10_URL)
        prefix, _, key = self.id.partition(":")
        if prefix in _RSPEC_LANGUAGES and key[:1] == "S" and key[1:].isdigit():
            refs.append(f"https://rules.sonarsource.com/{prefix}/RSPEC-{key[1:]}")
        return tuple(refs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "severity": self.severity.value,
            "category": self.category.value,
            "type": self.issue_type.value,
            "languages": sorted(self.languages),
            "tags": list(self.tags),
            "cwe": list(self.cwe),
            "owasp": list(self.owasp),
            "remediation_minutes": self.remediation_minutes,
            "effort": self.effort,
            "cvss_score": self.severity.score,
            "references": list(self.references),
            "fixable": self.fix is not None,
        }


@dataclass(frozen=True)
class Finding:
    rule_id: str
    file: str
    line: int
    column: int
    start: int
    end: int
    snippet: str
    severity: Severity
    category: Category
    issue_type: IssueType
    message: str
    context: str = ""
    remediation_minutes: int = 0
    description: str = ""
    confidence: int = 0
    cvss_score: float = 0.0
    cwe: Tuple[str, ...] = ()
    owasp: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    effort: str = ""
    priority: int = 0
    impact: str = ""
    likelihood: str = ""
    recommendation: str = ""
    references: Tuple[str, ...] = ()

    @classmethod
    def from_rule(
        cls,
        rule: Rule,
        file: str,
        line: int,
        column: int,
        start: int,
        end: int,
        snippet: str,
        context: str = "",
    ) -> "Finding":
        """Build a finding for ``rule``, copying its classification and remediation details."""

        return cls(
            rule_id=rule.id,
            file=file,
            line=line,
            column=column,
            start=start,
            end=end,
            snippet=snippet,
            severity=rule.severity,
            category=rule.category,
            issue_type=rule.issue_type,
            message=rule.title,
            context=context,
            remediation_minutes=rule.remediation_minutes,
            description=rule.description,
            confidence=rule.confidence,
            cvss_score=rule.severity.score,
            cwe=rule.cwe,
            owasp=rule.owasp,
            tags=rule.tags,
            effort=rule.effort,
            priority=rule.priority,
            impact=rule.impact,
            likelihood=rule.likelihood,
            recommendation=rule.recommendation,
            references=rule.references,
        )

    @property
    def span(self) -> Tuple[int, int]:
        return (self.start, self.end)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key in ("cwe", "owasp", "tags", "references"):
            data[key] = list(data[key])
        data["severity"] = self.severity.value
        data["category"] = self.category.value
        data["issue_type"] = self.issue_type.value
        return data


class DiagnosticKind(str, Enum):
    OVERSIZED = "oversized"
    TOO_MANY_LINES = "too_many_lines"
    FILE_LIMIT = "file_limit"
    UNREADABLE = "unreadable"
    RULE_ERROR = "rule_error"
    TIMEOUT = "timeout"
    ERROR = "error"


# Diagnostics that mean the file produced no findings at all.
SKIP_KINDS = frozenset(
    {
        DiagnosticKind.OVERSIZED,
        DiagnosticKind.TOO_MANY_LINES,
        DiagnosticKind.FILE_LIMIT,
        DiagnosticKind.UNREADABLE,
        DiagnosticKind.TIMEOUT,
        DiagnosticKind.ERROR,
    }
)


@dataclass(frozen=True)
class Diagnostic:
    file: str
    kind: DiagnosticKind
    message: str
    rule_id: Optional[str] = None

    @property
    def skipped(self) -> bool:
        return self.kind in SKIP_KINDS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.file,
            "kind": self.kind.value,
            "message": self.message,
            "rule_id": self.rule_id,
        }


@dataclass(frozen=True)
class SourceFile:
    """One file handed to the orchestrator."""

    file_name: str
    content: str
    language: str
    size: Optional[int] = None
    error: Optional[str] = None

    @property
    def byte_size(self) -> int:
        if self.size is not None:
            return self.size
        return len(self.content.encode("utf-8", errors="replace"))


@dataclass(frozen=True)
class Summary:
    by_severity: Mapping[str, int]
    by_rule: Mapping[str, int]
    by_category: Mapping[str, int]
    by_type: Mapping[str, int]
    total: int
    technical_debt_minutes: int

    @classmethod
    def from_issues(cls, issues: Tuple[Finding, ...]) -> "Summary":
        severities = Counter(f.severity.value for f in issues)
        return cls(
            by_severity={sev.value: severities.get(sev.value, 0) for sev in SEVERITY_ORDER},
            by_rule=dict(Counter(f.rule_id for f in issues)),
            by_category=dict(Counter(f.category.value for f in issues)),
            by_type=dict(Counter(f.issue_type.value for f in issues)),
            total=len(issues),
            technical_debt_minutes=sum(f.remediation_minutes for f in issues),
        )

    def as_rows(self) -> List[Tuple[str, int]]:
        return [(sev.value, self.by_severity[sev.value]) for sev in SEVERITY_ORDER]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "by_severity": dict(self.by_severity),
            "by_rule": dict(self.by_rule),
            "by_category": dict(self.by_category),
            "by_type": dict(self.by_type),
            "total": self.total,
            "technical_debt_minutes": self.technical_debt_minutes,
        }


@dataclass(frozen=True)
class ScanResult:
    """Findings for one scan invocation. ``summary`` is always derived from ``issues``."""

    issues: Tuple[Finding, ...] = ()
    diagnostics: Tuple[Diagnostic, ...] = ()
    metrics: Mapping[str, Any] = field(default_factory=dict)
    files_scanned: int = 0
    partial: bool = False
    summary: Summary = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "issues", tuple(self.issues))
        object.__setattr__(self, "diagnostics", tuple(self.diagnostics))
        object.__setattr__(self, "summary", Summary.from_issues(self.issues))

    @property
    def skipped_files(self) -> List[str]:
        seen: Dict[str, None] = {}
        for diag in self.diagnostics:
            if diag.skipped:
                seen.setdefault(diag.file, None)
        return list(seen)

    def passed(self, threshold: Severity = Severity.HIGH) -> bool:
        """True when no finding reaches ``threshold``."""

        return not any(f.severity.rank >= threshold.rank for f in self.issues)

    def top_findings(self, limit: int = 5) -> List[Finding]:
        ordered = sorted(self.issues, key=lambda f: (-f.severity.rank, f.file, f.line))
        return ordered[:limit]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary.to_dict(),
            "issues": [f.to_dict() for f in self.issues],
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "metrics": {name: m.to_dict() for name, m in self.metrics.items()},
            "files_scanned": self.files_scanned,
            "partial": self.partial,
        }


class DiffType(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class DiffLine:
    type: DiffType
    value: str

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.type.value, "value": self.value}


@dataclass(frozen=True)
class FixSuggestion:
    rule_id: str
    file: str
    line: int
    original: str
    suggested: str
    description: str
    diff: Tuple[DiffLine, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "file": self.file,
            "line": self.line,
            "original": self.original,
            "suggested": self.suggested,
            "description": self.description,
            "diff": [d.to_dict() for d in self.diff],
        }
