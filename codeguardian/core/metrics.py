"""Size, complexity and duplication metrics plus a quality gate.

The formulas are heuristics over raw text, not a parser. They exist to give a
report a rough quality picture next to the findings.
"""

from __future__ import annotations

import math
import re
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

from .languages import HASH_COMMENT_LANGUAGES, comment_prefix
from .models import Finding, IssueType

DUPLICATION_BLOCK_SIZE = 6

_BRACE_DECISIONS = [
    re.compile(r"\bif\s*\("),
    re.compile(r"\bwhile\s*\("),
    re.compile(r"\bfor\s*\("),
    re.compile(r"\bcase\s+"),
    re.compile(r"\bcatch\s*\("),
    re.compile(r"&&"),
    re.compile(r"\|\|"),
    re.compile(r"\?(?![.?])"),
]

_HASH_DECISIONS = [
    re.compile(r"\b(?:if|elif)\b"),
    re.compile(r"\bwhile\b"),
    re.compile(r"\bfor\b"),
    re.compile(r"\bexcept\b"),
    re.compile(r"\b(?:and|or)\b"),
]

_BRACE_CONTROL = re.compile(r"\b(?:if|else|while|for|switch|case|catch)\b")
_HASH_CONTROL = re.compile(r"^\s*(?:if|elif|else|while|for|except|with)\b")
_BRACE_LOGICAL = re.compile(r"&&|\|\|")
_HASH_LOGICAL = re.compile(r"\b(?:and|or)\b")

_TEST_CALL = re.compile(r"\b(?:describe|it|test|expect)\s*\(", re.IGNORECASE)
_TEST_CASE = re.compile(r"\b(?:it|test)\s*\(", re.IGNORECASE)
_FUNCTION = re.compile(r"\bfunction\s+\w+", re.IGNORECASE)
_PY_TEST_CASE = re.compile(r"^[ \t]*(?:async\s+)?def\s+test\w*\s*\(", re.MULTILINE)
_PY_FUNCTION = re.compile(r"^[ \t]*(?:async\s+)?def\s+\w+", re.MULTILINE)


@dataclass(frozen=True)
class CodeMetrics:
    lines_of_code: int = 0
    comment_lines: int = 0
    blank_lines: int = 0
    cyclomatic_complexity: int = 1
    cognitive_complexity: int = 0
    duplicated_blocks: int = 0
    duplicated_lines: int = 0
    maintainability_index: float = 100.0
    technical_debt_minutes: int = 0
    estimated_test_coverage: int = 0

    @property
    def technical_debt_ratio(self) -> float:
        """Debt as a percentage of the estimated cost to write the code."""

        if self.lines_of_code == 0:
            return 0.0
        return self.technical_debt_minutes / (self.lines_of_code * 0.06) * 100

    @property
    def duplicated_density(self) -> float:
        if self.lines_of_code == 0:
            return 0.0
        return self.duplicated_lines / self.lines_of_code * 100

    def to_dict(self) -> Dict[str, float]:
        data = asdict(self)
        data["maintainability_index"] = round(self.maintainability_index, 1)
        data["technical_debt_ratio"] = round(self.technical_debt_ratio, 1)
        data["duplicated_density"] = round(self.duplicated_density, 1)
        return data


def cyclomatic_complexity(text: str, language: str = "typescript") -> int:
    patterns = _HASH_DECISIONS if language in HASH_COMMENT_LANGUAGES else _BRACE_DECISIONS
    return 1 + sum(len(p.findall(text)) for p in patterns)


def cognitive_complexity(lines: Sequence[str], language: str = "typescript") -> int:
    """Control structures cost 1 plus their nesting depth; logical operators cost 1."""

    complexity = 0
    if language in HASH_COMMENT_LANGUAGES:
        base_indent = None
        for line in lines:
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            indent = len(line) - len(line.lstrip())
            if base_indent is None:
                base_indent = indent
            if _HASH_CONTROL.match(line):
                complexity += 1 + max(0, (indent - base_indent) // 4)
            complexity += len(_HASH_LOGICAL.findall(line))
        return complexity

    nesting = 0
    for line in lines:
        if "{" in line:
            nesting += 1
        if "}" in line:
            nesting = max(0, nesting - 1)
        if _BRACE_CONTROL.search(line):
            complexity += 1 + nesting
        complexity += len(_BRACE_LOGICAL.findall(line))
    return complexity


def analyze_duplication(
    lines: Sequence[str], language: str = "typescript", block_size: int = DUPLICATION_BLOCK_SIZE
) -> Tuple[int, int]:
    """Count repeated windows of ``block_size`` lines. Returns (blocks, lines)."""

    prefix = comment_prefix(language)
    seen: Dict[str, int] = {}
    duplicated_blocks = 0
    duplicated_lines = 0
    for i in range(0, len(lines) - block_size + 1):
        window = [line.strip() for line in lines[i : i + block_size]]
        block = "\n".join(line for line in window if line and not line.startswith(prefix))
        if not block:
            continue
        count = seen.get(block, 0)
        seen[block] = count + 1
        if count == 1:
            duplicated_blocks += 1
            duplicated_lines += block_size
        elif count > 1:
            duplicated_lines += block_size
    return duplicated_blocks, duplicated_lines


def maintainability_index(loc: int, complexity: int, comments: int, code_smells: int) -> float:
    if loc == 0:
        return 100.0
    halstead_volume = math.log(loc + 1) * 10
    comment_ratio = comments / (loc + comments)
    mi = max(
        0.0,
        (171 - 5.2 * math.log(halstead_volume) - 0.23 * complexity - 16.2 * math.log(loc)) * 100 / 171,
    )
    mi += comment_ratio * 5
    mi -= min(30, code_smells * 2)
    return max(0.0, min(100.0, mi))


def estimate_test_coverage(code: str, language: str = "typescript") -> int:
    """Rough coverage percentage: test cases per declared function, capped at 100.

    Files without any test calls score 0. In Python, ``test`` functions are
    counted against the other functions; a module of only tests scores 100.
    """

    if language == "python":
        tests = len(_PY_TEST_CASE.findall(code))
        functions = len(_PY_FUNCTION.findall(code)) - tests
        if tests == 0:
            return 0
        return 100 if functions <= 0 else min(100, round(tests / functions * 100))
    if not _TEST_CALL.search(code):
        return 0
    functions = len(_FUNCTION.findall(code))
    if functions == 0:
        return 0
    return min(100, round(len(_TEST_CASE.findall(code)) / functions * 100))


def compute_metrics(code: str, language: str, findings: Iterable[Finding] = ()) -> CodeMetrics:
    lines = code.split("\n")
    prefix = comment_prefix(language)
    blank = sum(1 for line in lines if not line.strip())
    comments = sum(1 for line in lines if line.strip().startswith(prefix))
    loc = len(lines) - blank - comments
    findings = list(findings)
    smells = sum(1 for f in findings if f.issue_type == IssueType.CODE_SMELL)
    cyclomatic = cyclomatic_complexity(code, language)
    blocks, dup_lines = analyze_duplication(lines, language)
    return CodeMetrics(
        lines_of_code=loc,
        comment_lines=comments,
        blank_lines=blank,
        cyclomatic_complexity=cyclomatic,
        cognitive_complexity=cognitive_complexity(lines, language),
        duplicated_blocks=blocks,
        duplicated_lines=dup_lines,
        maintainability_index=maintainability_index(loc, cyclomatic, comments, smells),
        technical_debt_minutes=sum(f.remediation_minutes for f in findings),
        estimated_test_coverage=estimate_test_coverage(code, language),
    )


def aggregate_metrics(metrics: Iterable[CodeMetrics]) -> CodeMetrics:
    items = list(metrics)
    if not items:
        return CodeMetrics()
    return CodeMetrics(
        lines_of_code=sum(m.lines_of_code for m in items),
        comment_lines=sum(m.comment_lines for m in items),
        blank_lines=sum(m.blank_lines for m in items),
        cyclomatic_complexity=sum(m.cyclomatic_complexity for m in items),
        cognitive_complexity=sum(m.cognitive_complexity for m in items),
        duplicated_blocks=sum(m.duplicated_blocks for m in items),
        duplicated_lines=sum(m.duplicated_lines for m in items),
        maintainability_index=sum(m.maintainability_index for m in items) / len(items),
        technical_debt_minutes=sum(m.technical_debt_minutes for m in items),
        estimated_test_coverage=round(sum(m.estimated_test_coverage for m in items) / len(items)),
    )


@dataclass(frozen=True)
class QualityCondition:
    metric: str
    passed: bool
    value: float
    threshold: float

    @property
    def status(self) -> str:
        return "OK" if self.passed else "ERROR"

    def to_dict(self) -> Dict[str, object]:
        return {"metric": self.metric, "status": self.status, "value": self.value, "threshold": self.threshold}


@dataclass(frozen=True)
class QualityGate:
    passed: bool
    conditions: Tuple[QualityCondition, ...]
    ratings: Dict[str, str]

    def to_dict(self) -> Dict[str, object]:
        return {
            "passed": self.passed,
            "conditions": [c.to_dict() for c in self.conditions],
            "ratings": dict(self.ratings),
        }


def evaluate_quality_gate(result) -> QualityGate:
    totals = aggregate_metrics(result.metrics.values())
    by_type = result.summary.by_type
    vulnerabilities = by_type.get(IssueType.VULNERABILITY.value, 0)
    bugs = by_type.get(IssueType.BUG.value, 0)
    smells = by_type.get(IssueType.CODE_SMELL.value, 0)
    conditions: List[QualityCondition] = [
        QualityCondition("New Vulnerabilities", vulnerabilities == 0, vulnerabilities, 0),
        QualityCondition("New Bugs", bugs <= 5, bugs, 5),
        QualityCondition(
            "Maintainability Index",
            totals.maintainability_index >= 65,
            round(totals.maintainability_index, 1),
            65,
        ),
        QualityCondition(
            "Technical Debt Ratio",
            totals.technical_debt_ratio <= 5,
            round(totals.technical_debt_ratio, 1),
            5,
        ),
        QualityCondition("Code Smells", smells <= 10, smells, 10),
        QualityCondition(
            "Duplicated Lines Density",
            totals.duplicated_density <= 3,
            round(totals.duplicated_density, 1),
            3,
        ),
    ]
    ratings = {
        "maintainability": maintainability_rating(totals.maintainability_index),
        "reliability": reliability_rating(bugs),
        "security": security_rating(vulnerabilities),
    }
    return QualityGate(
        passed=all(c.passed for c in conditions),
        conditions=tuple(conditions),
        ratings=ratings,
    )


def maintainability_rating(index: float) -> str:
    if index >= 80:
        return "A"
    if index >= 65:
        return "B"
    if index >= 50:
        return "C"
    if index >= 35:
        return "D"
    return "E"


def reliability_rating(bugs: int) -> str:
    return _count_rating(bugs, (0, 3, 7, 15))


def security_rating(vulnerabilities: int) -> str:
    return _count_rating(vulnerabilities, (0, 2, 5, 10))


def _count_rating(count: int, bounds: Tuple[int, int, int, int]) -> str:
    for letter, bound in zip("ABCD", bounds):
        if count <= bound:
            return letter
    return "E"
