import math

import pytest

from codeguardian.core.models import (
    Category,
    Diagnostic,
    DiagnosticKind,
    Finding,
    IssueType,
    Matcher,
    Rule,
    ScanResult,
    Severity,
    SourceFile,
)


def _finding(rule_id="typescript:S2077", severity=Severity.CRITICAL, start=0, file="a.ts", minutes=10):
    return Finding(
        rule_id=rule_id,
        file=file,
        line=1,
        column=start + 1,
        start=start,
        end=start + 5,
        snippet="x",
        severity=severity,
        category=Category.SECURITY,
        issue_type=IssueType.VULNERABILITY,
        message="m",
        remediation_minutes=minutes,
    )


@pytest.mark.parametrize(
    "score, expected",
    [
        (10.0, Severity.CRITICAL),
        (9.0, Severity.CRITICAL),
        (8.99, Severity.HIGH),
        (7.0, Severity.HIGH),
        (4.0, Severity.MEDIUM),
        (3.9, Severity.LOW),
        (1.0, Severity.LOW),
        (0.2, Severity.LOW),
    ],
)
def test_severity_from_score_bands(score, expected):
    assert Severity.from_score(score) is expected


@pytest.mark.parametrize("bad", [-1, math.nan])
def test_severity_from_score_rejects_invalid(bad):
    with pytest.raises(ValueError):
        Severity.from_score(bad)


def test_severity_from_label_accepts_legacy_levels():
    assert Severity.from_label("Blocker") is Severity.CRITICAL
    assert Severity.from_label("MAJOR") is Severity.HIGH
    assert Severity.from_label("minor") is Severity.MEDIUM
    assert Severity.from_label("Info") is Severity.LOW
    assert Severity.from_label(" high ") is Severity.HIGH
    with pytest.raises(ValueError):
        Severity.from_label("urgent")


def test_summary_is_derived_from_issues():
    issues = [
        _finding(start=0),
        _finding(start=10, severity=Severity.LOW, rule_id="common:S5332", minutes=5),
        _finding(start=20),
    ]
    result = ScanResult(issues=issues)

    assert result.summary.total == 3
    assert result.summary.by_severity == {"critical": 2, "high": 0, "medium": 0, "low": 1}
    assert result.summary.by_rule == {"typescript:S2077": 2, "common:S5332": 1}
    assert result.summary.by_category == {"security": 3}
    assert result.summary.technical_debt_minutes == 25
    assert isinstance(result.issues, tuple)


def test_empty_result_summary_has_all_severities():
    result = ScanResult()
    assert result.summary.as_rows() == [("critical", 0), ("high", 0), ("medium", 0), ("low", 0)]
    assert result.passed()


def test_passed_uses_threshold():
    result = ScanResult(issues=[_finding(severity=Severity.MEDIUM)])
    assert result.passed(Severity.HIGH)
    assert not result.passed(Severity.MEDIUM)


def test_skipped_files_only_lists_skip_diagnostics():
    result = ScanResult(
        diagnostics=[
            Diagnostic("big.js", DiagnosticKind.OVERSIZED, "too big"),
            Diagnostic("a.ts", DiagnosticKind.RULE_ERROR, "bad pattern", rule_id="x:S1"),
            Diagnostic("big.js", DiagnosticKind.OVERSIZED, "too big"),
        ]
    )
    assert result.skipped_files == ["big.js"]


def test_to_dict_serializes_enums():
    data = ScanResult(issues=[_finding()], files_scanned=1).to_dict()
    assert data["issues"][0]["severity"] == "critical"
    assert data["issues"][0]["issue_type"] == "vulnerability"
    assert data["summary"]["total"] == 1
    assert data["partial"] is False


def test_source_file_byte_size_prefers_declared_size():
    assert SourceFile("a.py", "é", "python").byte_size == 2
    assert SourceFile("a.py", "", "python", size=1234).byte_size == 1234


def _rule(**overrides):
    fields = dict(
        id="typescript:S2077",
        title="SQL queries should not be vulnerable to injection attacks",
        description="Use parameterized queries.",
        severity=Severity.CRITICAL,
        languages=frozenset({"typescript"}),
        matcher=Matcher(kind="regex", patterns=("x",)),
        cwe=("CWE-89",),
        owasp=("A03:2021",),
        remediation_minutes=30,
    )
    fields.update(overrides)
    return Rule(**fields)


@pytest.mark.parametrize("minutes, effort", [(5, "Low"), (15, "Low"), (16, "Medium"), (45, "Medium"), (90, "High")])
def test_rule_effort_bands(minutes, effort):
    assert _rule(remediation_minutes=minutes).effort == effort


def test_rule_references_and_recommendation():
    rule = _rule()
    assert rule.references == (
        "https://cwe.mitre.org/data/definitions/89.html",
        "https://owasp.org/Top10/",
        "https://rules.sonarsource.com/typescript/RSPEC-2077",
    )
    assert rule.recommendation == "Use parameterized queries. (Rule: typescript:S2077)"
    assert _rule(id="common:S6418", cwe=(), owasp=()).references == ()


@pytest.mark.parametrize(
    "issue_type, confidence, likelihood",
    [
        (IssueType.VULNERABILITY, 95, "High"),
        (IssueType.BUG, 90, "Medium"),
        (IssueType.SECURITY_HOTSPOT, 80, "Medium"),
        (IssueType.CODE_SMELL, 75, "Low"),
    ],
)
def test_confidence_and_likelihood_follow_issue_type(issue_type, confidence, likelihood):
    rule = _rule(issue_type=issue_type)
    assert rule.confidence == confidence
    assert rule.likelihood == likelihood


def test_finding_from_rule_copies_details():
    rule = _rule(severity=Severity.MEDIUM, tags=("sql",))
    finding = Finding.from_rule(rule, file="a.ts", line=3, column=2, start=10, end=20, snippet="q", context="ctx")
    assert (finding.rule_id, finding.severity, finding.message) == (rule.id, Severity.MEDIUM, rule.title)
    assert finding.description == rule.description
    assert finding.cvss_score == 4.0
    assert finding.priority == 3
    assert finding.impact == "Minor impact on code quality"
    assert finding.effort == "Medium"
    data = finding.to_dict()
    assert data["cwe"] == ["CWE-89"]
    assert data["tags"] == ["sql"]
    assert data["references"][0].endswith("/89.html")
