from __future__ import annotations
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from .metrics import QualityGate, aggregate_metrics
from .models import ScanResult, Severity


class Reporter:
    def __init__(self, out_dir: Path) -> None:
        self.out_dir = out_dir

    def write_all(self, result: ScanResult, quality_gate: Optional[QualityGate] = None) -> Dict[str, Any]:
        self.out_dir.mkdir(parents=True, exist_ok=True)
        artifacts = 0

        payload = result.to_dict()
        if quality_gate is not None:
            payload["quality_gate"] = quality_gate.to_dict()
        (self.out_dir / "findings.json").write_text(json.dumps(payload, indent=2))
        artifacts += 1

        (self.out_dir / "findings.md").write_text(self._findings_markdown(result))
        artifacts += 1

        (self.out_dir / "summary.md").write_text(self._summary_markdown(result, quality_gate))
        artifacts += 1

        # index.json lists what was written
        index = {
            "findings": result.summary.total,
            "files_scanned": result.files_scanned,
            "skipped_files": len(result.skipped_files),
            "diagnostics": len(result.diagnostics),
            "partial": result.partial,
            "artifacts": artifacts + 1,
        }
        (self.out_dir / "index.json").write_text(json.dumps(index, indent=2))
        return index

    def _findings_markdown(self, result: ScanResult) -> str:
        lines = ["# Findings", ""]
        for f in result.issues:
            lines.append(f"- **rule**: `{f.rule_id}` ({f.severity.value})  ")
            lines.append(f"  **file**: {f.file}:{f.line}:{f.column}  ")
            lines.append(f"  **message**: {f.message}  ")
            if f.description:
                lines.append(f"  **description**: {f.description}  ")
            lines.append(f"  **snippet**: `{f.snippet}`  ")
            lines.append(
                f"  **risk**: impact {f.impact}; likelihood {f.likelihood}; "
                f"confidence {f.confidence}%; CVSS {f.cvss_score}  "
            )
            lines.append(f"  **remediation**: {f.effort} effort ({f.remediation_minutes} min), priority {f.priority}  ")
            if f.references:
                lines.append(f"  **references**: {', '.join(f.references)}  ")
            lines.append("")
        if not result.issues:
            lines.append("No findings.")
        return "\n".join(lines)

    def _summary_markdown(self, result: ScanResult, quality_gate: Optional[QualityGate]) -> str:
        summary = result.summary
        lines = ["# Scan Summary", ""]
        if result.partial:
            lines.append("**Partial result: the scan timed out before every file finished.**")
            lines.append("")
        lines.append(f"- files scanned: {result.files_scanned}")
        lines.append(f"- findings: {summary.total}")
        lines.append(f"- technical debt: {summary.technical_debt_minutes} min")
        if result.metrics:
            coverage = aggregate_metrics(result.metrics.values()).estimated_test_coverage
            lines.append(f"- estimated test coverage: {coverage}%")
        lines.append("")

        lines.append("## By severity")
        lines.append("")
        lines.append("| Severity | Count |")
        lines.append("|----------|------:|")
        for severity, count in summary.as_rows():
            lines.append(f"| {severity} | {count} |")
        lines.append("")

        if summary.by_rule:
            lines.append("## By rule")
            lines.append("")
            for rule_id, count in sorted(summary.by_rule.items(), key=lambda kv: (-kv[1], kv[0])):
                lines.append(f"- `{rule_id}`: {count}")
            lines.append("")

        if result.diagnostics:
            lines.append("## Diagnostics")
            lines.append("")
            for diag in result.diagnostics:
                rule = f" [{diag.rule_id}]" if diag.rule_id else ""
                lines.append(f"- {diag.file}: {diag.kind.value}{rule} - {diag.message}")
            lines.append("")

        if quality_gate is not None:
            status = "PASSED" if quality_gate.passed else "FAILED"
            lines.append(f"## Quality gate: {status}")
            lines.append("")
            for condition in quality_gate.conditions:
                lines.append(
                    f"- {condition.metric}: {condition.value} (threshold {condition.threshold}) {condition.status}"
                )
            ratings = ", ".join(f"{k} {v}" for k, v in quality_gate.ratings.items())
            lines.append(f"- ratings: {ratings}")
            lines.append("")
        return "\n".join(lines)


def format_summary_table(
    result: ScanResult, threshold: Severity = Severity.HIGH, max_findings: int = 5
) -> str:
    """Create a human-readable summary table for console output."""

    lines: List[str] = []
    lines.append("Scan Summary")
    lines.append("=" * 40)
    header = f"{'Severity':<10} | {'Count':>5}"
    lines.append(header)
    lines.append("-" * len(header))
    for severity, count in result.summary.as_rows():
        lines.append(f"{severity:<10} | {count:>5}")
    lines.append("-" * len(header))
    status = "PASS" if result.passed(threshold) else "FAIL"
    lines.append(f"Status    : {status}")
    lines.append(f"Findings  : {result.summary.total}")
    lines.append(f"Files     : {result.files_scanned}")
    if result.metrics:
        totals = aggregate_metrics(result.metrics.values())
        lines.append(f"Maint.    : {totals.maintainability_index:.1f}")
        lines.append(f"Tests     : ~{totals.estimated_test_coverage}%")
    if result.skipped_files:
        lines.append(f"Skipped   : {len(result.skipped_files)}")
    if result.partial:
        lines.append("Partial   : yes (timed out)")

    findings = result.top_findings(max_findings)
    if findings:
        lines.append("")
        lines.append("Top Findings")
        lines.append("-" * 40)
        for finding in findings:
            lines.append(f"[{finding.severity.value}] {finding.rule_id} {finding.message}")
            lines.append(f"  Location: {finding.file}:{finding.line}:{finding.column}")
    return "\n".join(lines)
