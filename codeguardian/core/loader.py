from __future__ import annotations
import importlib
import json
import pkgutil
from pathlib import Path
from typing import Any, Dict, List, Mapping

from .models import Category, Fix, IssueType, Matcher, Rule, Severity


class RulesError(ValueError):
    pass


def discover_rule_packs() -> Dict[str, List[Rule]]:
    """Import every module of ``codeguardian.rules`` and collect its ``RULES``."""

    from .. import rules as rules_pkg  # lazy import
    packs: Dict[str, List[Rule]] = {}
    for m in pkgutil.iter_modules(rules_pkg.__path__, rules_pkg.__name__ + "."):
        module = importlib.import_module(m.name)
        rules = getattr(module, "RULES", None)
        if rules is None:
            continue
        packs[m.name.rsplit(".", 1)[-1]] = list(rules)
    return packs


def load_rules_file(path: str | Path) -> List[Rule]:
    rules_path = Path(path)
    if not rules_path.exists():
        raise RulesError(f"Rules file not found: {rules_path}")

    try:
        raw = json.loads(rules_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise RulesError(f"Rules file is not valid JSON: {exc}") from exc

    if not isinstance(raw, list) or not raw:
        raise RulesError("Rules file must contain a non-empty JSON list")

    return [rule_from_dict(item) for item in raw]


def rule_from_dict(item: Any) -> Rule:
    if not isinstance(item, dict):
        raise RulesError("Each rule must be an object")
    for key in ("id", "title", "severity", "languages", "patterns"):
        if key not in item:
            raise RulesError(f"Rule missing key: {key}")

    rule_id = str(item["id"])
    if ":" not in rule_id:
        raise RulesError(f"Rule id must look like '<language>:<number>': {rule_id}")

    languages = item["languages"]
    patterns = item["patterns"]
    if isinstance(languages, str):
        languages = [languages]
    if isinstance(patterns, str):
        patterns = [patterns]
    if not isinstance(languages, list) or not languages:
        raise RulesError(f"{rule_id}: 'languages' must be a non-empty list")
    if not isinstance(patterns, list):
        raise RulesError(f"{rule_id}: 'patterns' must be a list")

    kind = str(item.get("kind", "regex"))
    if not patterns and kind in ("regex", "line"):
        raise RulesError(f"{rule_id}: at least one pattern is required")
    options = item.get("options", {})
    if not isinstance(options, Mapping):
        raise RulesError(f"{rule_id}: 'options' must be an object")

    try:
        return Rule(
            id=rule_id,
            title=str(item["title"]),
            description=str(item.get("description", "")),
            severity=_parse_severity(item["severity"]),
            languages=frozenset(str(lang).lower() for lang in languages),
            matcher=Matcher(
                kind=kind,
                patterns=tuple(str(p) for p in patterns),
                flags=tuple(str(f).upper() for f in item.get("flags", ["IGNORECASE"])),
                options=dict(options),
            ),
            category=Category(str(item.get("category", "security")).lower()),
            issue_type=IssueType(str(item.get("type", "vulnerability")).lower()),
            tags=tuple(str(t) for t in item.get("tags", [])),
            cwe=tuple(str(c) for c in item.get("cwe", [])),
            remediation_minutes=int(item.get("remediation_minutes", 10)),
            fix=_parse_fix(item.get("fix")),
            allowlist=tuple(str(a) for a in item.get("allowlist", [])),
        )
    except (TypeError, ValueError) as exc:
        raise RulesError(f"{rule_id}: {exc}") from exc


def _parse_severity(value: Any) -> Severity:
    if isinstance(value, bool):
        raise ValueError(f"Invalid severity: {value!r}")
    if isinstance(value, (int, float)):
        return Severity.from_score(value)
    return Severity.from_label(str(value))


def _parse_fix(value: Any) -> Fix | None:
    if value is None:
        return None
    if not isinstance(value, dict) or "pattern" not in value or "replacement" not in value:
        raise ValueError("'fix' must be an object with 'pattern' and 'replacement'")
    return Fix(
        pattern=str(value["pattern"]),
        replacement=str(value["replacement"]),
        description=str(value.get("description", "")),
    )
