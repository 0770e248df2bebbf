from __future__ import annotations

from typing import List

from ..core.models import Fix, IssueType, Rule, Severity
from .base import JS_TS, regex


RULES: List[Rule] = [
    Rule(
        id="typescript:S5147",
        title="User-provided data should be sanitized before use in HTML",
        description="Writing markup from user-controlled data without sanitization exposes the page to XSS.",
        severity=Severity.CRITICAL,
        languages=JS_TS,
        matcher=regex(
            r"\.(?:innerHTML|outerHTML)\s*\+?=(?!=)",
            r"\bdangerouslySetInnerHTML\s*=\s*\{",
            r"\bdocument\.write(?:ln)?\s*\(",
            r"\.insertAdjacentHTML\s*\(",
            flags=(),
        ),
        tags=("xss", "injection", "owasp", "sans-top25"),
        cwe=("CWE-79",),
        owasp=("A03:2021",),
        remediation_minutes=20,
        fix=Fix(
            pattern=r"\.innerHTML(\s*)=(?!=)",
            replacement=r".textContent\1=",
            description="Assign text with textContent instead of parsing markup",
        ),
    ),
    Rule(
        id="typescript:S2819",
        title="Origins should be verified during cross-origin communications",
        description="postMessage with a '*' target origin delivers the message to any window.",
        severity=Severity.HIGH,
        languages=JS_TS,
        matcher=regex(r"\.postMessage\s*\([^)\n]*,\s*([\"'`])\*\1", flags=()),
        issue_type=IssueType.VULNERABILITY,
        tags=("html5", "cross-origin"),
        cwe=("CWE-345",),
        owasp=("A01:2021",),
        remediation_minutes=15,
    ),
    Rule(
        id="typescript:S5148",
        title="Opening external links without noopener is security-sensitive",
        description="target=\"_blank\" without rel=\"noopener\" gives the opened page access to window.opener.",
        severity=Severity.MEDIUM,
        languages=JS_TS,
        matcher=regex(
            r"<a\b(?=[^>]*\btarget\s*=\s*[\"'{]?_blank)(?![^>]*\brel\s*=\s*[\"'{][^\"'}]*noopener)[^>]*>",
        ),
        issue_type=IssueType.SECURITY_HOTSPOT,
        tags=("html", "tabnabbing"),
        cwe=("CWE-1022",),
        remediation_minutes=5,
    ),
]
