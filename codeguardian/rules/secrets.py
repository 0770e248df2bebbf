from __future__ import annotations

from typing import List

from ..core.models import Category, Fix, IssueType, Rule, Severity
from .base import ANY_LANGUAGE, JS_TS, regex


DEFAULT_ASSIGNMENT_KEYWORDS = [
    r"password",
    r"passwd",
    r"passphrase",
    r"secret",
    r"secret[_-]?key",
    r"client[_-]?secret",
    r"consumer[_-]?secret",
    r"credential(?:s)?",
    r"connection[_-]?string",
    r"api[_-]?key",
    r"access[_-]?key",
    r"auth[_-]?key",
    r"token",
    r"auth[_-]?token",
    r"access[_-]?token",
    r"refresh[_-]?token",
    r"bearer[_-]?token",
    r"session[_-]?token",
    r"private[_-]?key",
    r"encryption[_-]?key",
]

# Quoted literal of at least 8 characters; group 1 is the delimiter.
ASSIGNMENT_VALUE_PATTERN = r"([\"'`])[^\"'`\n]{8,}\1"

TOKEN_PATTERNS = [
    r"\bAKIA[0-9A-Z]{16}\b",  # AWS access key id
    r"(?i)\bxox[baprs]-[A-Za-z0-9\-]{10,}",  # Slack tokens
    r"\bgh[pousr]_[A-Za-z0-9]{36}\b",  # GitHub tokens
    r"\bsk_live_[0-9A-Za-z]{24,}\b",  # Stripe live secret key
    r"\bAIza[0-9A-Za-z\-_]{35}\b",  # Google API key
    r"-----BEGIN (?:RSA |OPENSSH |DSA |EC |PGP )?PRIVATE KEY-----",
]

PLACEHOLDER_VALUES = (
    "example",
    "placeholder",
    "loremipsum",
    "changeme",
    "dummy",
    "xxxxxxxx",
    "<your",
)


def _build_assignment_patterns() -> List[str]:
    """One pattern per keyword: ``<name containing keyword> = "<literal>"``."""

    return [
        rf"(?<![\w.\-])[\w.\-]*(?:{kw})[\w.\-]*[\"']?\s*(?::=|[:=])\s*{ASSIGNMENT_VALUE_PATTERN}"
        for kw in DEFAULT_ASSIGNMENT_KEYWORDS
    ]


RULES: List[Rule] = [
    Rule(
        id="typescript:S6290",
        title="Secrets should not be hard-coded",
        description="Hard-coded credentials can be extracted from source code and used maliciously.",
        severity=Severity.CRITICAL,
        languages=JS_TS | {"python", "java"},
        matcher=regex(*_build_assignment_patterns()),
        category=Category.SECURITY,
        issue_type=IssueType.VULNERABILITY,
        tags=("secrets", "credentials", "owasp"),
        cwe=("CWE-798",),
        owasp=("A07:2021",),
        remediation_minutes=20,
        allowlist=PLACEHOLDER_VALUES,
    ),
    Rule(
        id="common:S6418",
        title="Hard-coded tokens and private keys are security-sensitive",
        description="Values shaped like cloud keys, access tokens or private keys should live in a secret store.",
        severity=Severity.CRITICAL,
        languages=ANY_LANGUAGE,
        matcher=regex(*TOKEN_PATTERNS, flags=()),
        issue_type=IssueType.SECURITY_HOTSPOT,
        tags=("secrets", "credentials"),
        cwe=("CWE-798",),
        owasp=("A07:2021",),
        remediation_minutes=20,
        allowlist=PLACEHOLDER_VALUES,
    ),
    Rule(
        id="common:S5332",
        title="Using clear-text protocols is security-sensitive",
        description="Plain http:// URLs send data unencrypted. Use https:// for anything outside local development.",
        severity=Severity.LOW,
        languages=ANY_LANGUAGE,
        matcher=regex(
            r"([\"'`])http://(?!localhost\b|127\.0\.0\.1\b|0\.0\.0\.0\b|\[::1\])[^\"'`\s]+\1",
            flags=(),
        ),
        issue_type=IssueType.SECURITY_HOTSPOT,
        tags=("cleartext", "network"),
        cwe=("CWE-319",),
        owasp=("A02:2021",),
        remediation_minutes=5,
        fix=Fix(
            pattern=r"([\"'`])http://(?!localhost\b|127\.0\.0\.1\b|0\.0\.0\.0\b|\[::1\])",
            replacement=r"\1https://",
            description="Switch the URL to https://",
        ),
        allowlist=("http://www.w3.org/", "http://schemas."),
    ),
]
