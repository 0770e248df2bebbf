from __future__ import annotations

from typing import List

from ..core.models import Fix, IssueType, Rule, Severity
from .base import JS_TS, regex


RULES: List[Rule] = [
    Rule(
        id="typescript:S4790",
        title="Using weak hashing algorithms is security-sensitive",
        description="MD5 and SHA-1 are broken for security purposes.",
        severity=Severity.CRITICAL,
        languages=JS_TS,
        matcher=regex(r"\bcreateHash\s*\(\s*[\"'`](?:md5|sha1)[\"'`]\s*\)"),
        tags=("cryptography", "weak-crypto", "owasp"),
        cwe=("CWE-327",),
        owasp=("A02:2021",),
        remediation_minutes=15,
        fix=Fix(
            pattern=r"(?i)(createHash\s*\(\s*)([\"'`])(?:md5|sha1)\2",
            replacement=r"\1\2sha256\2",
            description="Use SHA-256",
        ),
    ),
    Rule(
        id="typescript:S5542",
        title="Encryption algorithms should be used with secure mode and padding",
        description="DES, RC4, Blowfish and ECB mode do not protect confidentiality.",
        severity=Severity.CRITICAL,
        languages=JS_TS,
        matcher=regex(
            r"\bcreateCipher(?:iv)?\s*\(\s*[\"'`](?:des|des-ede3?|rc2|rc4|bf|blowfish)[^\"'`]*[\"'`]",
            r"\bcreateCipheriv\s*\(\s*[\"'`][^\"'`]*-ecb[\"'`]",
        ),
        tags=("cryptography", "weak-crypto", "owasp"),
        cwe=("CWE-327",),
        owasp=("A02:2021",),
        remediation_minutes=30,
    ),
    Rule(
        id="typescript:S2245",
        title="Pseudorandom number generators should not be used for security-sensitive values",
        description="Math.random() is not cryptographically secure. Use crypto.randomBytes() or crypto.randomUUID().",
        severity=Severity.HIGH,
        languages=JS_TS,
        matcher=regex(r"\bMath\.random\s*\(\s*\)", flags=()),
        issue_type=IssueType.SECURITY_HOTSPOT,
        tags=("random", "cryptography", "owasp"),
        cwe=("CWE-338",),
        owasp=("A02:2021",),
        remediation_minutes=10,
    ),
]
