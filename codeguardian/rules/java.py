from __future__ import annotations

from typing import List

from ..core.models import Category, Fix, IssueType, Rule, Severity
from .base import JAVA, JAVA_METHOD_HEADERS, function_blocks, lines, regex

_SMELL = dict(category=Category.MAINTAINABILITY, issue_type=IssueType.CODE_SMELL)

RULES: List[Rule] = [
    Rule(
        id="java:S2077",
        title="SQL queries should not be vulnerable to injection attacks",
        description="Concatenating input into JDBC/JPA query strings allows SQL injection. Use PreparedStatement parameters.",
        severity=Severity.CRITICAL,
        languages=JAVA,
        matcher=regex(
            r"\b(?:executeQuery|executeUpdate|execute|prepareStatement|addBatch|createQuery|createNativeQuery)"
            r"\s*\(\s*\"[^\"\n]*\"\s*\+",
            r"\bString\s+\w*(?:query|sql)\w*\s*=\s*\"[^\"\n]*\b(?:SELECT|INSERT|UPDATE|DELETE)\b[^\"\n]*\"\s*\+",
        ),
        tags=("sql", "injection", "owasp"),
        cwe=("CWE-89",),
        owasp=("A03:2021",),
        remediation_minutes=30,
    ),
    Rule(
        id="java:S4721",
        title="OS commands should not be vulnerable to injection attacks",
        description="Runtime.exec and ProcessBuilder with concatenated input allow arbitrary command execution.",
        severity=Severity.CRITICAL,
        languages=JAVA,
        matcher=regex(
            r"\bRuntime\.getRuntime\s*\(\s*\)\s*\.exec\s*\(",
            r"\bnew\s+ProcessBuilder\s*\([^)\n]*\+",
            flags=(),
        ),
        tags=("command-injection", "injection"),
        cwe=("CWE-78",),
        owasp=("A03:2021",),
        remediation_minutes=45,
    ),
    Rule(
        id="java:S4790",
        title="Using weak hashing algorithms is security-sensitive",
        description="MD2, MD5 and SHA-1 are broken for security purposes.",
        severity=Severity.CRITICAL,
        languages=JAVA,
        matcher=regex(r"\bMessageDigest\.getInstance\s*\(\s*\"(?:MD2|MD5|SHA-?1)\""),
        tags=("cryptography", "weak-crypto"),
        cwe=("CWE-327",),
        owasp=("A02:2021",),
        remediation_minutes=15,
        fix=Fix(
            pattern=r"(?i)(MessageDigest\.getInstance\s*\(\s*)\"(?:MD2|MD5|SHA-?1)\"",
            replacement=r'\1"SHA-256"',
            description="Use SHA-256",
        ),
    ),
    Rule(
        id="java:S2245",
        title="Pseudorandom number generators should not be used for security-sensitive values",
        description="java.util.Random is predictable. Use java.security.SecureRandom.",
        severity=Severity.HIGH,
        languages=JAVA,
        matcher=regex(r"\bnew\s+Random\s*\(", flags=()),
        issue_type=IssueType.SECURITY_HOTSPOT,
        tags=("random", "cryptography"),
        cwe=("CWE-338",),
        remediation_minutes=10,
        fix=Fix(
            pattern=r"\bnew\s+Random\s*\(\s*\)",
            replacement="new SecureRandom()",
            description="Use SecureRandom",
        ),
    ),
    Rule(
        id="java:S106",
        title="Standard outputs should not be used directly to log anything",
        description="Use a logger instead of System.out / System.err.",
        severity=Severity.MEDIUM,
        languages=JAVA,
        matcher=lines(r"\bSystem\.(?:out|err)\.print(?:ln|f)?\s*\(", exclude=r"^\s*(?://|\*)"),
        tags=("bad-practice",),
        remediation_minutes=2,
        **_SMELL,
    ),
    Rule(
        id="java:S1148",
        title="Throwable.printStackTrace() should not be called",
        description="Stack traces printed to stderr bypass logging and can leak internals.",
        severity=Severity.MEDIUM,
        languages=JAVA,
        matcher=regex(r"\.printStackTrace\s*\(\s*\)", flags=()),
        tags=("error-handling",),
        cwe=("CWE-489",),
        remediation_minutes=5,
        **_SMELL,
    ),
    Rule(
        id="java:S3776",
        title="Cognitive Complexity of methods should not be too high",
        description="Methods with cognitive complexity above 15 are hard to understand.",
        severity=Severity.HIGH,
        languages=JAVA,
        matcher=function_blocks(JAVA_METHOD_HEADERS, "complexity", 15),
        tags=("brain-overload",),
        remediation_minutes=60,
        **_SMELL,
    ),
    Rule(
        id="java:S138",
        title="Methods should not have too many lines",
        description="Methods longer than 100 lines are difficult to test and maintain.",
        severity=Severity.HIGH,
        languages=JAVA,
        matcher=function_blocks(JAVA_METHOD_HEADERS, "lines", 100),
        tags=("brain-overload",),
        remediation_minutes=90,
        **_SMELL,
    ),
]
