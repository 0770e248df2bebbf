from __future__ import annotations

from typing import List

from ..core.models import Category, Fix, IssueType, Rule, Severity
from .base import PYTHON, lines, python_functions, regex

_SMELL = dict(category=Category.MAINTAINABILITY, issue_type=IssueType.CODE_SMELL)

RULES: List[Rule] = [
    Rule(
        id="python:S1523",
        title="Dynamically executing code is security-sensitive",
        description="eval() and exec() run arbitrary code.",
        severity=Severity.HIGH,
        languages=PYTHON,
        matcher=regex(r"(?<![\w.])(?:eval|exec)\s*\(", flags=()),
        issue_type=IssueType.SECURITY_HOTSPOT,
        tags=("eval", "code-injection"),
        cwe=("CWE-95",),
        owasp=("A03:2021",),
        remediation_minutes=30,
    ),
    Rule(
        id="python:S4721",
        title="OS commands should not be vulnerable to injection attacks",
        description="os.system, os.popen and subprocess with shell=True hand the string to a shell.",
        severity=Severity.CRITICAL,
        languages=PYTHON,
        matcher=regex(
            r"\bos\.(?:system|popen)\s*\(",
            r"\bsubprocess\.(?:run|call|check_call|check_output|Popen)\s*\([^)]*\bshell\s*=\s*True",
            flags=(),
        ),
        tags=("command-injection", "injection", "owasp"),
        cwe=("CWE-78",),
        owasp=("A03:2021",),
        remediation_minutes=45,
    ),
    Rule(
        id="python:S5135",
        title="Deserialization should not be vulnerable to injection attacks",
        description="pickle, marshal and yaml.load without a safe loader can instantiate arbitrary objects.",
        severity=Severity.CRITICAL,
        languages=PYTHON,
        matcher=lines(
            r"\bpickle\.loads?\s*\(",
            r"\bmarshal\.loads?\s*\(",
            r"\byaml\.load\s*\(",
            exclude=r"Loader\s*=\s*(?:yaml\.)?C?SafeLoader|^\s*#",
        ),
        tags=("deserialization", "owasp"),
        cwe=("CWE-502",),
        owasp=("A08:2021",),
        remediation_minutes=20,
        fix=Fix(
            pattern=r"\byaml\.load\s*\(",
            replacement="yaml.safe_load(",
            description="Use yaml.safe_load",
        ),
    ),
    Rule(
        id="python:S4790",
        title="Using weak hashing algorithms is security-sensitive",
        description="MD5 and SHA-1 are broken for security purposes.",
        severity=Severity.CRITICAL,
        languages=PYTHON,
        matcher=regex(
            r"\bhashlib\.(?:md5|sha1)\s*\(",
            r"\bhashlib\.new\s*\(\s*[\"'](?:md5|sha1)[\"']",
        ),
        tags=("cryptography", "weak-crypto"),
        cwe=("CWE-327",),
        owasp=("A02:2021",),
        remediation_minutes=15,
        fix=Fix(
            pattern=r"\bhashlib\.(?:md5|sha1)\s*\(",
            replacement="hashlib.sha256(",
            description="Use SHA-256",
        ),
    ),
    Rule(
        id="python:S4830",
        title="Server certificates should be verified during SSL/TLS connections",
        description="verify=False disables certificate validation and allows man-in-the-middle attacks.",
        severity=Severity.HIGH,
        languages=PYTHON,
        matcher=regex(r"\bverify\s*=\s*False\b", flags=()),
        tags=("ssl", "tls"),
        cwe=("CWE-295",),
        owasp=("A02:2021",),
        remediation_minutes=5,
        fix=Fix(
            pattern=r"\bverify(\s*)=(\s*)False\b",
            replacement=r"verify\1=\2True",
            description="Re-enable certificate verification",
        ),
    ),
    Rule(
        id="python:S2245",
        title="Pseudorandom number generators should not be used for security-sensitive values",
        description="The random module is not cryptographically secure. Use the secrets module.",
        severity=Severity.HIGH,
        languages=PYTHON,
        matcher=regex(r"\brandom\.(?:random|randint|randrange|choice|choices|getrandbits)\s*\(", flags=()),
        issue_type=IssueType.SECURITY_HOTSPOT,
        tags=("random", "cryptography"),
        cwe=("CWE-338",),
        remediation_minutes=10,
    ),
    Rule(
        id="python:S5754",
        title="Bare except clauses should not be used",
        description="A bare except also catches SystemExit and KeyboardInterrupt.",
        severity=Severity.HIGH,
        languages=PYTHON,
        matcher=lines(r"^\s*except\s*:"),
        category=Category.RELIABILITY,
        issue_type=IssueType.BUG,
        tags=("error-handling",),
        remediation_minutes=5,
        fix=Fix(pattern=r"\bexcept\s*:", replacement="except Exception:", description="Catch Exception explicitly"),
    ),
    Rule(
        id="python:S125",
        title="Sections of code should not be commented out",
        description="Commented-out code distracts from the actual code and rots quickly.",
        severity=Severity.MEDIUM,
        languages=PYTHON,
        matcher=lines(
            r"^\s*#\s*(?:(?:def|class)\s+\w+\s*[(:]|import\s+\w+|from\s+[\w.]+\s+import\s|return\b|print\s*\()"
        ),
        tags=("unused",),
        remediation_minutes=5,
        **_SMELL,
    ),
    Rule(
        id="python:S107",
        title="Functions should not have too many parameters",
        description="More than 7 parameters make a function hard to call correctly.",
        severity=Severity.HIGH,
        languages=PYTHON,
        matcher=python_functions("params", 7),
        tags=("brain-overload",),
        remediation_minutes=30,
        **_SMELL,
    ),
    Rule(
        id="python:S138",
        title="Functions should not have too many lines of code",
        description="Functions longer than 100 lines are difficult to test and maintain.",
        severity=Severity.HIGH,
        languages=PYTHON,
        matcher=python_functions("lines", 100),
        tags=("brain-overload",),
        remediation_minutes=90,
        **_SMELL,
    ),
    Rule(
        id="python:S3776",
        title="Cognitive Complexity of functions should not be too high",
        description="Functions with cognitive complexity above 15 are hard to understand.",
        severity=Severity.HIGH,
        languages=PYTHON,
        matcher=python_functions("complexity", 15),
        tags=("brain-overload",),
        remediation_minutes=60,
        **_SMELL,
    ),
]
