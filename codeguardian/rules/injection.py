from __future__ import annotations

from typing import List

from ..core.models import Category, IssueType, Rule, Severity
from .base import JS_TS, QUOTED, SQL_CLAUSES, SQL_KEYWORDS, SQL_VERBS, regex

_QUERY_CALL = r"\b(?:query|execute|exec|prepare|raw)\s*\(\s*"
_QUERY_VARIABLE = r"\b\w*(?:query|sql|stmt|statement)\w*\s*=\s*"

SQL_CONCATENATION_PATTERNS = (
    # db.query("SELECT ... " + id), execute('...' + id)
    _QUERY_CALL + QUOTED + r"\s*\+",
    # conn.exec(`SELECT ... ${name}`)
    _QUERY_CALL + r"`(?=[^`]*\b" + SQL_KEYWORDS + r"\b)[^`]*\$\{[^`]*`",
    # query = "SELECT ... " + id
    _QUERY_VARIABLE + QUOTED + r"\s*\+",
    # const sql = `SELECT ... ${id}`
    _QUERY_VARIABLE + r"`(?=[^`]*\b" + SQL_KEYWORDS + r"\b)[^`]*\$\{",
    # "SELECT * FROM t WHERE id = " + id anywhere else
    r"([\"'`])\s*" + SQL_VERBS + r"\b(?=(?:(?!\1)[^\n])*\b" + SQL_CLAUSES + r"\b)(?:(?!\1)[^\n])*\1\s*\+",
    # cursor.execute(f"SELECT ... {id}")
    r"\bexecute(?:many)?\s*\(\s*[fF][\"']",
    # cursor.execute("SELECT ... %s" % id) / .format(...)
    r"\bexecute(?:many)?\s*\(\s*([\"'])(?:(?!\1)[^\n])*\1\s*(?:%|\.format\s*\()",
)

RULES: List[Rule] = [
    Rule(
        id="typescript:S2077",
        title="SQL queries should not be vulnerable to injection attacks",
        description=(
            "Building SQL with string concatenation or interpolation lets user input "
            "change the query. Use parameterized queries instead."
        ),
        severity=Severity.CRITICAL,
        languages=JS_TS | {"python"},
        matcher=regex(*SQL_CONCATENATION_PATTERNS),
        category=Category.SECURITY,
        issue_type=IssueType.VULNERABILITY,
        tags=("sql", "injection", "owasp", "sans-top25"),
        cwe=("CWE-89",),
        owasp=("A03:2021",),
        remediation_minutes=30,
    ),
    Rule(
        id="typescript:S4721",
        title="OS commands should not be vulnerable to injection attacks",
        description="Passing concatenated or interpolated input to a shell command allows arbitrary command execution.",
        severity=Severity.CRITICAL,
        languages=JS_TS,
        matcher=regex(
            r"\b(?:exec|execSync|spawn|spawnSync|execFile|execFileSync)\s*\([^)\n]*(?:\+|\$\{)",
            flags=(),
        ),
        tags=("command-injection", "injection", "owasp", "sans-top25"),
        cwe=("CWE-78",),
        owasp=("A03:2021",),
        remediation_minutes=45,
    ),
    Rule(
        id="typescript:S5145",
        title="File access should be restricted to intended directories",
        description="File paths built from user input can reach files outside the intended directory.",
        severity=Severity.CRITICAL,
        languages=JS_TS,
        matcher=regex(
            r"\b(?:readFile|readFileSync|writeFile|writeFileSync|createReadStream|createWriteStream"
            r"|unlink|unlinkSync)\s*\([^)\n]*(?:\+|\$\{)",
            flags=(),
        ),
        tags=("path-traversal", "owasp", "sans-top25"),
        cwe=("CWE-22",),
        owasp=("A01:2021",),
        remediation_minutes=30,
    ),
    Rule(
        id="typescript:S1523",
        title="Dynamically executing code is security-sensitive",
        description="eval, the Function constructor and string timers execute arbitrary code.",
        severity=Severity.HIGH,
        languages=JS_TS,
        matcher=regex(
            r"(?<![\w$.])eval\s*\(",
            r"\bnew\s+Function\s*\(",
            r"\bset(?:Timeout|Interval)\s*\(\s*[\"'`]",
            flags=(),
        ),
        issue_type=IssueType.SECURITY_HOTSPOT,
        tags=("eval", "code-injection", "sans-top25"),
        cwe=("CWE-95",),
        owasp=("A03:2021",),
        remediation_minutes=30,
    ),
]
