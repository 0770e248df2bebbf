from __future__ import annotations

from typing import List

from ..core.models import Category, IssueType, Matcher, Rule, Severity
from .base import JS_FUNCTION_HEADERS, JS_TS, function_blocks, lines, regex

_SMELL = dict(category=Category.MAINTAINABILITY, issue_type=IssueType.CODE_SMELL)

COGNITIVE_COMPLEXITY_MAX = 15
FUNCTION_LINES_MAX = 100
PARAMETERS_MAX = 7

RULES: List[Rule] = [
    Rule(
        id="typescript:S3776",
        title="Cognitive Complexity of functions should not be too high",
        description=f"Functions with cognitive complexity above {COGNITIVE_COMPLEXITY_MAX} are hard to understand.",
        severity=Severity.HIGH,
        languages=JS_TS,
        matcher=function_blocks(JS_FUNCTION_HEADERS, "complexity", COGNITIVE_COMPLEXITY_MAX),
        tags=("brain-overload",),
        remediation_minutes=60,
        **_SMELL,
    ),
    Rule(
        id="typescript:S138",
        title="Functions should not have too many lines of code",
        description=f"Functions longer than {FUNCTION_LINES_MAX} lines are difficult to test and maintain.",
        severity=Severity.HIGH,
        languages=JS_TS,
        matcher=function_blocks(JS_FUNCTION_HEADERS, "lines", FUNCTION_LINES_MAX),
        tags=("brain-overload",),
        remediation_minutes=90,
        **_SMELL,
    ),
    Rule(
        id="typescript:S107",
        title="Functions should not have too many parameters",
        description=f"More than {PARAMETERS_MAX} parameters make a function hard to call correctly.",
        severity=Severity.HIGH,
        languages=JS_TS,
        matcher=regex(r"\bfunction\b\s*\*?\s*[\w$]*\s*\((?:[^,()]*,){%d,}[^()]*\)" % PARAMETERS_MAX, flags=()),
        tags=("brain-overload",),
        remediation_minutes=30,
        **_SMELL,
    ),
    Rule(
        id="typescript:S2228",
        title="Console logging should not be used",
        description="Console statements should be removed before shipping to production.",
        severity=Severity.MEDIUM,
        languages=JS_TS,
        matcher=lines(r"\bconsole\.(?:log|debug|info|warn|error|trace)\s*\(", exclude=r"^\s*(?://|\*)"),
        tags=("bad-practice",),
        remediation_minutes=2,
        **_SMELL,
    ),
    Rule(
        id="typescript:S125",
        title="Sections of code should not be commented out",
        description="Commented-out code distracts from the actual code and rots quickly.",
        severity=Severity.MEDIUM,
        languages=JS_TS,
        matcher=lines(
            r"^\s*//\s*(?:(?:const|let|var)\s+[\w$]+\s*=|(?:function|class)\s+[\w$]+|(?:if|for|while)\s*\(|return\b[^;]*;|import\s)"
        ),
        tags=("unused",),
        remediation_minutes=5,
        **_SMELL,
    ),
    Rule(
        id="typescript:S1481",
        title="Unused local variables should be removed",
        description="A binding that is never read is dead code.",
        severity=Severity.MEDIUM,
        languages=JS_TS,
        matcher=Matcher(kind="unused_binding"),
        tags=("unused",),
        remediation_minutes=5,
        **_SMELL,
    ),
    Rule(
        id="typescript:S109",
        title="Magic numbers should not be used",
        description="Unnamed numeric literals hide intent. Use a named constant.",
        severity=Severity.LOW,
        languages=JS_TS,
        matcher=lines(
            r"(?:[<>]=?|[+*/%-]|(?<![=!<>])={1,3})\s*\d{3,}(?![\w.])",
            exclude=r"^\s*(?://|\*|(?:export\s+)?(?:const|readonly|static)\s+[A-Z0-9_]+\b)",
        ),
        tags=("confusing",),
        remediation_minutes=5,
        **_SMELL,
    ),
]
