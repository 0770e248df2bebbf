"""Single-file rule evaluation.

``analyze`` resolves the rules for a language, runs each rule's matching
strategy over the text and turns the resulting spans into findings. Strategies
are selected by ``Matcher.kind`` from ``STRATEGIES``; a failing rule is
recorded as a diagnostic and never stops the others.
"""

from __future__ import annotations

import ast
import logging
import re
from collections import Counter
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Pattern, Tuple

from . import languages as langs
from .catalog import RuleCatalog, default_catalog
from .metrics import cognitive_complexity, compute_metrics
from .models import Diagnostic, DiagnosticKind, Finding, Matcher, Rule, ScanResult
from .utils import DEFAULT_LOGGER_NAME, clip, extract_context, line_starts, offset_to_position

Span = Tuple[int, int]

logger = logging.getLogger(DEFAULT_LOGGER_NAME).getChild("matcher")

CONTEXT_RADIUS = 2


class SourceParseError(ValueError):
    """The text is not valid source for a syntax-tree based rule."""


_FLAG_NAMES = {
    "IGNORECASE": re.IGNORECASE,
    "MULTILINE": re.MULTILINE,
    "DOTALL": re.DOTALL,
    "VERBOSE": re.VERBOSE,
    "ASCII": re.ASCII,
}


@lru_cache(maxsize=2048)
def _compile(pattern: str, flags: Tuple[str, ...] = ()) -> Pattern[str]:
    value = 0
    for name in flags:
        try:
            value |= _FLAG_NAMES[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown regex flag: {name}") from None
    return re.compile(pattern, value)


@dataclass(frozen=True)
class _Text:
    code: str
    lines: List[str]
    starts: List[int]
    language: str


def _match_regex(matcher: Matcher, text: _Text) -> Iterator[Span]:
    for pattern in matcher.patterns:
        for m in _compile(pattern, matcher.flags).finditer(text.code):
            if m.end() > m.start():
                yield m.start(), m.end()


def _match_lines(matcher: Matcher, text: _Text) -> Iterator[Span]:
    exclude = matcher.options.get("exclude")
    skip = _compile(exclude) if exclude else None
    compiled = [_compile(p, matcher.flags) for p in matcher.patterns]
    for idx, line in enumerate(text.lines):
        if skip is not None and skip.search(line):
            continue
        base = text.starts[idx]
        for regex in compiled:
            for m in regex.finditer(line):
                if m.end() > m.start():
                    yield base + m.start(), base + m.end()


def _skip_string(code: str, i: int) -> int:
    quote = code[i]
    i += 1
    while i < len(code):
        ch = code[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i + 1
        if ch == "\n" and quote != "`":
            return i
        i += 1
    return i


def _find_block_end(code: str, open_at: int) -> Optional[int]:
    """Index of the brace closing the one at ``open_at``, skipping strings and comments."""

    depth = 0
    i = open_at
    n = len(code)
    while i < n:
        ch = code[i]
        if ch in "\"'`":
            i = _skip_string(code, i)
            continue
        if code.startswith("//", i):
            nl = code.find("\n", i)
            i = n if nl == -1 else nl
            continue
        if code.startswith("/*", i):
            close = code.find("*/", i + 2)
            i = n if close == -1 else close + 2
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return None


def _match_brace_functions(matcher: Matcher, text: _Text) -> Iterator[Span]:
    metric = matcher.options.get("metric", "lines")
    maximum = int(matcher.options.get("max", 0))
    if metric not in ("lines", "complexity"):
        raise ValueError(f"Unknown function metric: {metric}")
    seen = set()
    for pattern in matcher.patterns:
        for m in _compile(pattern, matcher.flags).finditer(text.code):
            open_at = m.end() - 1
            if open_at in seen or text.code[open_at] != "{":
                continue
            seen.add(open_at)
            close_at = _find_block_end(text.code, open_at)
            if close_at is None:
                continue
            body = text.code[open_at + 1 : close_at]
            if metric == "lines":
                value = body.count("\n") - 1
            else:
                value = cognitive_complexity(body.split("\n"), text.language)
            if value > maximum:
                header = m.group()
                yield m.start() + len(header) - len(header.lstrip()), m.end()


class _CognitiveCounter:
    """Cognitive complexity of one function body; nested definitions are not counted."""

    def __init__(self) -> None:
        self.total = 0

    def visit(self, node: ast.AST, nesting: int) -> None:
        for child in ast.iter_child_nodes(node):
            self.visit_node(child, nesting)

    def visit_node(self, node: ast.AST, nesting: int) -> None:
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef, ast.Lambda)):
            return
        if isinstance(node, ast.If):
            self.visit_if(node, nesting, is_elif=False)
        elif isinstance(node, (ast.For, ast.AsyncFor, ast.While, ast.ExceptHandler, ast.IfExp)):
            self.total += 1 + nesting
            self.visit(node, nesting + 1)
        elif isinstance(node, ast.BoolOp):
            self.total += len(node.values) - 1
            self.visit(node, nesting)
        else:
            self.visit(node, nesting)

    def visit_if(self, node: ast.If, nesting: int, is_elif: bool) -> None:
        self.total += 1 if is_elif else 1 + nesting
        for child in [node.test] + node.body:
            self.visit_node(child, nesting + 1)
        if len(node.orelse) == 1 and isinstance(node.orelse[0], ast.If):
            self.visit_if(node.orelse[0], nesting, is_elif=True)
        elif node.orelse:
            self.total += 1
            for child in node.orelse:
                self.visit_node(child, nesting + 1)


def python_cognitive_complexity(func: ast.AST) -> int:
    counter = _CognitiveCounter()
    counter.visit(func, 0)
    return counter.total


def _param_count(args: ast.arguments) -> int:
    positional = list(args.posonlyargs) + list(args.args)
    if positional and positional[0].arg in ("self", "cls"):
        positional = positional[1:]
    count = len(positional) + len(args.kwonlyargs)
    count += 1 if args.vararg else 0
    count += 1 if args.kwarg else 0
    return count


def _function_name_span(node: ast.AST, text: _Text) -> Span:
    idx = node.lineno - 1
    line = text.lines[idx]
    # col_offset counts utf-8 bytes
    col = len(line.encode("utf-8")[: node.col_offset].decode("utf-8", errors="ignore"))
    name_at = line.find(node.name, col)
    if name_at == -1:
        return text.starts[idx] + col, text.starts[idx] + len(line.rstrip())
    return text.starts[idx] + col, text.starts[idx] + name_at + len(node.name)


def _match_python_functions(matcher: Matcher, text: _Text) -> Iterator[Span]:
    metric = matcher.options.get("metric", "lines")
    maximum = int(matcher.options.get("max", 0))
    measures: Dict[str, Callable[[ast.AST], int]] = {
        "params": lambda node: _param_count(node.args),
        "lines": lambda node: (node.end_lineno or node.lineno) - node.lineno + 1,
        "complexity": python_cognitive_complexity,
    }
    if metric not in measures:
        raise ValueError(f"Unknown function metric: {metric}")
    try:
        tree = ast.parse(text.code)
    except SyntaxError as exc:
        raise SourceParseError(f"cannot parse source at line {exc.lineno}: {exc.msg}") from exc
    except ValueError as exc:
        raise SourceParseError(f"cannot parse source: {exc}") from exc
    for node in ast.walk(tree):
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            if measures[metric](node) > maximum:
                yield _function_name_span(node, text)


_BINDING = re.compile(r"^[ \t]*(?:export\s+)?(?:const|let|var)\s+([A-Za-z_$][\w$]*)\s*(?=[=;:\n]|$)", re.MULTILINE)
_IDENTIFIER = re.compile(r"[A-Za-z_$][\w$]*")


def _match_unused_bindings(matcher: Matcher, text: _Text) -> Iterator[Span]:
    counts = Counter(_IDENTIFIER.findall(text.code))
    for m in _BINDING.finditer(text.code):
        if "export" in m.group():
            continue
        name = m.group(1)
        if name.startswith("_") or counts[name] > 1:
            continue
        yield m.start(1), m.end(1)


STRATEGIES: Dict[str, Callable[[Matcher, _Text], Iterable[Span]]] = {
    "regex": _match_regex,
    "line": _match_lines,
    "brace_function": _match_brace_functions,
    "python_ast": _match_python_functions,
    "unused_binding": _match_unused_bindings,
}


def _merge_spans(spans: Iterable[Span]) -> List[Span]:
    merged: List[Span] = []
    end = -1
    for start, stop in sorted(set(spans), key=lambda s: (s[0], -(s[1] - s[0]))):
        if start < end:
            continue
        merged.append((start, stop))
        end = stop
    return merged


def rule_spans(rule: Rule, code: str, language: str) -> List[Span]:
    """Non-overlapping spans where ``rule`` matches ``code``. Raises on a broken rule."""

    strategy = STRATEGIES.get(rule.matcher.kind)
    if strategy is None:
        raise ValueError(f"Unknown matcher kind: {rule.matcher.kind}")
    text = _Text(code, code.split("\n"), line_starts(code), language)
    spans = _merge_spans(strategy(rule.matcher, text))
    if rule.allowlist:
        allowed = [a.lower() for a in rule.allowlist]
        spans = [s for s in spans if not any(a in code[s[0] : s[1]].lower() for a in allowed)]
    return spans


def analyze(
    code: str,
    file_name: str,
    language: str,
    catalog: Optional[RuleCatalog] = None,
) -> ScanResult:
    label = langs.normalize(language)
    if not code or not code.strip():
        return ScanResult(files_scanned=1)
    rules = (catalog or default_catalog()).list_rules(label)
    if not rules:
        return ScanResult(files_scanned=1)

    lines = code.split("\n")
    starts = line_starts(code)
    findings: List[Finding] = []
    diagnostics: List[Diagnostic] = []
    unparsed: List[str] = []
    parse_error: Optional[SourceParseError] = None
    for rule in rules:
        try:
            spans = rule_spans(rule, code, label)
        except SourceParseError as exc:
            unparsed.append(rule.id)
            parse_error = exc
            continue
        except Exception as exc:
            logger.warning("Rule %s failed on %s: %s", rule.id, file_name, exc)
            diagnostics.append(
                Diagnostic(file=file_name, kind=DiagnosticKind.RULE_ERROR, message=str(exc), rule_id=rule.id)
            )
            continue
        for start, end in spans:
            line, column = offset_to_position(starts, start)
            findings.append(
                Finding.from_rule(
                    rule,
                    file=file_name,
                    line=line,
                    column=column,
                    start=start,
                    end=end,
                    snippet=clip(lines[line - 1]),
                    context=extract_context(lines, line, CONTEXT_RADIUS),
                )
            )

    if parse_error is not None:
        logger.warning("Skipping syntax-tree rules on %s: %s", file_name, parse_error)
        diagnostics.append(
            Diagnostic(
                file=file_name,
                kind=DiagnosticKind.RULE_ERROR,
                message=f"{parse_error}; skipped {', '.join(unparsed)}",
            )
        )

    logger.debug("%s: %d finding(s) from %d rule(s)", file_name, len(findings), len(rules))
    return ScanResult(
        issues=findings,
        diagnostics=diagnostics,
        metrics={file_name: compute_metrics(code, label, findings)},
        files_scanned=1,
    )
