import logging
import time
from collections import Counter
from pathlib import Path

import pytest

from codeguardian.core import scanner as scanner_module
from codeguardian.core.config import ScanConfig
from codeguardian.core.models import DiagnosticKind, ScanResult, SourceFile
from codeguardian.core.scanner import DirectoryScanner, Scanner, configure_logging, scan_files

VULNERABLE_TS = 'db.query("SELECT * FROM users WHERE id = " + userId);\nel.innerHTML = html;\n'
VULNERABLE_PY = "import os\nos.system(cmd)\nvalue = eval(expr)\n"


def _project(count=12):
    files = []
    for i in range(count):
        if i % 3 == 0:
            files.append(SourceFile(f"src/f{i}.ts", VULNERABLE_TS, "typescript"))
        elif i % 3 == 1:
            files.append(SourceFile(f"src/f{i}.py", VULNERABLE_PY, "python"))
        else:
            files.append(SourceFile(f"src/f{i}.txt", "nothing here", "unknown"))
    return files


@pytest.mark.parametrize("workers", [1, 2, 8])
def test_summary_matches_direct_tally(workers):
    result = Scanner(ScanConfig(workers=workers)).scan_files(_project())
    assert result.summary.total == len(result.issues)
    assert dict(result.summary.by_rule) == dict(Counter(f.rule_id for f in result.issues))
    severities = Counter(f.severity.value for f in result.issues)
    for severity, count in result.summary.as_rows():
        assert count == severities.get(severity, 0)


def test_result_order_is_input_order_regardless_of_workers():
    files = _project()
    serial = Scanner(ScanConfig(workers=1)).scan_files(files)
    parallel = Scanner(ScanConfig(workers=8)).scan_files(files)
    assert serial.issues == parallel.issues
    order = [f.file for f in serial.issues]
    names = [s.file_name for s in files]
    assert order == sorted(order, key=names.index)


def test_oversized_file_is_skipped_without_blocking_others():
    files = [
        SourceFile("big.ts", VULNERABLE_TS, "typescript", size=10_000_000),
        SourceFile("small.ts", VULNERABLE_TS, "typescript"),
    ]
    result = scan_files(files, ScanConfig(max_file_size=1_000))
    assert result.skipped_files == ["big.ts"]
    assert result.diagnostics[0].kind is DiagnosticKind.OVERSIZED
    assert all(f.file == "small.ts" for f in result.issues)
    assert result.issues
    assert result.files_scanned == 1
    assert not result.partial


def test_file_count_and_line_limits():
    files = [
        SourceFile("a.ts", VULNERABLE_TS, "typescript"),
        SourceFile("b.ts", "x;\n" * 50, "typescript"),
        SourceFile("c.ts", VULNERABLE_TS, "typescript"),
    ]
    result = scan_files(files, ScanConfig(max_files=2, max_lines_per_file=10))
    kinds = {d.file: d.kind for d in result.diagnostics}
    assert kinds == {"b.ts": DiagnosticKind.TOO_MANY_LINES, "c.ts": DiagnosticKind.FILE_LIMIT}
    assert {f.file for f in result.issues} == {"a.ts"}


def test_unreadable_source_is_recorded():
    result = scan_files([SourceFile("blob.bin", "", "unknown", error="binary content")])
    [diag] = result.diagnostics
    assert diag.kind is DiagnosticKind.UNREADABLE
    assert diag.message == "binary content"


def test_timeout_returns_partial_result(monkeypatch):
    real_analyze = scanner_module.analyze

    def slow_analyze(code, file_name, language, catalog=None):
        if file_name.startswith("slow"):
            time.sleep(2.0)
        return real_analyze(code, file_name, language, catalog)

    monkeypatch.setattr(scanner_module, "analyze", slow_analyze)
    files = [
        SourceFile("fast.ts", VULNERABLE_TS, "typescript"),
        SourceFile("slow.ts", VULNERABLE_TS, "typescript"),
    ]
    start = time.monotonic()
    result = scan_files(files, ScanConfig(workers=2, timeout=0.5))
    assert time.monotonic() - start < 1.5
    assert result.partial
    assert {f.file for f in result.issues} == {"fast.ts"}
    [diag] = result.diagnostics
    assert (diag.file, diag.kind) == ("slow.ts", DiagnosticKind.TIMEOUT)


def test_task_exception_becomes_error_diagnostic(monkeypatch, caplog):
    real_analyze = scanner_module.analyze

    def flaky(code, file_name, language, catalog=None):
        if file_name == "boom.ts":
            raise RuntimeError("worker crashed")
        return real_analyze(code, file_name, language, catalog)

    monkeypatch.setattr(scanner_module, "analyze", flaky)
    with caplog.at_level(logging.WARNING, logger="codeguardian"):
        result = scan_files(
            [SourceFile("boom.ts", VULNERABLE_TS, "typescript"), SourceFile("ok.ts", VULNERABLE_TS, "typescript")]
        )
    assert [(d.file, d.kind) for d in result.diagnostics] == [("boom.ts", DiagnosticKind.ERROR)]
    assert {f.file for f in result.issues} == {"ok.ts"}
    assert "worker crashed" in caplog.text


def test_empty_input():
    result = scan_files([])
    assert result == ScanResult()


def test_directory_scanner(tmp_path: Path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.ts").write_text(VULNERABLE_TS, encoding="utf-8")
    (tmp_path / "src" / "tool.py").write_text(VULNERABLE_PY, encoding="utf-8")
    (tmp_path / "node_modules" / "lib").mkdir(parents=True)
    (tmp_path / "node_modules" / "lib" / "index.js").write_text(VULNERABLE_TS, encoding="utf-8")
    (tmp_path / "image.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR")
    (tmp_path / "huge.js").write_text("x" * 2_000, encoding="utf-8")

    config = ScanConfig(max_file_size=1_000)
    result = DirectoryScanner(tmp_path, config, show_progress=False).scan()

    files = {f.file for f in result.issues}
    assert files == {"src/app.ts", "src/tool.py"}
    kinds = {d.file: d.kind for d in result.diagnostics if d.skipped}
    assert kinds == {"image.png": DiagnosticKind.UNREADABLE, "huge.js": DiagnosticKind.OVERSIZED}


def test_configure_logging_installs_single_handler():
    logger = configure_logging(verbose=True, logger_name="codeguardian.test")
    configure_logging(verbose=False, logger_name="codeguardian.test")
    assert len(logger.handlers) == 1
    assert logger.level == logging.WARNING


def test_inputs_sharing_a_file_name_keep_their_findings():
    files = [
        SourceFile("snippet.ts", VULNERABLE_TS, "typescript"),
        SourceFile("snippet.ts", VULNERABLE_TS, "typescript"),
    ]
    result = scan_files(files, ScanConfig(workers=2))
    single = scan_files(files[:1])
    assert len(result.issues) == 2 * len(single.issues)
    assert set(result.metrics) == {"snippet.ts", "snippet.ts#1"}
