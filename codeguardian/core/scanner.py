from __future__ import annotations

import fnmatch
import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from tqdm import tqdm

from .catalog import RuleCatalog, default_catalog
from .config import ScanConfig
from .languages import detect_language
from .matcher import analyze
from .models import Diagnostic, DiagnosticKind, Finding, ScanResult, SourceFile
from .utils import DEFAULT_LOGGER_NAME, UnreadableFile, read_source

SLOW_SCAN_THRESHOLD_SECONDS = 2.0


def configure_logging(verbose: bool = False, logger_name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """Configure and return the package logger.

    This helper ensures the scanner has a configured logger even in script usage
    where ``logging.basicConfig`` was not called. Callers can provide their own
    logger name and set ``verbose`` to elevate the log level.
    """

    logger = logging.getLogger(logger_name)
    level = logging.INFO if verbose else logging.WARNING
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s - %(message)s")
        )
        logger.addHandler(handler)

    return logger


class Scanner:
    """Runs the matcher over many files on a worker pool.

    Each file's result goes into the slot at its input position, so the merged
    result follows input order no matter which worker finished first.
    """

    def __init__(
        self,
        config: Optional[ScanConfig] = None,
        catalog: Optional[RuleCatalog] = None,
        *,
        logger: Optional[logging.Logger] = None,
        verbose: bool = False,
        show_progress: bool = False,
        progress_desc: str = "Scanning files",
    ) -> None:
        self.config = config or ScanConfig()
        self.catalog = catalog or default_catalog()
        base_logger = logger or logging.getLogger(DEFAULT_LOGGER_NAME)
        self.logger = base_logger.getChild("scanner")
        self.verbose = verbose
        if verbose:
            self.logger.setLevel(logging.INFO)
        self.show_progress = bool(show_progress)
        self.progress_desc = progress_desc
        self._progress_bar = None
        self._progress_lock = threading.Lock()
        self._slow_log_threshold = SLOW_SCAN_THRESHOLD_SECONDS

    def scan_files(self, files: Iterable[SourceFile]) -> ScanResult:
        sources = list(files)
        slots: List[Optional[ScanResult]] = [None] * len(sources)
        notes: List[List[Diagnostic]] = [[] for _ in sources]

        eligible: List[int] = []
        for index, source in enumerate(sources):
            skip = self._precheck(index, source)
            if skip is None:
                eligible.append(index)
            else:
                self.logger.info("Skipping %s: %s", source.file_name, skip.message)
                notes[index].append(skip)

        if self.verbose:
            self.logger.info("Scanning %d of %d file(s)", len(eligible), len(sources))

        timed_out = False
        if eligible:
            timed_out = self._run(sources, eligible, slots, notes)

        return self._merge(sources, slots, notes, partial=timed_out)

    def _precheck(self, index: int, source: SourceFile) -> Optional[Diagnostic]:
        cfg = self.config
        if index >= cfg.max_files:
            return Diagnostic(
                source.file_name, DiagnosticKind.FILE_LIMIT, f"file count limit of {cfg.max_files} reached"
            )
        if source.error:
            return Diagnostic(source.file_name, DiagnosticKind.UNREADABLE, source.error)
        size = source.byte_size
        if size > cfg.max_file_size:
            return Diagnostic(
                source.file_name,
                DiagnosticKind.OVERSIZED,
                f"{size:,} bytes exceeds limit of {cfg.max_file_size:,}",
            )
        line_count = source.content.count("\n") + 1
        if line_count > cfg.max_lines_per_file:
            return Diagnostic(
                source.file_name,
                DiagnosticKind.TOO_MANY_LINES,
                f"{line_count:,} lines exceeds limit of {cfg.max_lines_per_file:,}",
            )
        return None

    def _run(
        self,
        sources: Sequence[SourceFile],
        eligible: Sequence[int],
        slots: List[Optional[ScanResult]],
        notes: List[List[Diagnostic]],
    ) -> bool:
        timeout = self.config.timeout
        deadline = None if timeout is None else time.monotonic() + timeout

        progress_bar = None
        if self.show_progress:
            progress_bar = tqdm(total=len(eligible), desc=self.progress_desc, unit="file")

        executor = ThreadPoolExecutor(max_workers=self.config.workers)
        futures: Dict[Future, int] = {}
        pending: Set[Future] = set()
        try:
            self._progress_bar = progress_bar
            futures = {executor.submit(self._scan_one, sources[i]): i for i in eligible}
            pending = set(futures)
            while pending:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    break
                done, pending = wait(pending, timeout=remaining, return_when=FIRST_COMPLETED)
                for future in done:
                    index = futures[future]
                    name = sources[index].file_name
                    try:
                        slots[index] = future.result()
                    except Exception as exc:
                        if self.verbose:
                            self.logger.exception("Error scanning %s", name)
                        else:
                            self.logger.warning("Error scanning %s: %s", name, exc)
                        notes[index].append(Diagnostic(name, DiagnosticKind.ERROR, str(exc)))
                    finally:
                        if progress_bar is not None:
                            progress_bar.update(1)
        except KeyboardInterrupt:
            if self.verbose:
                self.logger.info("Scan interrupted by user; shutting down workers")
            raise
        finally:
            for future in pending:
                future.cancel()
            executor.shutdown(wait=not pending, cancel_futures=True)
            if progress_bar is not None:
                progress_bar.close()
            self._progress_bar = None

        if pending:
            self.logger.warning(
                "Scan timed out after %ss; %d file(s) not finished", timeout, len(pending)
            )
            for future in pending:
                index = futures[future]
                notes[index].append(
                    Diagnostic(
                        sources[index].file_name,
                        DiagnosticKind.TIMEOUT,
                        f"not finished within the {timeout}s scan timeout",
                    )
                )
            return True
        return False

    def _merge(
        self,
        sources: Sequence[SourceFile],
        slots: Sequence[Optional[ScanResult]],
        notes: Sequence[List[Diagnostic]],
        partial: bool,
    ) -> ScanResult:
        issues: List[Finding] = []
        diagnostics: List[Diagnostic] = []
        metrics: Dict[str, object] = {}
        scanned = 0
        for index in range(len(sources)):
            diagnostics.extend(notes[index])
            result = slots[index]
            if result is None:
                continue
            scanned += 1
            seen: Set[Tuple[str, int, int]] = set()
            for finding in result.issues:
                key = (finding.rule_id, finding.start, finding.end)
                if key in seen:
                    continue
                seen.add(key)
                issues.append(finding)
            diagnostics.extend(result.diagnostics)
            for name, value in result.metrics.items():
                # repeated file names keep their own entry, suffixed with the input position
                metrics[name if name not in metrics else f"{name}#{index}"] = value
        return ScanResult(
            issues=issues,
            diagnostics=diagnostics,
            metrics=metrics,
            files_scanned=scanned,
            partial=partial,
        )

    def _scan_one(self, source: SourceFile) -> ScanResult:
        self._update_current_file_display(source)
        start_time = time.perf_counter()
        try:
            return analyze(source.content, source.file_name, source.language, self.catalog)
        finally:
            self._maybe_log_slow_file(source, time.perf_counter() - start_time)

    def _update_current_file_display(self, source: SourceFile) -> None:
        label = source.file_name
        if len(label) > 60:
            label = f"...{label[-57:]}"
        if self._progress_bar is not None:
            with self._progress_lock:
                self._progress_bar.set_postfix_str(label, refresh=False)
                self._progress_bar.refresh()
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(
                "Processing %s (language=%s, %s bytes)",
                source.file_name,
                source.language,
                f"{source.byte_size:,}",
            )
        elif self.verbose:
            self.logger.info("Processing %s", source.file_name)

    def _maybe_log_slow_file(self, source: SourceFile, duration: float) -> None:
        if not self.logger.isEnabledFor(logging.DEBUG):
            return
        if duration < self._slow_log_threshold:
            return

        reasons: List[str] = []
        if source.byte_size >= 1_000_000:
            reasons.append("large file")
        if source.content.count("\n") >= 5_000:
            reasons.append("many lines")
        if not reasons:
            reasons.append("rule workload")

        self.logger.debug(
            "Slow scan for %s took %.2fs (%s). size=%s bytes, language=%s",
            source.file_name,
            duration,
            ", ".join(reasons),
            f"{source.byte_size:,}",
            source.language,
        )


def scan_files(
    files: Iterable[SourceFile],
    config: Optional[ScanConfig] = None,
    catalog: Optional[RuleCatalog] = None,
) -> ScanResult:
    return Scanner(config, catalog).scan_files(files)


class DirectoryScanner:
    """Turns a directory tree into ``SourceFile``s and scans them."""

    def __init__(
        self,
        root: Path,
        config: Optional[ScanConfig] = None,
        catalog: Optional[RuleCatalog] = None,
        *,
        logger: Optional[logging.Logger] = None,
        verbose: bool = False,
        show_progress: bool = True,
    ) -> None:
        self.root = root
        self.config = config or ScanConfig()
        self.include_globs = list(self.config.include_globs)
        self.exclude_dirs = set(self.config.exclude_dirs)
        base_logger = logger or logging.getLogger(DEFAULT_LOGGER_NAME)
        self.logger = base_logger.getChild("directoryscanner")
        self.verbose = verbose
        if verbose:
            self.logger.setLevel(logging.INFO)
        self.scanner = Scanner(
            self.config,
            catalog,
            logger=base_logger,
            verbose=verbose,
            show_progress=show_progress,
        )

    def _iter_files(self) -> Iterator[Path]:
        for p in sorted(self.root.rglob("*")):
            rel = p.relative_to(self.root)
            # skip anything below an excluded directory
            if any(part in self.exclude_dirs for part in rel.parts[:-1]):
                continue
            if p.is_dir():
                continue
            if any(fnmatch.fnmatch(p.name, pat) for pat in self.include_globs):
                yield p

    def _format_display_path(self, path: Path) -> str:
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return str(path)

    def load(self, path: Path) -> SourceFile:
        name = self._format_display_path(path)
        language = detect_language(name)
        try:
            size = path.stat().st_size
        except OSError as exc:
            if self.verbose:
                self.logger.warning("Unable to stat %s: %s", path, exc)
            return SourceFile(name, "", language, error=f"unable to stat: {exc}")
        if size > self.config.max_file_size:
            return SourceFile(name, "", language, size=size)
        try:
            content = read_source(path, self.config.max_file_size)
        except (OSError, UnreadableFile) as exc:
            return SourceFile(name, "", language, size=size, error=str(exc))
        return SourceFile(name, content, language, size=size)

    def sources(self) -> List[SourceFile]:
        return [self.load(path) for path in self._iter_files()]

    def scan(self) -> ScanResult:
        files = self.sources()
        if self.verbose:
            self.logger.info("Discovered %d file(s) to scan", len(files))
        return self.scanner.scan_files(files)
