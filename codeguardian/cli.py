import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from .core.catalog import CatalogError, RuleCatalog, default_catalog
from .core.config import ConfigError, ScanConfig, load_config
from .core.diff import format_diff, generate_diff
from .core.fixes import suggest_fixes
from .core.languages import detect_language, normalize
from .core.loader import RulesError, load_rules_file
from .core.metrics import evaluate_quality_gate
from .core.models import SEVERITY_ORDER, ScanResult, Severity, SourceFile
from .core.publish import JsonResultStore, LogNotifier, publish_result
from .core.reporting import Reporter, format_summary_table
from .core.scanner import DirectoryScanner, Scanner, configure_logging
from .core.utils import UnreadableFile, read_source

SEVERITY_CHOICES = [s.value for s in SEVERITY_ORDER]


def _add_rule_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--select", "--rules", dest="select", default="all", help="Comma-delimited rule ids, categories or language prefixes to activate (e.g. 'security,python') or 'all'.")
    p.add_argument("--rules-file", type=Path, default=None, help="JSON file with additional custom rules.")


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="codeguardian",
        description="Rule-based static code scanner for security and quality issues.",
    )
    sub = p.add_subparsers(dest="mode", required=True)

    # dir mode
    d = sub.add_parser("dir", help="Scan a directory recursively.")
    d.add_argument("path", type=Path, help="Directory to scan recursively.")
    _add_rule_options(d)
    d.add_argument("--config", type=Path, default=None, help="JSON scan configuration (limits, include/exclude).")
    d.add_argument("--out", type=Path, default=Path("./scan_output"), help="Output directory.")
    d.add_argument("--workers", type=int, default=None, help="Number of worker threads for scanning (default 8).")
    d.add_argument("--include", default=None, help="Glob(s) to include, comma-separated (default '*').")
    d.add_argument("--exclude", default=None, help="Dir names to exclude, comma-separated.")
    d.add_argument("--max-file-size", type=int, default=None, help="Max file size in bytes to scan (default 5MB).")
    d.add_argument("--max-files", type=int, default=None, help="Max number of files to scan (default 10000).")
    d.add_argument("--timeout", type=float, default=None, help="Overall scan timeout in seconds (default 300).")
    d.add_argument("--no-progress", action="store_true", help="Disable the progress bar during directory scans.")
    d.add_argument("--verbose", action="store_true", help="Enable verbose logging output.")
    d.add_argument("--fail-on", choices=SEVERITY_CHOICES, default=None, help="Exit with status 1 when a finding at or above this severity exists.")
    d.add_argument("--store", type=Path, default=None, help="Directory where the analysis record is stored as JSON.")
    d.add_argument("--user-id", default=None, help="User id recorded with the stored analysis.")

    # file mode
    f = sub.add_parser("file", help="Scan a single file.")
    f.add_argument("path", type=Path, help="File to scan.")
    f.add_argument("--language", default=None, help="Language label (default: detected from the extension).")
    _add_rule_options(f)
    f.add_argument("--out", type=Path, default=Path("./scan_output"), help="Output directory.")
    f.add_argument("--verbose", action="store_true", help="Enable verbose logging output.")
    f.add_argument("--fail-on", choices=SEVERITY_CHOICES, default=None, help="Exit with status 1 when a finding at or above this severity exists.")

    # rules mode
    r = sub.add_parser("rules", help="List the rule catalog.")
    r.add_argument("--language", default=None, help="Only rules that apply to this language.")
    r.add_argument("--json", action="store_true", help="Print rules as JSON.")

    # diff mode
    df = sub.add_parser("diff", help="Line diff between two files.")
    df.add_argument("original", type=Path, help="Original file.")
    df.add_argument("suggested", type=Path, help="Suggested file.")

    # fix mode
    fx = sub.add_parser("fix", help="Show suggested fixes for a file.")
    fx.add_argument("path", type=Path, help="File to scan for fixable findings.")
    fx.add_argument("--language", default=None, help="Language label (default: detected from the extension).")

    return p


def _build_catalog(args: argparse.Namespace) -> RuleCatalog:
    catalog = default_catalog()
    if args.rules_file is not None:
        catalog = catalog.extend(load_rules_file(args.rules_file))
    return catalog.select(args.select)


def _load_source(path: Path, language: Optional[str], config: ScanConfig) -> SourceFile:
    name = path.name
    label = normalize(language) if language else detect_language(name)
    try:
        content = read_source(path, config.max_file_size + 1)
    except (OSError, UnreadableFile) as exc:
        return SourceFile(name, "", label, error=str(exc))
    return SourceFile(name, content, label, size=path.stat().st_size)


def _exit_code(result: ScanResult, fail_on: Optional[str]) -> int:
    if fail_on is None:
        return 0
    return 0 if result.passed(Severity(fail_on)) else 1


def run_dir(args: argparse.Namespace) -> int:
    if not args.path.is_dir():
        print(f"Not a directory: {args.path}", file=sys.stderr)
        return 2

    try:
        config = load_config(args.config) if args.config else ScanConfig()
        config = config.with_overrides(
            workers=args.workers,
            include_globs=args.include,
            exclude_dirs=args.exclude,
            max_file_size=args.max_file_size,
            max_files=args.max_files,
            timeout=args.timeout,
        )
        catalog = _build_catalog(args)
    except (ConfigError, RulesError, CatalogError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    if not len(catalog):
        print("No rules selected. Exiting.", file=sys.stderr)
        return 2

    logger = configure_logging(verbose=args.verbose)
    scanner = DirectoryScanner(
        root=args.path,
        config=config,
        catalog=catalog,
        logger=logger,
        verbose=args.verbose,
        show_progress=not args.no_progress,
    )
    result = scanner.scan()

    Reporter(args.out).write_all(result, evaluate_quality_gate(result))
    print(format_summary_table(result))

    if args.store is not None:
        record = publish_result(result, JsonResultStore(args.store), LogNotifier(), user_id=args.user_id)
        print(f"Stored analysis {record.analysis_id}")

    return _exit_code(result, args.fail_on)


def run_file(args: argparse.Namespace) -> int:
    if not args.path.is_file():
        print(f"Not a file: {args.path}", file=sys.stderr)
        return 2

    try:
        catalog = _build_catalog(args)
    except (RulesError, CatalogError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    if not len(catalog):
        print("No rules selected. Exiting.", file=sys.stderr)
        return 2

    config = ScanConfig(workers=1)
    logger = configure_logging(verbose=args.verbose)
    source = _load_source(args.path, args.language, config)
    result = Scanner(config, catalog, logger=logger, verbose=args.verbose).scan_files([source])

    Reporter(args.out).write_all(result, evaluate_quality_gate(result))
    print(format_summary_table(result))
    return _exit_code(result, args.fail_on)


def run_rules(args: argparse.Namespace) -> int:
    catalog = default_catalog()
    rules = catalog.list_rules(args.language) if args.language else list(catalog)
    if args.json:
        print(json.dumps([rule.to_dict() for rule in rules], indent=2))
        return 0
    for rule in rules:
        print(f"{rule.id:<24} {rule.severity.value:<8} {rule.category.value:<16} {rule.title}")
    return 0


def run_diff(args: argparse.Namespace) -> int:
    try:
        original = read_source(args.original)
        suggested = read_source(args.suggested)
    except (OSError, UnreadableFile) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    print(format_diff(generate_diff(original, suggested)))
    return 0


def run_fix(args: argparse.Namespace) -> int:
    if not args.path.is_file():
        print(f"Not a file: {args.path}", file=sys.stderr)
        return 2

    config = ScanConfig(workers=1)
    catalog = default_catalog()
    configure_logging()
    source = _load_source(args.path, args.language, config)
    if source.error:
        print(f"Error: {source.error}", file=sys.stderr)
        return 2

    result = Scanner(config, catalog).scan_files([source])
    suggestions = suggest_fixes(result, {source.file_name: source.content}, catalog)
    if not suggestions:
        print("No fixable findings.")
        return 0
    for s in suggestions:
        print(f"{s.file}:{s.line} {s.rule_id} - {s.description}")
        print(format_diff(s.diff))
        print("")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    if args.mode == "dir":
        return run_dir(args)
    elif args.mode == "file":
        return run_file(args)
    elif args.mode == "rules":
        return run_rules(args)
    elif args.mode == "diff":
        return run_diff(args)
    elif args.mode == "fix":
        return run_fix(args)
    else:
        parser.print_help()
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
