from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional, Tuple

DEFAULT_INCLUDE_GLOBS: Tuple[str, ...] = ("*",)
DEFAULT_EXCLUDE_DIRS: Tuple[str, ...] = (
    ".git",
    ".venv",
    "node_modules",
    "venv",
    ".tox",
    ".mypy_cache",
    ".pytest_cache",
    "__pycache__",
    "dist",
    "build",
)


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ScanConfig:
    """Resource limits and file selection for one scan."""

    max_file_size: int = 5_000_000
    max_files: int = 10_000
    max_lines_per_file: int = 50_000
    timeout: Optional[float] = 300.0
    workers: int = 8
    include_globs: Tuple[str, ...] = DEFAULT_INCLUDE_GLOBS
    exclude_dirs: Tuple[str, ...] = DEFAULT_EXCLUDE_DIRS

    def __post_init__(self) -> None:
        for name in ("max_file_size", "max_files", "max_lines_per_file", "workers"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigError(f"'{name}' must be a positive integer, got {value!r}")
        if self.timeout is not None:
            if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)) or self.timeout <= 0:
                raise ConfigError(f"'timeout' must be a positive number or null, got {self.timeout!r}")

    def with_overrides(self, **values: Any) -> "ScanConfig":
        """Copy with every non-``None`` value applied."""

        changes = {k: v for k, v in values.items() if v is not None}
        unknown = set(changes) - {f.name for f in fields(self)}
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        for key in ("include_globs", "exclude_dirs"):
            if key in changes:
                changes[key] = tuple(_ensure_string_list(changes[key]))
        return replace(self, **changes)


def load_config(path: str | Path) -> ScanConfig:
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as handle:
            raw = json.load(handle)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file is not valid JSON: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError("Config must be a JSON object")

    scan_raw = raw.get("scan", raw)
    if not isinstance(scan_raw, dict):
        raise ConfigError("'scan' must be an object")

    known = {f.name for f in fields(ScanConfig)}
    unknown = sorted(set(scan_raw) - known - {"scan"})
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

    config = ScanConfig().with_overrides(**{k: v for k, v in scan_raw.items() if k in known})
    # null timeout disables the deadline
    if "timeout" in scan_raw and scan_raw["timeout"] is None:
        config = replace(config, timeout=None)
    return config


def _ensure_string_list(value: object) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    if not isinstance(value, (list, tuple)):
        raise ConfigError("Expected a list of strings")
    return [str(item) for item in value]
