import json
from pathlib import Path

import pytest

from codeguardian.core.config import ConfigError, ScanConfig, load_config


def _write(tmp_path: Path, payload) -> Path:
    path = tmp_path / "codeguardian.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_defaults():
    cfg = ScanConfig()
    assert cfg.max_file_size == 5_000_000
    assert cfg.max_files == 10_000
    assert cfg.max_lines_per_file == 50_000
    assert cfg.timeout == 300
    assert cfg.workers == 8
    assert "node_modules" in cfg.exclude_dirs


def test_load_config_flat_and_nested(tmp_path: Path):
    cfg = load_config(_write(tmp_path, {"max_files": 20, "include_globs": ["*.py"]}))
    assert cfg.max_files == 20
    assert cfg.include_globs == ("*.py",)

    nested = load_config(_write(tmp_path, {"scan": {"workers": 2, "timeout": None}}))
    assert nested.workers == 2
    assert nested.timeout is None


@pytest.mark.parametrize(
    "payload",
    [
        [1, 2],
        {"workers": 0},
        {"max_file_size": -5},
        {"timeout": "soon"},
        {"max_files": True},
        {"unknown_key": 1},
        {"exclude_dirs": 3},
    ],
)
def test_load_config_rejects_invalid(tmp_path: Path, payload):
    with pytest.raises(ConfigError):
        load_config(_write(tmp_path, payload))


def test_load_config_missing_and_malformed(tmp_path: Path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "absent.json")
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(bad)


def test_with_overrides_ignores_none_and_splits_strings():
    cfg = ScanConfig().with_overrides(workers=None, max_files=3, exclude_dirs=".git, dist")
    assert cfg.workers == 8
    assert cfg.max_files == 3
    assert cfg.exclude_dirs == (".git", "dist")
    with pytest.raises(ConfigError):
        ScanConfig().with_overrides(colour="blue")
