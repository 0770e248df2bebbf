import json
from pathlib import Path


def test_unknown_rule_selector_exit_code(run_cli, dataset_dir: Path, out_dir: Path):
    proc = run_cli(["dir", dataset_dir, "--select", "nonexistent", "--out", out_dir])
    assert proc.returncode == 2
    assert "No rules selected" in proc.stderr


def test_select_limits_rules(run_cli, load_json, dataset_dir: Path, out_dir: Path):
    proc = run_cli(["dir", dataset_dir, "--rules", "python", "--out", out_dir, "--no-progress"])
    assert proc.returncode == 0, proc.stderr
    data = load_json(out_dir / "findings.json")
    assert data["issues"]
    assert all(i["rule_id"].startswith("python:") for i in data["issues"])


def test_custom_rules_file(run_cli, load_json, dataset_dir: Path, out_dir: Path, tmp_path: Path):
    rules = tmp_path / "rules.json"
    rules.write_text(
        json.dumps(
            [
                {
                    "id": "custom:S1",
                    "title": "Deploy helpers must not shell out",
                    "severity": "Major",
                    "languages": ["python"],
                    "patterns": [r"\bdeploy\b"],
                }
            ]
        )
    )
    proc = run_cli(
        ["dir", dataset_dir, "--rules-file", rules, "--select", "custom:S1", "--out", out_dir, "--no-progress"]
    )
    assert proc.returncode == 0, proc.stderr
    data = load_json(out_dir / "findings.json")
    assert {i["rule_id"] for i in data["issues"]} == {"custom:S1"}
    assert all(i["severity"] == "high" for i in data["issues"])


def test_invalid_rules_file_exits_2(run_cli, dataset_dir: Path, out_dir: Path, tmp_path: Path):
    rules = tmp_path / "rules.json"
    rules.write_text("[]")
    proc = run_cli(["dir", dataset_dir, "--rules-file", rules, "--out", out_dir])
    assert proc.returncode == 2
    assert "Error" in proc.stderr


def test_config_file_limits(run_cli, load_json, dataset_dir: Path, out_dir: Path, tmp_path: Path):
    config = tmp_path / "codeguardian.json"
    config.write_text(json.dumps({"scan": {"max_file_size": 120, "include_globs": ["*.ts", "*.py"]}}))
    proc = run_cli(["dir", dataset_dir, "--config", config, "--out", out_dir, "--no-progress"])
    assert proc.returncode == 0, proc.stderr
    data = load_json(out_dir / "findings.json")
    skipped = {d["file"]: d["kind"] for d in data["diagnostics"]}
    assert skipped == {"src/db.ts": "oversized", "tools/deploy.py": "oversized"}
    assert data["issues"] == []


def test_invalid_config_exits_2(run_cli, dataset_dir: Path, out_dir: Path, tmp_path: Path):
    config = tmp_path / "codeguardian.json"
    config.write_text(json.dumps({"workers": 0}))
    proc = run_cli(["dir", dataset_dir, "--config", config, "--out", out_dir])
    assert proc.returncode == 2


def test_cli_flags_override_config(run_cli, load_json, dataset_dir: Path, out_dir: Path, tmp_path: Path):
    config = tmp_path / "codeguardian.json"
    config.write_text(json.dumps({"max_file_size": 120}))
    proc = run_cli(
        ["dir", dataset_dir, "--config", config, "--max-file-size", "1000000", "--include", "*.java", "--out", out_dir, "--no-progress"]
    )
    assert proc.returncode == 0, proc.stderr
    data = load_json(out_dir / "findings.json")
    assert {i["file"] for i in data["issues"]} == {"java/App.java"}


def test_rules_file_can_add_a_language(run_cli, load_json, out_dir: Path, tmp_path: Path):
    rules = tmp_path / "rules.json"
    rules.write_text(
        json.dumps(
            [
                {
                    "id": "elixir:S1",
                    "title": "Debug output should not be committed",
                    "severity": "minor",
                    "languages": ["elixir"],
                    "patterns": [r"IO\.inspect"],
                }
            ]
        )
    )
    source = tmp_path / "lib.ex"
    source.write_text("def run(x), do: IO.inspect(x)\n", encoding="utf-8")
    proc = run_cli(["file", source, "--language", "elixir", "--rules-file", rules, "--out", out_dir])
    assert proc.returncode == 0, proc.stderr
    data = load_json(out_dir / "findings.json")
    assert [(i["rule_id"], i["severity"]) for i in data["issues"]] == [("elixir:S1", "medium")]
