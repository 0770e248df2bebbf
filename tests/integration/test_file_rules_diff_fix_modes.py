import json
import os
from pathlib import Path


def test_file_mode_detects_language(run_cli, load_json, dataset_dir: Path, out_dir: Path):
    proc = run_cli(["file", dataset_dir / "src" / "db.ts", "--out", out_dir])
    assert proc.returncode == 0, proc.stderr
    data = load_json(out_dir / "findings.json")
    assert [i["rule_id"] for i in data["issues"]].count("typescript:S2077") == 3


def test_file_mode_language_override(run_cli, load_json, dataset_dir: Path, out_dir: Path, tmp_path: Path):
    snippet = tmp_path / "snippet.txt"
    snippet.write_text("value = eval(expr)\n", encoding="utf-8")
    proc = run_cli(["file", snippet, "--language", "py", "--out", out_dir])
    assert proc.returncode == 0, proc.stderr
    data = load_json(out_dir / "findings.json")
    assert [i["rule_id"] for i in data["issues"]] == ["python:S1523"]

    proc = run_cli(["file", snippet, "--out", out_dir])
    assert proc.returncode == 0
    assert load_json(out_dir / "findings.json")["issues"] == []


def test_binary_file_does_not_crash(run_cli, load_json, dataset_dir: Path, out_dir: Path):
    bin_path = dataset_dir / "binary.bin"
    bin_path.write_bytes(b"\x00\x01" + os.urandom(1024))
    proc = run_cli(["dir", dataset_dir, "--out", out_dir, "--no-progress"])
    assert proc.returncode == 0, proc.stderr
    data = load_json(out_dir / "findings.json")
    assert {"file": "binary.bin", "kind": "unreadable"}.items() <= next(
        d for d in data["diagnostics"] if d["file"] == "binary.bin"
    ).items()


def test_rules_mode_lists_catalog(run_cli):
    proc = run_cli(["rules", "--language", "java", "--json"])
    assert proc.returncode == 0, proc.stderr
    rules = json.loads(proc.stdout)
    ids = {r["id"] for r in rules}
    assert "java:S2077" in ids
    assert "common:S6418" in ids
    assert "python:S5135" not in ids

    proc = run_cli(["rules"])
    assert "typescript:S2077" in proc.stdout


def test_diff_mode(run_cli, tmp_path: Path):
    a = tmp_path / "a.txt"
    b = tmp_path / "b.txt"
    a.write_text("keep\nold\n", encoding="utf-8")
    b.write_text("keep\nnew\n", encoding="utf-8")
    proc = run_cli(["diff", a, b])
    assert proc.returncode == 0, proc.stderr
    assert proc.stdout.splitlines()[:3] == ["  keep", "- old", "+ new"]


def test_fix_mode(run_cli, dataset_dir: Path):
    proc = run_cli(["fix", dataset_dir / "tools" / "deploy.py"])
    assert proc.returncode == 0, proc.stderr
    assert "+     conf = yaml.safe_load(stream)" in proc.stdout
    assert "+     except Exception:" in proc.stdout
    assert "python:S4790" in proc.stdout

    clean = dataset_dir / "docs" / "README.md"
    proc = run_cli(["fix", clean])
    assert "No fixable findings." in proc.stdout
