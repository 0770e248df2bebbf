import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]

DATASET = {
    "src/db.ts": (
        'export function byId(db, userId) {\n'
        '  return db.query("SELECT * FROM users WHERE id = " + userId);\n'
        "}\n"
        "export function remove(id) {\n"
        "  execute(\"DELETE FROM users WHERE id = '\" + id + \"'\");\n"
        "}\n"
        "export function byName(conn, name) {\n"
        "  return conn.exec(`SELECT * FROM data WHERE name = ${name}`);\n"
        "}\n"
    ),
    "src/app.js": (
        "export function render(el, html) {\n"
        "  el.innerHTML = html;\n"
        "  return Math.random();\n"
        "}\n"
    ),
    "tools/deploy.py": (
        "import hashlib\n"
        "import os\n"
        "import requests\n"
        "import yaml\n"
        "\n"
        "\n"
        "def deploy(target, stream):\n"
        "    os.system('deploy ' + target)\n"
        "    conf = yaml.load(stream)\n"
        "    digest = hashlib.md5(target.encode()).hexdigest()\n"
        "    try:\n"
        "        requests.post(conf['url'], data=digest, verify=False)\n"
        "    except:\n"
        "        pass\n"
    ),
    "java/App.java": (
        "public class App {\n"
        "    public void find(Statement s, String id) throws Exception {\n"
        '        s.executeQuery("SELECT * FROM t WHERE id = " + id);\n'
        "    }\n"
        "}\n"
    ),
    "docs/README.md": "Nothing to see here.\n",
    "node_modules/pkg/index.js": "eval(userCode);\n",
}


def run(args, cwd=None, env=None, timeout=120):
    """
    Run the CLI as a subprocess: python -m codeguardian.cli <args>
    Returns CompletedProcess with stdout/stderr text captured.
    """
    cmd = [sys.executable, "-m", "codeguardian.cli"] + list(map(str, args))
    full_env = dict(os.environ)
    full_env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(REPO_ROOT), full_env.get("PYTHONPATH")]))
    if env:
        full_env.update(env)
    return subprocess.run(cmd, cwd=cwd or REPO_ROOT, env=full_env, capture_output=True, text=True, timeout=timeout)


@pytest.fixture()
def run_cli():
    return run


@pytest.fixture()
def dataset_dir(tmp_path: Path) -> Path:
    """
    Write a small multi-language project into a temporary directory and return its path.
    """
    root = tmp_path / "dataset"
    for rel, content in DATASET.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture()
def out_dir(tmp_path: Path) -> Path:
    d = tmp_path / "out"
    d.mkdir(parents=True, exist_ok=True)
    return d


@pytest.fixture()
def load_json():
    def _load(p: Path):
        assert p.exists(), f"Expected file missing: {p}"
        with p.open("r") as f:
            return json.load(f)

    return _load
