"""Integration tests for the command-line interface.

These tests run dirscan in a subprocess and cover:
- Rule sources (.gitignore, -e files, -i patterns, -I inclusions, -c config)
- Output formats and output files
- Symlink following
- Exit codes for errors and closed pipes
"""

import json
import os
import platform
import subprocess
import sys
from pathlib import Path

import pytest

# Skip all tests in this module unless --run-cli-tests is given
pytestmark = pytest.mark.skipif(
    "not config.getoption('--run-cli-tests')", reason="Only run when --run-cli-tests is given"
)


@pytest.fixture
def temp_project(tmp_path):
    """Create a temporary project directory with test files."""
    base_dir = tmp_path / "project"
    base_dir.mkdir()

    (base_dir / "src").mkdir()
    (base_dir / "src" / "utils").mkdir()
    (base_dir / "docs").mkdir()
    (base_dir / "node_modules").mkdir()
    (base_dir / "build").mkdir()

    (base_dir / "src" / "main.py").write_text("def main():\n    print('Hello')\n")
    (base_dir / "src" / "utils" / "helpers.py").write_text("def helper():\n    pass\n")
    (base_dir / "docs" / "README.md").write_text("# Test Project\nDescription.\n")
    (base_dir / "src" / "main.pyc").write_bytes(b"compiled python")
    (base_dir / "server.log").write_text("DEBUG: test log\n")
    (base_dir / "package.json").write_text('{"name": "test"}\n')
    (base_dir / "build" / "output.min.js").write_text("console.log('test')\n")
    (base_dir / "node_modules" / "module.js").write_text("export default {}\n")
    (base_dir / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n" + b"\0" * 64)

    (base_dir / ".gitignore").write_text("*.pyc\n")
    (base_dir / "custom.ignore").write_text("# docs are generated\ndocs/\n")

    return base_dir


@pytest.fixture
def cli_env(tmp_path):
    """Environment with an empty home directory, so no global rule file applies."""
    home = tmp_path / "home"
    home.mkdir()
    env = dict(os.environ)
    env["HOME"] = str(home)
    return env


def run_cli(args, env, timeout=30):
    """Run the dirscan CLI with the given arguments.

    Returns:
        CompletedProcess object with stdout/stderr as text
    """
    cmd = [sys.executable, "-m", "dirscan.cli.main"] + args
    return subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True, env=env, timeout=timeout)


def included_paths(stdout):
    return {line.split("\t")[0] for line in stdout.splitlines() if line}


def test_cli_default_rules(temp_project, cli_env):
    result = run_cli(["-f", "files", str(temp_project)], cli_env)

    assert result.returncode == 0
    assert included_paths(result.stdout) == {
        ".gitignore",
        "custom.ignore",
        "docs/README.md",
        "package.json",
        "src/main.py",
        "src/utils/helpers.py",
    }


def test_cli_tree_annotations(temp_project, cli_env):
    result = run_cli(["--sort", str(temp_project)], cli_env)

    assert result.returncode == 0
    assert result.stdout.startswith("project/\n")
    assert "build/ [excluded: gitignore or custom exclusion rule]" in result.stdout
    assert "main.pyc [excluded: gitignore or custom exclusion rule]" in result.stdout
    assert "logo.png [excluded: binary file excluded]" in result.stdout
    assert "output.min.js" not in result.stdout


def test_cli_exclusion_file_and_patterns(temp_project, cli_env):
    result = run_cli(
        ["-f", "files", "-e", str(temp_project / "custom.ignore"), "-i", "*.json", str(temp_project)], cli_env
    )

    assert result.returncode == 0
    paths = included_paths(result.stdout)
    assert "docs/README.md" not in paths
    assert "package.json" not in paths
    assert "src/main.py" in paths


def test_cli_negation_after_exclusion(temp_project, cli_env):
    result = run_cli(["-f", "files", "-i", "src/", "-i", "!src/", str(temp_project)], cli_env)
    assert "src/main.py" in included_paths(result.stdout)


def test_cli_inclusion_overrides_defaults(temp_project, cli_env):
    result = run_cli(["-f", "files", "-I", "build", str(temp_project)], cli_env)
    assert "build/output.min.js" in included_paths(result.stdout)


def test_cli_no_gitignore(temp_project, cli_env):
    result = run_cli(["-f", "files", "--no-gitignore", "--include-binary", str(temp_project)], cli_env)
    paths = included_paths(result.stdout)
    assert "src/main.pyc" in paths
    assert "logo.png" in paths


def test_cli_config_file(temp_project, cli_env, tmp_path):
    config = tmp_path / "settings.json"
    config.write_text(json.dumps({"exclusionRules": {"customExclusions": [], "maxFileSize": 20}}))

    result = run_cli(["-f", "json", "-c", str(config), str(temp_project)], cli_env)

    assert result.returncode == 0
    document = json.loads(result.stdout)
    assert document["exclusionRules"]["customExclusions"] == []
    nodes = {node["name"]: node for node in document["nodes"]}
    assert not nodes["node_modules"]["excluded"]
    assert nodes["package.json"]["excluded"] is False
    assert nodes["docs"]["children"][0]["exclusionReason"] == "file size exceeds 20 B"


def test_cli_output_file(temp_project, cli_env, tmp_path):
    output = tmp_path / "scan.json"
    result = run_cli(["-f", "json", "-o", str(output), "-s", "file", str(temp_project)], cli_env)

    assert result.returncode == 0
    assert result.stdout == ""
    content = output.read_text()
    assert '"root"' in content
    assert "Included files:" in content


def test_cli_parallel_walk_matches_sequential(temp_project, cli_env):
    sequential = run_cli(["--sort", str(temp_project)], cli_env)
    parallel = run_cli(["--sort", "-j", "4", str(temp_project)], cli_env)

    assert parallel.returncode == 0
    assert parallel.stdout == sequential.stdout


def test_cli_symlinks(temp_project, cli_env):
    try:
        os.symlink(temp_project / "src", temp_project / "src_link")
        os.symlink(temp_project / "src", temp_project / "src" / "utils" / "back")
    except (OSError, NotImplementedError):
        pytest.skip("Symlinks not supported on this platform")

    followed = run_cli(["-f", "files", str(temp_project)], cli_env)
    assert "src_link/main.py" in included_paths(followed.stdout)

    tree = run_cli([str(temp_project)], cli_env)
    assert "back/ [excluded: symbolic link loop]" in tree.stdout

    not_followed = run_cli(["-f", "files", "--no-follow-symlinks", str(temp_project)], cli_env)
    paths = included_paths(not_followed.stdout)
    assert "src_link" in paths
    assert "src_link/main.py" not in paths


def test_cli_invalid_root(temp_project, cli_env):
    result = run_cli([str(temp_project / "package.json")], cli_env)
    assert result.returncode == 1
    assert "Scan root is not a directory" in result.stderr


def test_cli_missing_root(tmp_path, cli_env):
    result = run_cli([str(tmp_path / "missing")], cli_env)
    assert result.returncode == 1
    assert "does not exist" in result.stderr


def test_cli_syntax_error(temp_project, cli_env):
    result = run_cli(["--format", "xml", str(temp_project)], cli_env)
    assert result.returncode == 2


def test_cli_version(cli_env):
    result = run_cli(["--version"], cli_env)
    assert result.returncode == 0
    assert result.stdout.startswith("dirscan")


@pytest.mark.skipif(platform.system() == "Windows", reason="SIGPIPE is not available on Windows")
def test_cli_closed_pipe(tmp_path, cli_env):
    base_dir = tmp_path / "many"
    base_dir.mkdir()
    for i in range(2000):
        (base_dir / f"file_{i:04d}.txt").write_text("x")

    producer = subprocess.Popen(
        [sys.executable, "-m", "dirscan.cli.main", "-f", "files", str(base_dir)],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env=cli_env,
    )
    assert producer.stdout is not None
    producer.stdout.readline()
    producer.stdout.close()
    _, stderr = producer.communicate(timeout=30)

    assert producer.returncode in (0, 141)
    assert b"Traceback" not in stderr


def test_cli_empty_directory(tmp_path, cli_env):
    empty = Path(tmp_path / "empty")
    empty.mkdir()
    result = run_cli([str(empty)], cli_env)
    assert result.returncode == 0
    assert result.stdout == "empty/\n"
