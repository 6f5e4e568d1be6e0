"""Test configuration and fixtures for dirscan."""

import pytest


def pytest_addoption(parser):
    """Add custom command-line options for tests."""
    parser.addoption("--run-cli-tests", action="store_true", default=False, help="Run CLI integration tests (slow)")


@pytest.fixture
def sample_project(tmp_path):
    """Create the reference project used by the end-to-end scenarios.

    Layout:
        a.js               50 bytes
        b.png              200000 bytes
        node_modules/x.js
        .gitignore         node_modules/ and *.log
    """
    (tmp_path / "a.js").write_bytes(b"x" * 50)
    (tmp_path / "b.png").write_bytes(b"\x89PNG" + b"\0" * (200000 - 4))
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "node_modules" / "x.js").write_text("module.exports = {}\n")
    (tmp_path / ".gitignore").write_text("node_modules/\n*.log\n")
    return tmp_path
