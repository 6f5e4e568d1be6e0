import threading
from unittest.mock import MagicMock

import pytest

from dirscan.config import ExclusionRules
from dirscan.exceptions import InvalidRootError
from dirscan.exclusion_rules.ignore_file_loader import IgnoreFileLoader
from dirscan.exclusion_rules.policy import REASON_BINARY_FILE, REASON_CUSTOM_INCLUSION, REASON_PATTERN_RULE
from dirscan.file_system_tree.file_classifier import FileClassifier
from dirscan.file_system_tree.permission_action import PermissionAction
from dirscan.scanner import DirectoryScanner, build_rule_set, scan_directory


@pytest.fixture
def local_loader():
    """A loader that never reads the user's global rule file."""
    return IgnoreFileLoader(use_global_ignore=False)


def by_name(nodes):
    return {node.name: node for node in nodes}


def test_build_rule_set_order(tmp_path, local_loader):
    (tmp_path / ".gitignore").write_text("*.txt\n!Thumbs.db\n")
    rules = ExclusionRules(custom_exclusions=("!keep.txt",))

    rule_set = build_rule_set(tmp_path, rules, local_loader)

    assert [rule.pattern for rule in rule_set] == [
        ".git/",
        ".DS_Store",
        "Thumbs.db",
        "*.txt",
        "!Thumbs.db",
        "!keep.txt",
    ]
    assert rule_set.is_excluded("notes.txt")
    assert not rule_set.is_excluded("keep.txt")
    assert not rule_set.is_excluded("Thumbs.db")
    assert rule_set.is_excluded(".git", is_directory=True)


def test_build_rule_set_without_gitignore(tmp_path, local_loader):
    (tmp_path / ".gitignore").write_text("*.txt\n")
    rules = ExclusionRules(use_gitignore=False, custom_exclusions=())

    rule_set = build_rule_set(tmp_path, rules, local_loader)

    assert [rule.pattern for rule in rule_set] == [".git/", ".DS_Store", "Thumbs.db"]
    assert not rule_set.is_excluded("notes.txt")


def test_build_rule_set_reads_global_file(tmp_path):
    project = tmp_path / "project"
    project.mkdir()
    global_file = tmp_path / "global_ignore"
    global_file.write_text("*.bak\n")

    rule_set = build_rule_set(project, ExclusionRules(custom_exclusions=()), IgnoreFileLoader(global_file))
    assert rule_set.is_excluded("old.bak")


def test_scan_sample_project(sample_project, local_loader):
    result = DirectoryScanner(sample_project, loader=local_loader).scan()
    top = by_name(result.nodes)

    assert set(top) == {"a.js", "b.png", "node_modules", ".gitignore"}

    assert not top["a.js"].excluded
    assert top["a.js"].is_supported_language

    assert top["b.png"].excluded
    assert top["b.png"].exclusion_reason == REASON_BINARY_FILE

    assert top["node_modules"].excluded
    assert top["node_modules"].exclusion_reason == REASON_PATTERN_RULE
    assert top["node_modules"].children is None

    included = [node.relative_path for node in result.iterate_included_files()]
    assert sorted(included) == [".gitignore", "a.js"]
    assert not result.cancelled


def test_gitignore_rules_apply_without_custom_exclusions(sample_project, local_loader):
    (sample_project / "debug.log").write_text("trace")
    rules = ExclusionRules(custom_exclusions=())

    top = by_name(DirectoryScanner(sample_project, rules, loader=local_loader).scan().nodes)

    assert top["node_modules"].excluded
    assert top["debug.log"].excluded


def test_scan_without_gitignore(sample_project, local_loader):
    rules = ExclusionRules(use_gitignore=False, custom_exclusions=())
    top = by_name(DirectoryScanner(sample_project, rules, loader=local_loader).scan().nodes)

    node_modules = top["node_modules"]
    assert not node_modules.excluded
    assert [child.relative_path for child in node_modules.children] == ["node_modules/x.js"]


def test_custom_inclusion_overrides_exclusions(sample_project, local_loader):
    rules = ExclusionRules(custom_inclusions=("node_modules", "*.png"))
    top = by_name(DirectoryScanner(sample_project, rules, loader=local_loader).scan().nodes)

    node_modules = top["node_modules"]
    assert not node_modules.excluded
    assert node_modules.exclusion_reason == REASON_CUSTOM_INCLUSION
    x_js = by_name(node_modules.children)["x.js"]
    assert not x_js.excluded
    assert x_js.exclusion_reason == REASON_CUSTOM_INCLUSION

    assert not top["b.png"].excluded
    assert top["b.png"].exclusion_reason == REASON_CUSTOM_INCLUSION


def test_size_limit(tmp_path, local_loader):
    (tmp_path / "big.txt").write_bytes(b"a" * (11 * 1024 * 1024))
    (tmp_path / "small.txt").write_text("small")

    top = by_name(DirectoryScanner(tmp_path, loader=local_loader).scan().nodes)

    assert top["big.txt"].excluded
    assert top["big.txt"].exclusion_reason == "file size exceeds 10.0 MB"
    assert top["big.txt"].size == 11 * 1024 * 1024
    assert not top["small.txt"].excluded


def test_size_limit_disabled(tmp_path, local_loader):
    (tmp_path / "big.txt").write_bytes(b"a" * 2048)
    rules = ExclusionRules(max_file_size=1024, exclude_by_size=False)

    top = by_name(DirectoryScanner(tmp_path, rules, loader=local_loader).scan().nodes)
    assert not top["big.txt"].excluded


def test_binary_files_kept_when_requested(sample_project, local_loader):
    rules = ExclusionRules(exclude_binary_files=False)
    top = by_name(DirectoryScanner(sample_project, rules, loader=local_loader).scan().nodes)

    assert not top["b.png"].excluded
    assert top["b.png"].is_binary


def test_rule_files_are_reread_on_each_scan(sample_project, local_loader):
    scanner = DirectoryScanner(sample_project, ExclusionRules(custom_exclusions=()), loader=local_loader)
    assert not by_name(scanner.scan().nodes)["a.js"].excluded

    (sample_project / ".gitignore").write_text("*.js\n")
    assert by_name(scanner.scan().nodes)["a.js"].excluded


def test_missing_root(tmp_path):
    with pytest.raises(FileNotFoundError):
        DirectoryScanner(tmp_path / "missing")


def test_root_is_a_file(tmp_path):
    regular_file = tmp_path / "file.txt"
    regular_file.write_text("")
    with pytest.raises(InvalidRootError):
        DirectoryScanner(regular_file)


@pytest.mark.parametrize("action", ["ignore", "RAISE", PermissionAction.RAISE])
def test_permission_action_values(tmp_path, action):
    DirectoryScanner(tmp_path, permission_action=action)


def test_invalid_permission_action(tmp_path):
    with pytest.raises(ValueError, match="Invalid permission_action"):
        DirectoryScanner(tmp_path, permission_action="explode")


def test_scan_directory_helper(sample_project, local_loader):
    result = scan_directory(sample_project, loader=local_loader, max_workers=2)
    assert set(by_name(result.nodes)) == {"a.js", "b.png", "node_modules", ".gitignore"}


def test_scan_directory_passes_scanner_options(sample_project, local_loader):
    classifier = MagicMock(spec=FileClassifier)
    classifier.is_binary.return_value = False
    classifier.is_supported_language.return_value = False

    result = scan_directory(
        sample_project,
        ExclusionRules(custom_exclusions=()),
        loader=local_loader,
        classifier=classifier,
        follow_symlinks=False,
        permission_action="fail",
        max_workers=1,
    )

    assert not by_name(result.nodes)["b.png"].excluded
    assert classifier.is_binary.called


def test_scan_directory_rejects_invalid_permission_action(sample_project):
    with pytest.raises(ValueError, match="Invalid permission_action"):
        scan_directory(sample_project, permission_action="explode")


def test_scan_directory_cancelled(sample_project, local_loader):
    event = threading.Event()
    event.set()
    result = scan_directory(sample_project, loader=local_loader, cancel_event=event)
    assert result.cancelled
    assert result.nodes == ()
