"""End-to-end directory scanning.

This module wires the pieces of a scan together: the rule files are loaded into a
RuleSet, an ExclusionPolicy is built from it and the caller's ExclusionRules, and
the DirectoryWalker produces the annotated tree.
"""

import logging
import threading
from pathlib import Path
from typing import Optional, Union

from dirscan.config import ExclusionRules
from dirscan.exceptions import InvalidRootError
from dirscan.exclusion_rules.ignore_file_loader import IgnoreFileLoader
from dirscan.exclusion_rules.pattern_rules import RuleSet
from dirscan.exclusion_rules.policy import ExclusionPolicy
from dirscan.file_system_tree.directory_walker import DirectoryWalker, ScanResult
from dirscan.file_system_tree.file_classifier import FileClassifier
from dirscan.file_system_tree.permission_action import PermissionAction
from dirscan.types import PathType

logger = logging.getLogger(__name__)


def build_rule_set(root_path: PathType, rules: ExclusionRules, loader: Optional[IgnoreFileLoader] = None) -> RuleSet:
    """Build the RuleSet for a scan.

    Rules are appended in a fixed order: the default rules, then the rules from the
    gitignore files (when rules.use_gitignore is set), then rules.custom_exclusions.
    Under last-match-wins evaluation, later rules override earlier ones.

    Args:
        root_path: The scan root.
        rules: The scan configuration.
        loader: Rule file loader. Defaults to IgnoreFileLoader().

    Returns:
        The combined RuleSet.
    """
    rule_set = RuleSet.defaults()
    if rules.use_gitignore:
        rule_set = rule_set.extend((loader or IgnoreFileLoader()).load(root_path))
    rule_set = rule_set.extend(RuleSet.from_lines(rules.custom_exclusions, source="custom exclusions"))
    logger.debug("Rule set for %s: %r", root_path, rule_set)
    return rule_set


class DirectoryScanner:
    """Scan a directory with a fixed exclusion configuration.

    Attributes:
        root_path (Path): Directory being scanned.
        rules (ExclusionRules): Exclusion configuration for the scan.

    Example:
        >>> scanner = DirectoryScanner("src")  # doctest: +SKIP
        >>> result = scanner.scan()  # doctest: +SKIP
        >>> [node.relative_path for node in result.iterate_included_files()]  # doctest: +SKIP
        ['main.py', 'utils/helpers.py']

    Raises:
        FileNotFoundError: If the root path doesn't exist.
        InvalidRootError: If the root path exists but isn't a directory.
    """

    def __init__(
        self,
        root_path: PathType,
        rules: Optional[ExclusionRules] = None,
        *,
        loader: Optional[IgnoreFileLoader] = None,
        classifier: Optional[FileClassifier] = None,
        follow_symlinks: bool = True,
        permission_action: Union[str, PermissionAction] = PermissionAction.IGNORE,
        max_workers: int = 1,
    ) -> None:
        """Initialize the scanner.

        Args:
            root_path: Directory to scan. Can be any path-like object.
            rules: Exclusion configuration. Defaults to ExclusionRules().
            loader: Rule file loader. Defaults to IgnoreFileLoader().
            classifier: Binary/text classifier. Defaults to FileClassifier().
            follow_symlinks: Whether to follow symbolic links during traversal.
            permission_action: How to handle unreadable entries, a PermissionAction
                or any value PermissionAction.parse accepts.
            max_workers: Number of threads used to walk sibling directories.

        Raises:
            FileNotFoundError: If the root path doesn't exist.
            InvalidRootError: If the root path isn't a directory.
            ValueError: If permission_action or max_workers is invalid.
        """
        self.root_path = Path(root_path)
        if not self.root_path.exists():
            raise FileNotFoundError(f"Root path does not exist: {self.root_path}")
        if not self.root_path.is_dir():
            raise InvalidRootError(str(self.root_path))

        self.rules = rules if rules is not None else ExclusionRules()
        self._loader = loader
        self._classifier = classifier if classifier is not None else FileClassifier()
        self._follow_symlinks = follow_symlinks
        self._permission_action = PermissionAction.parse(permission_action)
        self._max_workers = max_workers

    def scan(self, cancel_event: Optional[threading.Event] = None) -> ScanResult:
        """Run the scan.

        The RuleSet and policy are built fresh for every call, so rule files edited
        between scans are picked up.

        Args:
            cancel_event: Optional event; setting it stops the walk at the next
                directory expansion and yields a partial, cancelled result.

        Returns:
            The ScanResult.

        Raises:
            PermissionError: If access is denied and permission_action is RAISE.
        """
        rule_set = build_rule_set(self.root_path, self.rules, self._loader)
        policy = ExclusionPolicy(self.rules, rule_set, self._classifier)
        walker = DirectoryWalker(
            policy,
            follow_symlinks=self._follow_symlinks,
            permission_action=self._permission_action,
            max_workers=self._max_workers,
        )
        logger.info("Scanning %s", self.root_path)
        return walker.walk(self.root_path, cancel_event)


def scan_directory(
    root_path: PathType,
    rules: Optional[ExclusionRules] = None,
    *,
    cancel_event: Optional[threading.Event] = None,
    loader: Optional[IgnoreFileLoader] = None,
    classifier: Optional[FileClassifier] = None,
    follow_symlinks: bool = True,
    permission_action: Union[str, PermissionAction] = PermissionAction.IGNORE,
    max_workers: int = 1,
) -> ScanResult:
    """Scan root_path in one call.

    The keyword arguments other than cancel_event have the same meaning as in
    DirectoryScanner.

    Example:
        >>> result = scan_directory(".", ExclusionRules(use_gitignore=False))  # doctest: +SKIP
        >>> result.cancelled  # doctest: +SKIP
        False
    """
    scanner = DirectoryScanner(
        root_path,
        rules,
        loader=loader,
        classifier=classifier,
        follow_symlinks=follow_symlinks,
        permission_action=permission_action,
        max_workers=max_workers,
    )
    return scanner.scan(cancel_event)
