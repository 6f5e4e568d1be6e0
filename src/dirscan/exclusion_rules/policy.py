"""The exclusion decision combining patterns, size limits and binary detection."""

import logging
import os
from typing import TYPE_CHECKING, NamedTuple, Optional

from dirscan.file_system_tree.file_classifier import FileClassifier

from .pattern_rules import RuleSet
from .size_rules import format_file_size

if TYPE_CHECKING:
    from dirscan.config import ExclusionRules

logger = logging.getLogger(__name__)

REASON_CUSTOM_INCLUSION = "custom inclusion"
REASON_PATTERN_RULE = "gitignore or custom exclusion rule"
REASON_BINARY_FILE = "binary file excluded"


class ExclusionVerdict(NamedTuple):
    """The excluded/reason pair assigned to one filesystem entry."""

    excluded: bool
    reason: Optional[str] = None


INCLUDED = ExclusionVerdict(False, None)


class ExclusionPolicy:
    """Decide, path by path, whether an entry is excluded and why.

    Criteria are evaluated in a fixed order and the first decisive one wins:

    1. Custom inclusions: a path matching the inclusion patterns is included
       ("custom inclusion"). Not matching them never excludes anything.
    2. Pattern rules: a path excluded by the scan's RuleSet is excluded
       ("gitignore or custom exclusion rule").
    3. Size limit (files only): a file larger than max_file_size is excluded, with
       the formatted limit in the reason.
    4. Binary content (files only): a file classified as binary is excluded
       ("binary file excluded").
    5. Otherwise the path is included with no reason.

    The policy holds only read-only state and can be shared between threads.

    Attributes:
        rules (ExclusionRules): The scan configuration.
        rule_set (RuleSet): Compiled default, gitignore and custom exclusion rules.
        classifier (FileClassifier): Binary/text classifier.

    Example:
        >>> from dirscan.config import ExclusionRules
        >>> policy = ExclusionPolicy(
        ...     ExclusionRules(custom_inclusions=("src/**",)),
        ...     RuleSet.from_lines(["*.js"]),
        ... )
        >>> policy.decide("src/app.js", False, "/project/src/app.js", size=10)
        ExclusionVerdict(excluded=False, reason='custom inclusion')
        >>> policy.decide("lib/app.js", False, "/project/lib/app.js", size=10)
        ExclusionVerdict(excluded=True, reason='gitignore or custom exclusion rule')
    """

    def __init__(
        self,
        rules: "ExclusionRules",
        rule_set: RuleSet,
        classifier: Optional[FileClassifier] = None,
    ) -> None:
        self.rules = rules
        self.rule_set = rule_set
        self.classifier = classifier if classifier is not None else FileClassifier()
        self._inclusions = RuleSet.from_lines(rules.custom_inclusions, source="custom inclusions")

    def decide(
        self,
        relative_path: str,
        is_directory: bool,
        full_path: str,
        size: Optional[int] = None,
    ) -> ExclusionVerdict:
        """Compute the exclusion verdict for one entry.

        Args:
            relative_path: Forward-slash separated path relative to the scan root.
            is_directory: Whether the entry is a directory. Directories skip the size
                and binary checks.
            full_path: Filesystem path of the entry.
            size: File size in bytes if already known. When omitted and a size limit
                is active, full_path is stat'ed; if that fails the size check is
                skipped.

        Returns:
            The verdict. This method never raises for filesystem problems.
        """
        if self._inclusions and self._inclusions.is_excluded(relative_path, is_directory):
            return ExclusionVerdict(False, REASON_CUSTOM_INCLUSION)

        if self.rule_set.is_excluded(relative_path, is_directory):
            logger.debug("Path %s matched an exclusion rule", relative_path)
            return ExclusionVerdict(True, REASON_PATTERN_RULE)

        if is_directory:
            return INCLUDED

        if self.rules.exclude_by_size:
            file_size = size if size is not None else self._stat_size(full_path)
            if file_size is not None and file_size > self.rules.max_file_size:
                return ExclusionVerdict(True, f"file size exceeds {format_file_size(self.rules.max_file_size)}")

        if self.rules.exclude_binary_files and self.classifier.is_binary(full_path):
            return ExclusionVerdict(True, REASON_BINARY_FILE)

        return INCLUDED

    @staticmethod
    def _stat_size(full_path: str) -> Optional[int]:
        try:
            return os.stat(full_path).st_size
        except OSError as e:
            logger.debug("Could not determine size of %s: %s", full_path, e)
            return None
