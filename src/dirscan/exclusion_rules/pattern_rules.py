"""Gitignore-style pattern rules evaluated with last-match-wins semantics."""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Tuple

from pathspec.patterns import GitWildMatchPattern  # type: ignore
from pathspec.patterns.gitwildmatch import GitWildMatchPatternError  # type: ignore

from dirscan.exceptions import InvalidPatternError

logger = logging.getLogger(__name__)

# Rules applied to every scan before any gitignore or custom rule
DEFAULT_RULES = (".git/", ".DS_Store", "Thumbs.db")


def is_rule_line(line: str) -> bool:
    """Return True if a line carries a pattern, False for blank and comment lines."""
    stripped = line.strip()
    return bool(stripped) and not stripped.startswith("#")


@dataclass(frozen=True)
class PatternRule:
    """One compiled gitignore-style pattern.

    Attributes:
        pattern (str): The raw pattern text.
        negated (bool): True if the pattern, once surrounding whitespace is dropped,
            starts with '!'. A matching negated rule re-includes the path.
        directory_only (bool): True if the pattern ends with '/'. Such a rule only
            matches directories (and everything below a matching directory).
        anchored (bool): True if the pattern starts with '/', restricting the match to
            paths rooted at the scan root.
        matcher (GitWildMatchPattern): The pathspec pattern doing the actual matching.
    """

    pattern: str
    negated: bool
    directory_only: bool
    anchored: bool
    matcher: GitWildMatchPattern = field(compare=False, repr=False)

    def matches(self, relative_path: str, is_directory: bool = False) -> bool:
        """Check whether this rule matches a path, ignoring negation.

        Args:
            relative_path: Forward-slash separated path relative to the scan root.
            is_directory: Whether the path names a directory.

        Returns:
            True if the pattern matches the path.
        """
        return self._matches_key(_match_key(relative_path), is_directory)

    def _matches_key(self, key: str, is_directory: bool) -> bool:
        # Only directory-only rules see the trailing slash, so "foo/**" matches the
        # contents of foo but not foo itself
        if is_directory and self.directory_only:
            key = f"{key}/"
        return self.matcher.match_file(key) is not None


def compile_rule(pattern: str) -> PatternRule:
    """Compile a single gitignore pattern line into a PatternRule.

    Args:
        pattern: The pattern text, e.g. "*.log", "!keep.log", "build/", "/dist".

    Returns:
        The compiled rule.

    Raises:
        InvalidPatternError: If the text is blank, a comment, or cannot be tokenized.

    Example:
        >>> rule = compile_rule("!build/")
        >>> rule.negated, rule.directory_only, rule.anchored
        (True, True, False)
        >>> rule.matches("build", is_directory=True)
        True
        >>> rule.matches("build", is_directory=False)
        False
    """
    if not pattern.strip():
        raise InvalidPatternError(pattern, "blank lines are not rules")
    if pattern.lstrip().startswith("#"):
        raise InvalidPatternError(pattern, "comment lines are not rules")

    try:
        matcher = GitWildMatchPattern(pattern)
    except GitWildMatchPatternError as e:
        raise InvalidPatternError(pattern, str(e))

    # pathspec yields no regex for patterns that match nothing (e.g. a lone "!")
    if matcher.include is None:
        raise InvalidPatternError(pattern, "pattern does not match any path")

    # Flags follow the text pathspec actually compiled: surrounding whitespace is
    # dropped unless the pattern ends in an escaped space
    normalized = pattern.lstrip() if pattern.endswith("\\ ") else pattern.strip()
    negated = matcher.include is False
    body = normalized[1:] if negated else normalized
    return PatternRule(
        pattern=pattern,
        negated=negated,
        directory_only=body.endswith("/"),
        anchored=body.startswith("/"),
        matcher=matcher,
    )


class RuleSet:
    """An ordered, immutable sequence of PatternRules.

    A path is excluded when the last rule that matches it is not negated. If the
    last matching rule is negated, or no rule matches, the path is not excluded.
    RuleSets never change after construction; combining rules produces a new
    RuleSet, so one instance can be shared by every branch of a walk.

    Attributes:
        rules (Tuple[PatternRule, ...]): The rules in evaluation order.

    Example:
        >>> rules = RuleSet.from_lines(["node_modules/", "!node_modules/keep.txt"])
        >>> rules.is_excluded("node_modules/keep.txt")
        False
        >>> rules.is_excluded("node_modules/other.js")
        True
        >>> rules.is_excluded("node_modules", is_directory=True)
        True
        >>> RuleSet.from_lines(["build/**"]).is_excluded("build", is_directory=True)
        False
    """

    def __init__(self, rules: Iterable[PatternRule] = ()) -> None:
        self._rules: Tuple[PatternRule, ...] = tuple(rules)

    @classmethod
    def from_lines(cls, lines: Iterable[str], source: str = "patterns") -> "RuleSet":
        """Build a RuleSet from pattern lines.

        Blank and comment lines are dropped. Lines that cannot be compiled are
        skipped with a warning so that one malformed line does not discard the rest.

        Args:
            lines: Pattern lines in evaluation order.
            source: Description of where the lines came from, used in log messages.

        Returns:
            A new RuleSet.
        """
        compiled = []
        for line in lines:
            if not is_rule_line(line):
                continue
            try:
                compiled.append(compile_rule(line))
            except InvalidPatternError as e:
                logger.warning("Skipping pattern from %s: %s", source, e)
        return cls(compiled)

    @classmethod
    def defaults(cls) -> "RuleSet":
        """Return a RuleSet holding the rules applied to every scan."""
        return cls.from_lines(DEFAULT_RULES, source="default rules")

    @property
    def rules(self) -> Tuple[PatternRule, ...]:
        return self._rules

    def extend(self, other: Iterable[PatternRule]) -> "RuleSet":
        """Return a new RuleSet with other's rules appended after this one's."""
        return RuleSet(self._rules + tuple(other))

    def is_excluded(self, relative_path: str, is_directory: bool = False) -> bool:
        """Evaluate a path against the rules using last-match-wins semantics.

        Args:
            relative_path: Forward-slash separated path relative to the scan root.
            is_directory: Whether the path names a directory. Directory-only rules
                match a path itself only when this is True.

        Returns:
            True if the last matching rule is not negated, False otherwise.
        """
        key = _match_key(relative_path)
        for rule in reversed(self._rules):
            if rule._matches_key(key, is_directory):
                return not rule.negated
        return False

    def __iter__(self) -> Iterator[PatternRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __bool__(self) -> bool:
        return bool(self._rules)

    def __repr__(self) -> str:
        return f"RuleSet({[rule.pattern for rule in self._rules]!r})"


def _match_key(relative_path: str) -> str:
    """Normalize a relative path into the form the pathspec regexes expect."""
    path = relative_path.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path.lstrip("/").rstrip("/")
