"""Loading of gitignore-style rule files from a scan root and the user's home."""

import logging
import re
from pathlib import Path
from typing import List, Optional

from dirscan.types import PathType

from .pattern_rules import RuleSet, is_rule_line

logger = logging.getLogger(__name__)

LOCAL_IGNORE_FILENAME = ".gitignore"
GLOBAL_IGNORE_FILENAME = ".gitignore_global"

_LINE_BREAK = re.compile(r"\r?\n")


def split_rule_lines(content: str) -> List[str]:
    """Split rule file content into pattern lines.

    Lines are split on '\\n' or '\\r\\n', trailing whitespace is removed, and blank
    and comment lines are dropped. Each physical line yields at most one pattern;
    no attempt is made to find several patterns inside one line.

    Args:
        content: The decoded file content.

    Returns:
        The pattern lines in file order.

    Example:
        >>> split_rule_lines("# deps\\r\\nnode_modules/\\r\\n\\n*.log  \\n")
        ['node_modules/', '*.log']
    """
    lines = (line.rstrip() for line in _LINE_BREAK.split(content))
    return [line for line in lines if is_rule_line(line)]


class IgnoreFileLoader:
    """Locate and read gitignore-style rule files for a scan.

    Two sources are consulted, both optional: the '.gitignore' file at the scan
    root and a global fallback file in the user's home directory
    ('~/.gitignore_global'). Rules from the local file come first. A source that is
    missing or cannot be read contributes no rules; the failure is logged and the
    scan proceeds.

    Attributes:
        global_ignore_path (Optional[Path]): Location of the global rule file, or None
            when the global fallback is disabled.

    Example:
        >>> import tempfile
        >>> from pathlib import Path
        >>> with tempfile.TemporaryDirectory() as tmpdir:
        ...     _ = (Path(tmpdir) / ".gitignore").write_text("*.log\\n")
        ...     rules = IgnoreFileLoader(use_global_ignore=False).load(tmpdir)
        >>> rules.is_excluded("debug.log")
        True
    """

    def __init__(self, global_ignore_path: Optional[PathType] = None, use_global_ignore: bool = True) -> None:
        """Initialize the loader.

        Args:
            global_ignore_path: Path to the global rule file. Defaults to
                '~/.gitignore_global'.
            use_global_ignore: Whether to consult the global rule file at all.
        """
        self.global_ignore_path: Optional[Path] = None
        if use_global_ignore:
            if global_ignore_path is None:
                self.global_ignore_path = Path.home() / GLOBAL_IGNORE_FILENAME
            else:
                self.global_ignore_path = Path(global_ignore_path)

    def load(self, root_path: PathType) -> RuleSet:
        """Load the rules that apply to a scan rooted at root_path.

        Args:
            root_path: The scan root. Can be any path-like object.

        Returns:
            A RuleSet with local rules followed by global rules. Empty if neither
            file is available.
        """
        lines = self.read_lines(Path(root_path) / LOCAL_IGNORE_FILENAME)
        if self.global_ignore_path is not None:
            lines.extend(self.read_lines(self.global_ignore_path))
        return RuleSet.from_lines(lines, source=f"rule files for {root_path}")

    def read_lines(self, rules_file: PathType) -> List[str]:
        """Read pattern lines from one rule file.

        The file is decoded as UTF-8; a byte order mark is tolerated and undecodable
        bytes are replaced rather than rejected.

        Args:
            rules_file: Path to the rule file.

        Returns:
            The pattern lines, or an empty list if the file is missing or unreadable.
        """
        path = Path(rules_file)
        if not path.is_file():
            logger.debug("No rule file at %s", path)
            return []

        try:
            content = path.read_bytes().decode("utf-8-sig", errors="replace")
        except OSError as e:
            logger.warning("Could not read rule file %s: %s", path, e)
            return []

        lines = split_rule_lines(content)
        logger.info("Loaded %d rule(s) from %s", len(lines), path)
        return lines
