"""Command-line argument parsing for dirscan.

This module defines the command-line interface for dirscan,
handling argument parsing and validation.
"""

import argparse
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

from dirscan import __version__
from dirscan.exclusion_rules.ignore_file_loader import IgnoreFileLoader
from dirscan.exclusion_rules.size_rules import parse_file_size


class ExclusionPatternAction(argparse.Action):
    """Collect exclusion patterns from -e/--exclude files and -i/--ignore options.

    Both options feed the same list, namespace.ignore, in the order they appear on
    the command line, so a negation given with -i after -e FILE overrides the file's
    rules under last-match-wins evaluation. Files named with -e are read as rule
    files: comment and blank lines are dropped.
    """

    def __init__(self, option_strings: List[str], dest: str, **kwargs: Any) -> None:
        super().__init__(option_strings, dest, **kwargs)

    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: Union[str, Sequence[Any], None],
        option_string: Optional[str] = None,
    ) -> None:
        if values is None:
            return

        if getattr(namespace, "ignore", None) is None:
            namespace.ignore = []

        if option_string in ("-e", "--exclude"):
            rules_file = Path(str(values))
            if not rules_file.is_file():
                parser.error(f"exclusion file not found: {rules_file}")
            namespace.ignore.extend(IgnoreFileLoader(use_global_ignore=False).read_lines(rules_file))
        else:  # -i/--ignore
            namespace.ignore.append(str(values))


def size_argument(value: str) -> int:
    """argparse type converting a human-readable size to bytes."""
    try:
        size = parse_file_size(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))
    if size <= 0:
        raise argparse.ArgumentTypeError("size must be positive")
    return size


def positive_int(value: str) -> int:
    """argparse type accepting integers of at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the command-line argument parser.

    Returns:
        An ArgumentParser instance configured with dirscan's options.
    """
    description = """
    dirscan: scan a directory and report which files are included or excluded.

    Every file and directory under the root is annotated with an exclusion verdict.
    Verdicts are decided in a fixed order: custom inclusion patterns force-include,
    then gitignore and custom exclusion patterns (last matching pattern wins,
    '!' negates), then the file size limit, then binary detection. Excluded
    directories are reported but never descended into.

    By default the root's .gitignore and ~/.gitignore_global are honoured, files
    over 10 MB and binary files are excluded, and a set of common build and
    dependency directories is excluded.
    """

    epilog = """
    Examples:
      # Show the annotated tree
      dirscan /path/to/project

      # Add exclusion patterns, in order
      dirscan -i "*.min.js" -i "!vendor.min.js" /path/to/project

      # Add patterns from extra rule files
      dirscan -e .dockerignore -e .npmignore /path/to/project

      # Force-include paths regardless of other rules
      dirscan -I "dist/**" /path/to/project

      # Start from a JSON rule configuration
      dirscan -c rules.json /path/to/project

      # Raise the size limit and keep binary files
      dirscan -m 50MB --include-binary /path/to/project

      # List included files (relative path and size), sorted tree, or JSON
      dirscan -f files /path/to/project
      dirscan --sort /path/to/project
      dirscan -f json -o scan.json /path/to/project

      # Walk sibling directories on 8 threads
      dirscan -j 8 /path/to/project

      # Print a summary to stderr
      dirscan -s stderr /path/to/project
    """

    parser = argparse.ArgumentParser(
        prog="dirscan",
        description=description,
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "-V", "--version", action="version", version=f"dirscan {__version__}", help="Show the version and exit"
    )
    parser.add_argument(
        "directory",
        type=Path,
        help="The directory to scan. All relative paths in the output are relative to this directory.",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        metavar="FILE",
        help=(
            "JSON file holding exclusion rules (useGitignore, customExclusions, customInclusions, "
            "excludeBySize, maxFileSize, excludeBinaryFiles), either at top level or under an "
            '"exclusionRules" key. Command-line options are applied on top of it.'
        ),
    )
    parser.add_argument(
        "-e",
        "--exclude",
        metavar="FILE",
        action=ExclusionPatternAction,
        help="Rule file whose patterns are added as custom exclusions (can be specified multiple times).",
    )
    parser.add_argument(
        "-i",
        "--ignore",
        metavar="PATTERN",
        action=ExclusionPatternAction,
        help=(
            "Gitignore-style pattern added to the custom exclusions, after any configured ones. "
            "Can be specified multiple times; patterns keep their command-line order, mixed with "
            "-e/--exclude files."
        ),
    )
    parser.add_argument(
        "-I",
        "--include",
        metavar="PATTERN",
        action="append",
        help="Gitignore-style pattern for paths that must always be included (can be specified multiple times).",
    )
    parser.add_argument(
        "--no-gitignore",
        action="store_true",
        help="Do not read .gitignore in the root or the global ~/.gitignore_global.",
    )
    size_group = parser.add_mutually_exclusive_group()
    size_group.add_argument(
        "-m",
        "--max-size",
        type=size_argument,
        metavar="SIZE",
        help="Exclude files larger than SIZE, e.g. 500KB or 10MB (binary multiples). Default: 10MB.",
    )
    size_group.add_argument(
        "--no-size-limit",
        action="store_true",
        help="Do not exclude files by size.",
    )
    parser.add_argument(
        "--include-binary",
        action="store_true",
        help="Do not exclude binary files.",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["tree", "json", "files"],
        default="tree",
        help="Output format (default: tree).",
    )
    parser.add_argument(
        "--sort",
        action="store_true",
        help="Sort tree output, directories first, then by name. Listing order is kept otherwise.",
    )
    parser.add_argument(
        "--hide-excluded",
        action="store_true",
        help="Leave excluded entries out of the tree output.",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        metavar="FILE",
        help="Output file path. If not specified, output is written to stdout.",
    )
    parser.add_argument(
        "--no-follow-symlinks",
        action="store_true",
        help="Record symbolic links as files instead of following them.",
    )
    parser.add_argument(
        "-j",
        "--jobs",
        type=positive_int,
        default=1,
        metavar="N",
        help="Number of threads used to walk sibling directories (default: 1).",
    )
    parser.add_argument(
        "-s",
        "--summary",
        metavar="DEST",
        choices=["stderr", "stdout", "file"],
        help="Print summary report. Valid destinations: stderr, stdout, file (requires -o)",
    )
    parser.add_argument(
        "-P",
        "--permission-action",
        choices=["ignore", "warn", "fail"],
        default="ignore",
        help="How to handle unreadable entries: skip silently, skip with a warning, or stop (default: ignore).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log progress to stderr (-v for info, -vv for debug).",
    )

    return parser


def validate_args(args: argparse.Namespace) -> None:
    """Validate command-line arguments.

    Performs additional validation beyond what argparse can handle.

    Args:
        args: Parsed command-line arguments.

    Raises:
        ValueError: If any arguments fail validation.
    """
    # Validate that if summary=file is specified, -o must also be provided
    if args.summary == "file" and not args.output:
        raise ValueError("--summary=file requires -o/--output to be specified")
