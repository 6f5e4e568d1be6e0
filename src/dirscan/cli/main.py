"""Command-line interface for dirscan.

This module provides the command-line interface for dirscan, which scans a
directory and reports every entry as included or excluded together with the
reason. It handles argument parsing, exclusion rule assembly, output formatting
and signal management.

Output Formats:
    tree:  'tree'-style listing with excluded entries annotated
    json:  the full annotated tree as JSON
    files: one line per included file, "<relative path>\\t<size in bytes>", in
           pre-order

Signal Handling Notes:
    - SIGINT: cancels the scan at the next directory expansion; the partial result
      is still written and the exit code is 130
    - SIGPIPE: handled when the output pipe is closed (e.g., when piping to `head`)
      on Unix-like systems

Exit Codes:
    0: Successful completion
    1: Runtime error (invalid root, invalid configuration, I/O error)
    2: Command-line syntax error
    126: Permission denied with -P fail
    130: Interrupted by SIGINT (Ctrl+C)
    141: Broken pipe (SIGPIPE) on Unix-like systems

Example:
    # Scan a directory with the default rules
    $ dirscan /path/to/dir

    # List the files that would be included, with a summary on stderr
    $ dirscan -f files -s stderr /path/to/dir
"""

import argparse
import json
import logging
import sys
from typing import Dict, Iterator

from dirscan.cli.argparser import create_parser, validate_args
from dirscan.cli.safe_writer import SafeWriter
from dirscan.cli.signal_handler import setup_signal_handling, signal_handler
from dirscan.config import ExclusionRules, load_exclusion_rules, merge_exclusion_rules
from dirscan.exclusion_rules.size_rules import format_file_size
from dirscan.file_system_tree.directory_walker import ScanResult
from dirscan.file_system_tree.permission_action import PermissionAction
from dirscan.file_system_tree.tree_views import ScanCounts, stream_tree_representation
from dirscan.scanner import DirectoryScanner

logger = logging.getLogger(__name__)


def configure_logging(verbosity: int, permission_action: str) -> None:
    """Send log records to stderr at a level chosen by -v and -P.

    Without -v only errors are shown, except that -P warn also shows the warnings
    about skipped entries.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    elif permission_action == "warn":
        level = logging.WARNING
    else:
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s", stream=sys.stderr)


def build_exclusion_rules(args: argparse.Namespace) -> ExclusionRules:
    """Assemble the scan configuration from -c, then the individual options.

    Patterns given with -i/-e and -I are appended to the configured lists; the
    remaining options replace the configured values.
    """
    base = load_exclusion_rules(args.config) if args.config else ExclusionRules()

    overrides: Dict[str, object] = {}
    if args.ignore:
        overrides["custom_exclusions"] = base.custom_exclusions + tuple(args.ignore)
    if args.include:
        overrides["custom_inclusions"] = base.custom_inclusions + tuple(args.include)
    if args.no_gitignore:
        overrides["use_gitignore"] = False
    if args.max_size is not None:
        overrides["exclude_by_size"] = True
        overrides["max_file_size"] = args.max_size
    if args.no_size_limit:
        overrides["exclude_by_size"] = False
    if args.include_binary:
        overrides["exclude_binary_files"] = False

    return merge_exclusion_rules(overrides, base)


def format_counts(counts: ScanCounts) -> str:
    """Format the counts into a human-readable string.

    Args:
        counts: Counts over the scanned tree.

    Returns:
        A formatted string showing all counts with appropriate labels.
    """
    result = [
        f"Directories: {counts.directories}",
        f"Files: {counts.files}",
        f"Excluded: {counts.excluded}",
        f"Included files: {counts.included_files}",
        f"Included size: {format_file_size(counts.included_bytes)}",
    ]
    return "\n".join(result)


def render_output(result: ScanResult, rules: ExclusionRules, args: argparse.Namespace) -> Iterator[str]:
    """Yield the output text for the chosen format in chunks."""
    if args.format == "json":
        document = {
            "root": result.root_path,
            "cancelled": result.cancelled,
            "exclusionRules": rules.to_dict(),
            "nodes": [node.to_dict() for node in result.nodes],
        }
        yield json.dumps(document, indent=2, ensure_ascii=False) + "\n"
    elif args.format == "files":
        for node in result.iterate_included_files():
            yield f"{node.relative_path}\t{node.size}\n"
    else:
        root_name = args.directory.resolve().name or str(args.directory)
        for line in stream_tree_representation(
            root_name, result.nodes, sort_entries=args.sort, show_excluded=not args.hide_excluded
        ):
            yield line + "\n"


def main() -> None:
    """Main entry point for the dirscan command-line interface.

    Exit codes:
        0: Successful completion
        1: Runtime error during execution
        2: Command-line syntax error
        126: Permission denied with -P fail
        130: Interrupted by SIGINT (Ctrl+C)
        141: Broken pipe (SIGPIPE) on Unix-like systems
    """
    setup_signal_handling()

    parser = create_parser()
    args = parser.parse_args()

    try:
        validate_args(args)
        configure_logging(args.verbose, args.permission_action)
        rules = build_exclusion_rules(args)

        scanner = DirectoryScanner(
            args.directory,
            rules,
            follow_symlinks=not args.no_follow_symlinks,
            permission_action=PermissionAction.parse(args.permission_action),
            max_workers=args.jobs,
        )

        try:
            result = scanner.scan(cancel_event=signal_handler.cancel_event)
        except PermissionError as e:
            print(f"Error: {str(e)}", file=sys.stderr)
            sys.exit(126)

        if result.cancelled:
            print("Warning: Scan interrupted, output is incomplete.", file=sys.stderr)

        output_target = args.output if args.output else sys.stdout.fileno()
        with SafeWriter(output_target) as safe_writer:
            try:
                for chunk in render_output(result, rules, args):
                    safe_writer.write(chunk)

                if args.summary:
                    count_output_str = format_counts(result.counts())
                    if args.summary in ("stdout", "file"):
                        safe_writer.write("\n" + count_output_str + "\n")
                    else:
                        print(count_output_str, file=sys.stderr)
            except BrokenPipeError:
                pass  # SafeWriter will automatically close in the context manager

    except Exception as e:
        print(f"Error: {str(e)}", file=sys.stderr)
        sys.exit(1)

    # Handle exit codes based on received signals
    if signal_handler.sigpipe_received.is_set():
        sys.exit(141)
    elif signal_handler.sigint_received.is_set():
        sys.exit(130)


if __name__ == "__main__":
    main()
