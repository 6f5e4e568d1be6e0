"""Read-only views over a scanned tree: flattening, counting and text rendering."""

from typing import Iterable, Iterator, List, NamedTuple, Sequence

from dirscan.file_system_tree.file_node import FileNode


class ScanCounts(NamedTuple):
    """Summary counts over a scanned tree.

    Attributes:
        directories (int): Number of directory nodes.
        files (int): Number of file nodes.
        excluded (int): Number of excluded nodes of either kind.
        included_files (int): Number of files that are not excluded.
        included_bytes (int): Total size of the included files.
    """

    directories: int
    files: int
    excluded: int
    included_files: int
    included_bytes: int


def iterate_nodes(nodes: Iterable[FileNode]) -> Iterator[FileNode]:
    """Yield every node in pre-order, each directory before its children."""
    for node in nodes:
        yield node
        if node.children:
            yield from iterate_nodes(node.children)


def iterate_included_files(nodes: Iterable[FileNode]) -> Iterator[FileNode]:
    """Yield the included files in pre-order.

    This is the flattening handed to document generation: every file node with
    excluded=False, in the order the files appear under their parent directories.
    Directories contribute no entries of their own.

    Args:
        nodes: Top-level nodes of a scan.

    Yields:
        File nodes that are not excluded.
    """
    for node in iterate_nodes(nodes):
        if node.is_file and not node.excluded:
            yield node


def count_nodes(nodes: Iterable[FileNode]) -> ScanCounts:
    """Count directories, files and exclusions in a scanned tree."""
    directories = files = excluded = included_files = included_bytes = 0
    for node in iterate_nodes(nodes):
        if node.is_directory:
            directories += 1
        else:
            files += 1
        if node.excluded:
            excluded += 1
        elif node.is_file:
            included_files += 1
            included_bytes += node.size
    return ScanCounts(directories, files, excluded, included_files, included_bytes)


def stream_tree_representation(
    root_name: str,
    nodes: Sequence[FileNode],
    sort_entries: bool = False,
    show_excluded: bool = True,
) -> Iterator[str]:
    """Generate a tree representation of a scan one line at a time.

    Generates output similar to the Unix 'tree' command. Directories carry a
    trailing '/', and excluded entries are annotated with their reason.

    Args:
        root_name: Name shown for the root line.
        nodes: Top-level nodes of a scan.
        sort_entries: Sort each directory's entries, directories first, then by
            case-insensitive name. Listing order is kept otherwise.
        show_excluded: Whether excluded entries are shown at all.

    Yields:
        Lines of the tree representation, without trailing newlines.

    Example:
        >>> from datetime import datetime, timezone
        >>> from dirscan.types import FileType
        >>> when = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> nodes = (
        ...     FileNode("/p/a.js", "a.js", "a.js", FileType.FILE, 50, when),
        ...     FileNode("/p/lib", "lib", "lib", FileType.DIRECTORY, 0, when, True, "too large"),
        ... )
        >>> for line in stream_tree_representation("p", nodes):
        ...     print(line)
        p/
        ├── a.js
        └── lib/ [excluded: too large]
    """

    def visible(children: Sequence[FileNode]) -> List[FileNode]:
        entries = [child for child in children if show_excluded or not child.excluded]
        if sort_entries:
            entries.sort(key=lambda n: (not n.is_directory, n.name.lower()))
        return entries

    def write_node(node: FileNode, prefix: str, is_last: bool) -> Iterator[str]:
        connector = "└── " if is_last else "├── "
        suffix = "/" if node.is_directory else ""
        annotation = f" [excluded: {node.exclusion_reason}]" if node.excluded else ""
        yield f"{prefix}{connector}{node.name}{suffix}{annotation}"

        if node.children:
            children = visible(node.children)
            child_prefix = prefix + ("    " if is_last else "│   ")
            for i, child in enumerate(children):
                yield from write_node(child, child_prefix, i == len(children) - 1)

    yield f"{root_name}/"
    top_level = visible(nodes)
    for i, node in enumerate(top_level):
        yield from write_node(node, "", i == len(top_level) - 1)


def get_tree_representation(root_name: str, nodes: Sequence[FileNode], **options: bool) -> str:
    """Get a complete string representation of a scanned tree.

    Accepts the same options as stream_tree_representation.
    """
    return "\n".join(stream_tree_representation(root_name, nodes, **options))
