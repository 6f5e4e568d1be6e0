"""Node representation for entries in a scanned directory tree."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from dirscan.types import FileType


@dataclass(frozen=True)
class FileNode:
    """One file or directory in the scanned tree, with its exclusion verdict.

    Nodes are immutable: the exclusion verdict is decided once, when the node is
    built, and never revisited. A directory's children are present only when the
    directory was descended into; for excluded directories children is None (not
    an empty tuple), meaning the subtree was never visited.

    Attributes:
        path (str): Absolute filesystem path.
        relative_path (str): Path relative to the scan root, forward-slash separated.
        name (str): Final path segment.
        kind (FileType): FILE or DIRECTORY.
        size (int): Size in bytes; 0 for directories.
        modified_at (datetime): Last modification time (UTC).
        excluded (bool): Whether the entry is excluded.
        exclusion_reason (Optional[str]): Human-readable cause of the verdict.
        extension (Optional[str]): File extension including the dot (files only).
        is_supported_language (bool): Whether the extension is a known source
            language (files only).
        is_binary (bool): Whether the file is classified as binary (files only).
        children (Optional[Tuple[FileNode, ...]]): Child nodes in listing order, for
            descended directories only.

    Example:
        >>> from datetime import datetime, timezone
        >>> node = FileNode(
        ...     path="/project/README.md",
        ...     relative_path="README.md",
        ...     name="README.md",
        ...     kind=FileType.FILE,
        ...     size=12,
        ...     modified_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        ...     extension=".md",
        ... )
        >>> node.is_file, node.is_directory, node.excluded
        (True, False, False)
    """

    path: str
    relative_path: str
    name: str
    kind: FileType
    size: int
    modified_at: datetime
    excluded: bool = False
    exclusion_reason: Optional[str] = None
    extension: Optional[str] = None
    is_supported_language: bool = False
    is_binary: bool = False
    children: Optional[Tuple["FileNode", ...]] = None

    @property
    def is_directory(self) -> bool:
        return self.kind is FileType.DIRECTORY

    @property
    def is_file(self) -> bool:
        return self.kind is FileType.FILE

    @property
    def descended(self) -> bool:
        """True if this is a directory whose entries were listed."""
        return self.children is not None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the node (and its subtree) to JSON-compatible types.

        File-only keys are emitted for files, and "children" only for descended
        directories, so an excluded directory serializes without a children key.
        """
        record: Dict[str, Any] = {
            "path": self.path,
            "relativePath": self.relative_path,
            "name": self.name,
            "type": self.kind.value,
            "size": self.size,
            "modified": self.modified_at.isoformat(),
            "excluded": self.excluded,
            "exclusionReason": self.exclusion_reason,
        }
        if self.is_file:
            record["extension"] = self.extension
            record["isSupported"] = self.is_supported_language
            record["isBinary"] = self.is_binary
        if self.children is not None:
            record["children"] = [child.to_dict() for child in self.children]
        return record
