"""Directory identity used to detect symbolic link cycles."""

import os
from typing import NamedTuple


class FileIdentifier(NamedTuple):
    """Identify a file or directory by its device and inode.

    Two paths that resolve to the same directory (for example through a symbolic
    link) share a FileIdentifier, which is how the walker recognises that
    descending into a directory would revisit one of its own ancestors.

    Attributes:
        device_id (int): The device ID from stat information.
        inode_number (int): The inode number from stat information.

    Note:
        On Windows, inode numbers might be handled differently than on Unix systems,
        but Python's os.stat implementation provides values that can be used
        for uniquely identifying directories.
    """

    device_id: int
    inode_number: int

    @classmethod
    def from_stat(cls, stat_result: os.stat_result) -> "FileIdentifier":
        """Build an identifier from an os.stat result."""
        return cls(stat_result.st_dev, stat_result.st_ino)
