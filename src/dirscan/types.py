from enum import Enum
from os import PathLike
from typing import Union

# Complete path type including strings and any path-like object
PathType = Union[str, PathLike[str]]


class FileType(str, Enum):
    """Enumeration of node kinds produced by a directory scan.

    Symbolic links do not get a kind of their own: a followed link takes the kind
    of its target, and an unfollowed link is recorded as a file.

    Attributes:
        FILE: Regular file (or unfollowed symbolic link)
        DIRECTORY: Directory
    """

    FILE = "file"
    DIRECTORY = "directory"
