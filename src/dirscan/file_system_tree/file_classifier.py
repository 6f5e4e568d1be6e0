"""Binary/text classification of files from their extension."""

import mimetypes
import os
from typing import Callable, FrozenSet, Optional

# Extensions of source code and markup recognised as supported languages
SUPPORTED_LANGUAGE_EXTENSIONS = frozenset(
    {
        ".js",
        ".ts",
        ".jsx",
        ".tsx",
        ".vue",
        ".py",
        ".java",
        ".c",
        ".cpp",
        ".h",
        ".hpp",
        ".cs",
        ".php",
        ".rb",
        ".go",
        ".rs",
        ".swift",
        ".kt",
        ".scala",
        ".clj",
        ".hs",
        ".ml",
        ".fs",
        ".vb",
        ".pl",
        ".sh",
        ".bash",
        ".zsh",
        ".fish",
        ".ps1",
        ".bat",
        ".cmd",
        ".html",
        ".htm",
        ".css",
        ".scss",
        ".sass",
        ".less",
        ".xml",
        ".json",
        ".yaml",
        ".yml",
        ".toml",
        ".ini",
        ".cfg",
        ".conf",
        ".md",
        ".txt",
        ".sql",
        ".r",
        ".m",
        ".mm",
        ".dart",
        ".lua",
        ".vim",
        ".el",
        ".lisp",
        ".scm",
        ".rkt",
    }
)

# Common text file extensions (high confidence)
TEXT_EXTENSIONS = SUPPORTED_LANGUAGE_EXTENSIONS | frozenset(
    {
        # Source code
        ".svelte",
        ".pyi",
        # Documents/Config
        ".markdown",
        ".rst",
        ".tex",
        ".csv",
        ".tsv",
        ".log",
        ".logs",
        ".properties",
        ".env",
        # Web/Markup
        ".xhtml",
        ".svg",
        ".rss",
        ".atom",
    }
)

# Common binary file extensions (high confidence)
BINARY_EXTENSIONS = frozenset(
    {
        # Executables
        ".exe",
        ".dll",
        ".so",
        ".dylib",
        ".class",
        ".bin",
        ".dat",
        # Images
        ".jpg",
        ".jpeg",
        ".png",
        ".gif",
        ".bmp",
        ".tiff",
        ".psd",
        ".ico",
        ".webp",
        # Videos
        ".mp4",
        ".mkv",
        ".avi",
        ".mov",
        ".mpg",
        ".wmv",
        ".flv",
        ".webm",
        ".m4v",
        # Audio
        ".mp3",
        ".aac",
        ".wav",
        ".flac",
        ".ogg",
        ".wma",
        ".m4a",
        # Documents
        ".pdf",
        ".doc",
        ".docx",
        ".xls",
        ".xlsx",
        ".ppt",
        ".pptx",
        # Archives and disk images
        ".zip",
        ".rar",
        ".7z",
        ".tar",
        ".gz",
        ".bz2",
        ".xz",
        ".iso",
        ".dmg",
        ".img",
        ".deb",
        ".rpm",
        # Database
        ".mdb",
        ".db",
        ".sqlite",
        ".sqlite3",
    }
)

MimeLookup = Callable[[str], Optional[str]]

# Built from Python's bundled table only, so results do not depend on the host's mime.types
_MIME_DATABASE = mimetypes.MimeTypes()


def lookup_mime_type(extension: str) -> Optional[str]:
    """Look up the MIME type registered for an extension.

    Args:
        extension: Extension including the leading dot, e.g. ".png".

    Returns:
        The MIME type, or None if the extension is unknown.

    Example:
        >>> lookup_mime_type(".png")
        'image/png'
        >>> lookup_mime_type(".no-such-extension") is None
        True
    """
    strict_map, common_map = _MIME_DATABASE.types_map
    ext = extension.lower()
    return strict_map.get(ext) or common_map.get(ext)


class FileClassifier:
    """Decide whether a file should be treated as binary or text.

    Classification uses the extension only and never reads file content:

    1. Extensions in the text allowlist are text, unconditionally.
    2. Extensions in the binary denylist are binary.
    3. Otherwise the MIME type registered for the extension decides: text/*, JSON,
       XML, JavaScript and TypeScript types are text; image/*, audio/*, video/* and
       application/octet-stream are binary.
    4. Anything still unclassified is text, so unknown files are never dropped as
       binary.

    The extension tables and the MIME lookup are injected, with module-level
    defaults.

    Attributes:
        text_extensions (FrozenSet[str]): The text allowlist.
        binary_extensions (FrozenSet[str]): The binary denylist.

    Example:
        >>> classifier = FileClassifier()
        >>> classifier.is_binary("docs/notes.md")
        False
        >>> classifier.is_binary("assets/photo.png")
        True
        >>> classifier.is_binary("data/unknown.qqq")
        False
    """

    def __init__(
        self,
        text_extensions: FrozenSet[str] = TEXT_EXTENSIONS,
        binary_extensions: FrozenSet[str] = BINARY_EXTENSIONS,
        mime_lookup: MimeLookup = lookup_mime_type,
    ) -> None:
        self.text_extensions = frozenset(ext.lower() for ext in text_extensions)
        self.binary_extensions = frozenset(ext.lower() for ext in binary_extensions)
        self._mime_lookup = mime_lookup

    def is_binary(self, path: str, extension: Optional[str] = None) -> bool:
        """Classify a file as binary (True) or text (False).

        Args:
            path: The file's path. Only its extension is used.
            extension: The extension including the leading dot. Derived from path
                when omitted.

        Returns:
            True if the file should be treated as binary.
        """
        if extension is None:
            extension = os.path.splitext(path)[1]
        ext = extension.lower()

        if ext in self.text_extensions:
            return False

        if ext in self.binary_extensions:
            return True

        if not ext:
            return False

        mime_type = self._mime_lookup(ext)
        if mime_type:
            if (
                mime_type.startswith("text/")
                or mime_type.endswith("/json")
                or mime_type.endswith("+json")
                or mime_type.endswith("/xml")
                or mime_type.endswith("+xml")
                or "javascript" in mime_type
                or "typescript" in mime_type
            ):
                return False

            if (
                mime_type.startswith("image/")
                or mime_type.startswith("audio/")
                or mime_type.startswith("video/")
                or mime_type.startswith("application/octet-stream")
            ):
                return True

        return False

    def is_supported_language(self, extension: str) -> bool:
        """Return True if the extension belongs to a recognised source language."""
        return extension.lower() in SUPPORTED_LANGUAGE_EXTENSIONS
