class InvalidRootError(Exception):
    """
    Exception raised when the scan root exists but is not a directory.

    A scan cannot start from a regular file, so this error is terminal: no partial
    tree is produced.

    Attributes:
        root_path (str): The offending root path.

    Example:
        >>> error = InvalidRootError("/etc/hosts")
        >>> str(error)
        'Scan root is not a directory: /etc/hosts'
    """

    def __init__(self, root_path: str) -> None:
        """
        Initialize the exception with the path that was supplied as the scan root.

        Args:
            root_path (str): The path that is not a directory.
        """
        self.root_path = root_path
        super().__init__(f"Scan root is not a directory: {root_path}")


class InvalidPatternError(ValueError):
    """
    Exception raised when pattern text cannot be compiled into a rule.

    Blank lines and comment lines are not rules, and neither is text that the
    gitignore pattern tokenizer rejects.

    Attributes:
        pattern (str): The pattern text that failed to compile.

    Example:
        >>> error = InvalidPatternError("# comment", "comment lines are not rules")
        >>> str(error)
        "Invalid pattern '# comment': comment lines are not rules"
    """

    def __init__(self, pattern: str, detail: str) -> None:
        self.pattern = pattern
        super().__init__(f"Invalid pattern {pattern!r}: {detail}")


class ConfigurationError(ValueError):
    """
    Exception raised when exclusion rule overrides cannot be merged.

    Unknown keys, values of the wrong type and non-positive size limits all raise
    this error.

    Example:
        >>> error = ConfigurationError("Unknown exclusion rule field: 'colour'")
        >>> str(error)
        "Unknown exclusion rule field: 'colour'"
    """

    pass
