"""How a scan treats entries it is not allowed to read."""

from enum import Enum
from typing import Union

# Command-line spellings accepted in addition to the value names
_ALIASES = {"warn": "ignore", "fail": "raise"}


class PermissionAction(str, Enum):
    """Action to take when an entry cannot be stat'ed or a directory cannot be listed.

    Values:
        IGNORE: Log a warning and continue; unreadable entries are omitted and
            unlistable directories are kept with no children (default behavior)
        RAISE: Raise a PermissionError on the first denied access
    """

    IGNORE = "ignore"
    RAISE = "raise"

    @classmethod
    def parse(cls, value: Union[str, "PermissionAction"]) -> "PermissionAction":
        """Convert a user-supplied value, case-insensitively.

        "warn" and "fail" are accepted as the command-line spellings of IGNORE and
        RAISE.

        Raises:
            ValueError: If value names no action.

        Example:
            >>> PermissionAction.parse("FAIL")
            <PermissionAction.RAISE: 'raise'>
        """
        if isinstance(value, cls):
            return value
        name = str(value).lower()
        try:
            return cls(_ALIASES.get(name, name))
        except ValueError:
            raise ValueError(
                f"Invalid permission_action: {value}. Must be one of: 'ignore', 'raise', 'warn', 'fail'"
            )
