"""File size parsing and formatting used by size-based exclusion."""

from typing import Union

from humanfriendly import InvalidSize, parse_size

SIZE_UNITS = ("B", "KB", "MB", "GB")


def parse_file_size(size: Union[str, int]) -> int:
    """Parse a human-readable file size to bytes.

    Sizes use binary multiples, so '1KB' is 1024 bytes and '10MB' is 10485760 bytes.

    Args:
        size: Size string like '10MB', '500K', '2.5 GB', a plain number string, or an int.

    Returns:
        Size in bytes.

    Raises:
        ValueError: If size is not a valid size or is negative.

    Example:
        >>> parse_file_size("10MB")
        10485760
        >>> parse_file_size(2048)
        2048
    """
    if isinstance(size, bool):
        raise ValueError(f"Invalid size: {size!r}")
    if isinstance(size, int):
        result = size
    else:
        try:
            result = int(parse_size(size, binary=True))
        except InvalidSize as e:
            raise ValueError(f"Invalid size format '{size}': {e}")
    if result < 0:
        raise ValueError("Size cannot be negative")
    return result


def format_file_size(size_bytes: int) -> str:
    """Format a byte count for exclusion reasons and display.

    The largest unit in B, KB, MB, GB that keeps the value below 1024 is chosen
    (GB is the ceiling). Values in KB and above carry one decimal place; plain
    byte counts are shown as integers.

    Args:
        size_bytes: Non-negative number of bytes.

    Returns:
        The formatted size.

    Raises:
        ValueError: If size_bytes is negative.

    Example:
        >>> format_file_size(0)
        '0 B'
        >>> format_file_size(1536)
        '1.5 KB'
        >>> format_file_size(10 * 1024 * 1024)
        '10.0 MB'
    """
    if size_bytes < 0:
        raise ValueError("Size cannot be negative")

    value = float(size_bytes)
    unit_index = 0
    while value >= 1024 and unit_index < len(SIZE_UNITS) - 1:
        value /= 1024
        unit_index += 1

    if unit_index == 0:
        return f"{size_bytes} B"
    return f"{value:.1f} {SIZE_UNITS[unit_index]}"
