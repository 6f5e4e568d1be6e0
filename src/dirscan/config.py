"""Exclusion rule configuration for a scan.

ExclusionRules is the typed, immutable record a caller hands to a scan. Partial
configurations (a JSON document, command-line overrides) are combined with the
defaults through merge_exclusion_rules, which applies explicit per-field override
semantics.
"""

import json
import logging
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from dirscan.exceptions import ConfigurationError
from dirscan.exclusion_rules.size_rules import parse_file_size
from dirscan.types import PathType

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024

DEFAULT_CUSTOM_EXCLUSIONS = (
    "node_modules/",
    ".git/",
    "dist/",
    "build/",
    "*.log",
    ".DS_Store",
    "Thumbs.db",
)

# Serialized (camelCase) field names mapped to dataclass field names
_SERIALIZED_NAMES = {
    "useGitignore": "use_gitignore",
    "customExclusions": "custom_exclusions",
    "customInclusions": "custom_inclusions",
    "excludeBySize": "exclude_by_size",
    "maxFileSize": "max_file_size",
    "excludeBinaryFiles": "exclude_binary_files",
}


@dataclass(frozen=True)
class ExclusionRules:
    """Caller-supplied exclusion configuration, fixed for the duration of a scan.

    Attributes:
        use_gitignore (bool): Load rules from the root '.gitignore' and the global
            rule file.
        custom_exclusions (Tuple[str, ...]): Gitignore-style patterns applied after
            the gitignore rules.
        custom_inclusions (Tuple[str, ...]): Patterns that force-include matching
            paths, overriding every exclusion criterion.
        exclude_by_size (bool): Exclude files larger than max_file_size.
        max_file_size (int): Size limit in bytes.
        exclude_binary_files (bool): Exclude files classified as binary.
    """

    use_gitignore: bool = True
    custom_exclusions: Tuple[str, ...] = DEFAULT_CUSTOM_EXCLUSIONS
    custom_inclusions: Tuple[str, ...] = ()
    exclude_by_size: bool = True
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    exclude_binary_files: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the camelCase keys used by stored configurations."""
        values = asdict(self)
        return {
            serialized: list(values[name]) if isinstance(values[name], tuple) else values[name]
            for serialized, name in _SERIALIZED_NAMES.items()
        }


def merge_exclusion_rules(overrides: Mapping[str, Any], base: Optional[ExclusionRules] = None) -> ExclusionRules:
    """Apply overrides on top of a base configuration.

    Per-field semantics:

    - Keys may use the serialized camelCase names or the field names.
    - A value of None leaves the base value unchanged.
    - Booleans and max_file_size replace the base value. max_file_size accepts an
      int or a human-readable size such as "10MB" (binary multiples) and must be
      positive.
    - Pattern lists replace the base list as a whole; they are never concatenated.

    Args:
        overrides: Field values to apply.
        base: Configuration to start from. Defaults to ExclusionRules().

    Returns:
        A new ExclusionRules.

    Raises:
        ConfigurationError: For unknown keys, wrongly typed values, or a
            non-positive size limit.

    Example:
        >>> rules = merge_exclusion_rules({"maxFileSize": "1MB", "customInclusions": ["src/**"]})
        >>> rules.max_file_size, rules.custom_inclusions
        (1048576, ('src/**',))
        >>> rules.use_gitignore
        True
    """
    if base is None:
        base = ExclusionRules()

    field_names = {f.name for f in fields(ExclusionRules)}
    changes: Dict[str, Any] = {}

    for key, value in overrides.items():
        name = _SERIALIZED_NAMES.get(key, key)
        if name not in field_names:
            raise ConfigurationError(f"Unknown exclusion rule field: {key!r}")
        if value is None:
            continue

        if name in ("custom_exclusions", "custom_inclusions"):
            changes[name] = _coerce_patterns(key, value)
        elif name == "max_file_size":
            changes[name] = _coerce_size(key, value)
        else:
            if not isinstance(value, bool):
                raise ConfigurationError(f"{key} must be a boolean, got {type(value).__name__}")
            changes[name] = value

    return replace(base, **changes)


def load_exclusion_rules(config_path: PathType, base: Optional[ExclusionRules] = None) -> ExclusionRules:
    """Read exclusion rules from a JSON document and merge them over base.

    The document may be the exclusion rule record itself or an application
    configuration holding the record under an "exclusionRules" key.

    Args:
        config_path: Path to the JSON file.
        base: Configuration to merge onto. Defaults to ExclusionRules().

    Returns:
        The merged ExclusionRules.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If the file is not valid JSON or holds invalid values.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}")

    if not isinstance(document, dict):
        raise ConfigurationError(f"Expected a JSON object in {path}")

    section = document.get("exclusionRules", document)
    if not isinstance(section, dict):
        raise ConfigurationError(f"exclusionRules in {path} must be a JSON object")

    logger.info("Loaded exclusion rules from %s", path)
    return merge_exclusion_rules(section, base)


def _coerce_patterns(key: str, value: Any) -> Tuple[str, ...]:
    if isinstance(value, str) or not isinstance(value, Sequence):
        raise ConfigurationError(f"{key} must be a list of patterns")
    for pattern in value:
        if not isinstance(pattern, str):
            raise ConfigurationError(f"{key} must only contain strings, got {type(pattern).__name__}")
    return tuple(value)


def _coerce_size(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ConfigurationError(f"{key} must be a number of bytes or a size string")
    try:
        size = parse_file_size(value)
    except ValueError as e:
        raise ConfigurationError(f"{key}: {e}")
    if size <= 0:
        raise ConfigurationError(f"{key} must be a positive number")
    return size
