"""
golive Configuration Validation.

Rejects structurally invalid configuration before the watch loop starts.
Requires Python 3.11+.
"""

from pathlib import Path

from golive.models import SOURCE_SUFFIX, WatchConfig
from golive.utils.errors import InvalidConfigError


def validate_config(config: WatchConfig) -> None:
    """
    Validate a watch configuration.

    Raises:
        InvalidConfigError: With the first offending reason
    """
    if not config.path.is_dir():
        raise InvalidConfigError(f"invalid watch path: {config.path}")

    if not config.extensions:
        raise InvalidConfigError("no file extensions specified")
    for ext in config.extensions:
        if not ext.strip().startswith("."):
            raise InvalidConfigError(
                f"invalid extension format: {ext} (must start with a dot)"
            )

    if config.debounce_ms <= 0:
        raise InvalidConfigError("debounce must be > 0")

    if not config.output:
        raise InvalidConfigError("output binary path is required")
    if Path(config.output).is_dir():
        raise InvalidConfigError(f"output path '{config.output}' is a directory")

    if config.entry is not None:
        if not config.entry.exists():
            raise InvalidConfigError(f"entry file does not exist: {config.entry}")
        if config.entry.suffix != SOURCE_SUFFIX:
            raise InvalidConfigError(
                f"entry file must be a {SOURCE_SUFFIX} file: {config.entry}"
            )
