"""
golive Path Filters.

Pure predicates deciding which paths are watched or skipped.
Requires Python 3.11+.
"""

from collections.abc import Collection, Iterable


def is_watched_file(name: str, extensions: Iterable[str]) -> bool:
    """
    Check whether a file name ends with one of the watched extensions.

    Plain case-sensitive suffix match, no glob semantics.
    """
    return any(name.endswith(ext) for ext in extensions)


def is_ignored(path: str, name: str, ignore: Collection[str]) -> bool:
    """
    Check whether a path is excluded.

    Args:
        path: Path relative to the watched root
        name: Base name of the entry
        ignore: Relative paths or base names to exclude

    Returns:
        True if either the relative path or the name is listed
    """
    return path in ignore or name in ignore


def is_hidden(name: str) -> bool:
    """Check if an entry name is hidden."""
    return name.startswith(".")
