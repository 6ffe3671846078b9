"""File enumeration for glob migration sources."""

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


def _as_patterns(patterns: Union[str, Iterable[str], None]) -> list[str]:
    if patterns is None:
        return []
    if isinstance(patterns, str):
        return [patterns]
    return list(patterns)


def _matches(base: Path, pattern: str) -> set[str]:
    found = set()
    for match in base.glob(pattern):
        if match.is_file():
            found.add(match.relative_to(base).as_posix())
    # "**/" also matches files directly in base
    if pattern.startswith("**/"):
        found |= _matches(base, pattern[3:])
    return found


def find_files(
    pattern: str,
    cwd: Union[str, Path] = ".",
    ignore: Union[str, Iterable[str], None] = None,
) -> list[str]:
    """Enumerate files matching a glob pattern.

    Args:
        pattern: Glob pattern relative to cwd (``**`` spans directories)
        cwd: Directory the pattern is evaluated in
        ignore: Pattern or patterns whose matches are excluded

    Returns:
        POSIX-style paths relative to cwd, sorted lexicographically
    """
    base = Path(cwd)
    if not base.is_dir():
        logger.warning(f"Migration directory {base} does not exist")
        return []

    matched = _matches(base, pattern)
    for ignore_pattern in _as_patterns(ignore):
        matched -= _matches(base, ignore_pattern)

    return sorted(matched)
