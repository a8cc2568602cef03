"""File discovery for oasguard using glob patterns."""
from __future__ import annotations

import logging
from fnmatch import fnmatch
from pathlib import Path

from oasguard.constants import DOCUMENT_SUFFIXES
from oasguard.types import OasGuardConfig

logger: logging.Logger = logging.getLogger(__name__)


def _matches_pattern(*, path: Path, patterns: tuple[str, ...], base: Path) -> bool:
    """Check if path matches any of the glob patterns."""
    try:
        rel_path: Path = path.relative_to(base)
    except ValueError:
        rel_path = path

    rel_str: str = str(rel_path).replace("\\", "/")

    return any(_glob_match(path=rel_str, pattern=pattern) for pattern in patterns)


def _glob_match(*, path: str, pattern: str) -> bool:
    """Match a path against a glob pattern with ** support."""
    if "**" in pattern:
        return _match_doublestar(path=path, pattern=pattern)
    return fnmatch(path, pattern)


def _match_doublestar(*, path: str, pattern: str) -> bool:
    """Match path against pattern containing **."""
    parts: list[str] = path.split("/")

    # "**/name/**": name is one of the directory components
    if pattern.startswith("**/") and pattern.endswith("/**"):
        middle: str = pattern[3:-3]
        return any(fnmatch(part, middle) for part in parts[:-1])

    # "**/name": any suffix of the path matches
    if pattern.startswith("**/"):
        suffix: str = pattern[3:]
        return any(
            fnmatch("/".join(parts[i:]), suffix) for i in range(len(parts))
        )

    # "prefix/**/tail": prefix must match, then tail at any depth
    if "/**/" in pattern:
        prefix: str
        tail: str
        prefix, tail = pattern.split("/**/", 1)
        if not path.startswith(prefix + "/"):
            return False
        remainder_parts: list[str] = path[len(prefix) + 1:].split("/")
        return any(
            fnmatch("/".join(remainder_parts[i:]), tail)
            for i in range(len(remainder_parts))
        )

    # "prefix/**": anything under prefix
    if pattern.endswith("/**"):
        prefix = pattern[:-3]
        return path.startswith(prefix + "/") or path == prefix

    return fnmatch(path, pattern)


def _collect_documents(*, path: Path) -> list[Path]:
    """Recursively collect YAML and JSON files under a path."""
    files: list[Path] = []
    if path.is_file():
        if path.suffix.lower() in DOCUMENT_SUFFIXES:
            files.append(path)
    elif path.is_dir():
        for child in path.iterdir():
            files.extend(_collect_documents(path=child))
    return files


def scan_files(*, paths: tuple[Path, ...], config: OasGuardConfig) -> list[Path]:
    """
    Find API description files matching include/exclude patterns.

    Files passed explicitly are always linted when their suffix is known;
    include/exclude patterns are matched relative to the directory given.

    Args:
        paths: Root paths to scan (files or directories).
        config: oasguard configuration with include/exclude patterns.

    Returns:
        Sorted list of files to lint.
    """
    filtered: set[Path] = set()

    for input_path in paths:
        resolved_input: Path = input_path.resolve()
        if resolved_input.is_file():
            filtered.update(_collect_documents(path=resolved_input))
            continue

        for file_path in _collect_documents(path=resolved_input):
            # Exclusions take priority
            if _matches_pattern(path=file_path, patterns=config.exclude, base=resolved_input):
                logger.debug("Excluded %s", file_path)
                continue
            if _matches_pattern(path=file_path, patterns=config.include, base=resolved_input):
                filtered.add(file_path)

    return sorted(filtered)
