from __future__ import annotations

"""Validation of ``license-files`` glob patterns.

Only a portable subset of glob syntax is accepted so that every tool matches a
pattern the same way:

- ASCII letters, digits, ``_``, ``-`` and ``.`` match verbatim;
- ``/`` is the only path separator; a pattern must not start or end with it,
  nor contain ``//``;
- ``*`` matches within a single path segment, ``**`` matches any number of
  segments and must form a whole segment on its own;
- ``..`` segments are rejected.

``*`` never crossing a ``/`` is a matching rule for whoever consumes the
pattern; it is not checked here. Character classes, ``?``, brace expansion
and extended glob operators are invalid.
"""

import re
import string
from typing import Iterable, Iterator, List

_ALLOWED = frozenset(string.ascii_letters + string.digits + "_-./*")
_STAR_RUN_RE = re.compile(r"\*+")


class GlobError(ValueError):
    """Base class for ``license-files`` glob violations."""

    def __init__(self, pattern: str, position: int, code: str, reason: str) -> None:
        super().__init__(f"{reason} at position {position} in glob: `{pattern}`")
        self.pattern = pattern
        self.position = position
        self.code = code
        self.reason = reason


class GlobCharacterError(GlobError):
    """Raised for a character outside the restricted glob alphabet."""

    def __init__(self, pattern: str, position: int, invalid: str) -> None:
        if invalid == "\\":
            code, reason = "BACKSLASH", "Only forward slashes are allowed as path separator, found `\\`"
        else:
            code, reason = "INVALID_CHARACTER", f"Invalid character `{invalid}`"
        super().__init__(pattern, position, code, reason)
        self.invalid = invalid


class GlobStructureError(GlobError):
    """Raised for misplaced separators, wildcards or parent directory segments."""


class LicenseFilesError(ValueError):
    def __init__(self, index: int, error: GlobError) -> None:
        super().__init__(f"license-files[{index}]: {error}")
        self.index = index
        self.error = error


def _segments(pattern: str) -> Iterator[tuple[int, str]]:
    start = 0
    for segment in pattern.split("/"):
        yield start, segment
        start += len(segment) + 1


def iter_glob_violations(pattern: str) -> Iterator[GlobError]:
    """Yield every violation in ``pattern``, not necessarily ordered by position."""

    if not pattern:
        yield GlobStructureError(pattern, 0, "EMPTY_PATTERN", "Empty glob")
        return

    for pos, char in enumerate(pattern):
        if char not in _ALLOWED:
            yield GlobCharacterError(pattern, pos, char)
        elif char == "/" and pos > 0 and pattern[pos - 1] == "/":
            yield GlobStructureError(pattern, pos, "DOUBLE_SLASH", "Empty path segment (`//`)")

    if pattern.startswith("/"):
        yield GlobStructureError(pattern, 0, "LEADING_SLASH", "Absolute paths are not allowed")
    if pattern.endswith("/"):
        yield GlobStructureError(
            pattern, len(pattern) - 1, "TRAILING_SLASH", "Pattern must name files, not a directory"
        )

    for start, segment in _segments(pattern):
        if segment == "..":
            yield GlobStructureError(
                pattern, start, "PARENT_DIRECTORY", "The parent directory operator (`..`) is not allowed"
            )
            continue
        for run in _STAR_RUN_RE.finditer(segment):
            stars = run.end() - run.start()
            if stars >= 3:
                yield GlobStructureError(pattern, start + run.start(), "TOO_MANY_STARS", "Too many stars")
            elif stars == 2 and segment != "**":
                yield GlobStructureError(
                    pattern,
                    start + run.start(),
                    "NON_SEGMENT_DOUBLE_STAR",
                    "`**` must be a whole path segment",
                )


def list_glob_violations(pattern: str) -> List[GlobError]:
    return sorted(iter_glob_violations(pattern), key=lambda error: error.position)


def validate_license_glob(pattern: str) -> None:
    """Raise the first (leftmost) :class:`GlobError` found in ``pattern``."""

    violations = list_glob_violations(pattern)
    if violations:
        raise violations[0]


def validate_license_files(patterns: Iterable[str]) -> None:
    for index, pattern in enumerate(patterns):
        try:
            validate_license_glob(pattern)
        except GlobError as exc:
            raise LicenseFilesError(index, exc) from exc
