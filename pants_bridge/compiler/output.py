"""Classification of Pants process output into compiler messages.

Pants (and the compilers it drives) prefix diagnostics with a level tag,
usually followed by a source location::

    [error] /repo/src/java/org/pantsbuild/Foo.java:41:17: cannot find symbol
    [warn] /repo/src/scala/Bar.scala:7: match may not be exhaustive

Such lines are parsed structurally. Anything else is trimmed and classified
by keyword patterns. Classification never raises: a line nothing recognises
becomes an informational message.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from ..models import CompilerMessage, Severity, StreamKind
from ..utils import strip_ansi

# ---------------------------------------------------------------------------
# Structured markers
# ---------------------------------------------------------------------------

_LEVEL_TAGS: dict[str, Severity] = {
    "error": Severity.ERROR,
    "e": Severity.ERROR,
    "warn": Severity.WARNING,
    "warning": Severity.WARNING,
    "w": Severity.WARNING,
}

_MARKER_RE = re.compile(r"^\s*\[(?P<level>error|e|warn|warning|w)\]\s*", re.IGNORECASE)

# A path token has a separator or an extension. With a line number the
# location may be followed by ``:``, whitespace or end of line; a bare path
# needs a trailing ``:`` so ordinary words are not mistaken for files.
_LOCATION_RE = re.compile(
    r"(?P<path>[^\s:]*[/\\.][^\s:]*)"
    r"(?:"
    r":(?P<line>\d+)(?::\d+)?(?::\s*|\s+|$)"
    r"|:\s*"
    r")"
)


@dataclass(frozen=True)
class OutputMarker:
    """Location of a structured diagnostic prefix within a line.

    Attributes:
        level: ``Severity.ERROR`` or ``Severity.WARNING``.
        file_path: Source file named by the marker, if any.
        line_number: Zero-based line number, ``-1`` when unknown.
        start: Offset where the marker begins.
        end: Offset where the message content begins.
    """

    level: Severity
    file_path: Optional[str]
    line_number: int
    start: int
    end: int


def parse_output_marker(line: str) -> Optional[OutputMarker]:
    """Parse a ``[level] path:line:`` prefix; ``None`` when *line* has none."""
    match = _MARKER_RE.match(line)
    if match is None:
        return None

    level = _LEVEL_TAGS[match.group("level").lower()]
    start = match.start("level") - 1
    location = _LOCATION_RE.match(line, match.end())
    if location is None:
        return OutputMarker(level=level, file_path=None, line_number=-1, start=start, end=match.end())

    raw_line = location.group("line")
    line_number = int(raw_line) - 1 if raw_line is not None else -1
    return OutputMarker(
        level=level,
        file_path=location.group("path"),
        line_number=line_number,
        start=start,
        end=location.end(),
    )


# ---------------------------------------------------------------------------
# Unstructured patterns
# ---------------------------------------------------------------------------

_ERROR_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^\[?ERROR\b"),
    re.compile(r"\berror:", re.IGNORECASE),
    re.compile(r"^(?:Exception in thread|Caused by:)"),
    re.compile(r"^[\w$.]+(?:Exception|Error)(?::|$)"),
    re.compile(r"^FAILED\b"),
)

_WARNING_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^\[?WARN(?:ING)?\b"),
    re.compile(r"\bwarning:", re.IGNORECASE),
)


def is_error(text: str) -> bool:
    """True when an unstructured line looks like an error report."""
    return any(pattern.search(text) for pattern in _ERROR_PATTERNS)


def is_warning(text: str) -> bool:
    """True when an unstructured line looks like a warning."""
    return any(pattern.search(text) for pattern in _WARNING_PATTERNS)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def classify(raw_line: str, stream: StreamKind) -> CompilerMessage:
    """Turn one line of Pants output into a :class:`CompilerMessage`.

    Anything on stderr is an error, as is a line carrying an ``[error]``
    marker. A ``[warn]`` marker makes a warning. Lines without a marker are
    classified by pattern, with a leading ``FAILURE`` always an error.
    """
    line = strip_ansi(raw_line).rstrip("\r\n")
    marker = parse_output_marker(line)

    if marker is None:
        text = line.strip()
        if stream is StreamKind.STDERR or is_error(text) or text.startswith("FAILURE"):
            severity = Severity.ERROR
        elif is_warning(text):
            severity = Severity.WARNING
        else:
            severity = Severity.INFO
        return CompilerMessage(severity=severity, text=text)

    if stream is StreamKind.STDERR or marker.level is Severity.ERROR:
        severity = Severity.ERROR
    elif marker.level is Severity.WARNING:
        severity = Severity.WARNING
    else:
        severity = Severity.INFO

    return CompilerMessage(
        severity=severity,
        text=line[marker.end:],
        file_path=marker.file_path,
        line=marker.line_number + 1 if marker.line_number >= 0 else None,
    )
