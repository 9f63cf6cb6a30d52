"""Ordinal version comparison for Pants capability gating.

Pants reports schema versions such as ``1.0.5`` in its ``export`` output.
These are compared numerically, segment by segment, so that ``1.10`` sorts
after ``1.6`` (which a plain string comparison gets wrong).
"""

from __future__ import annotations


class VersionParseError(ValueError):
    """Raised when a version segment at the point of divergence is not an integer."""

    def __init__(self, version: str, segment: str) -> None:
        self.version = version
        self.segment = segment
        super().__init__(
            f"Invalid version segment {segment!r} in version {version!r}"
        )


def _parse_segment(version: str, segment: str) -> int:
    try:
        value = int(segment)
    except ValueError:
        raise VersionParseError(version, segment) from None
    if value < 0:
        raise VersionParseError(version, segment)
    return value


def compare_versions(first: str, second: str) -> int:
    """Compare two dot-separated ordinal version strings.

    Only the first segment where the two strings differ is parsed; anything
    after it is never looked at. When one version is a prefix of the other
    the longer one wins, so ``"1.2.3"`` is *less than* ``"1.2.3.0"``.

    Args:
        first: A version such as ``"1.0.5"``.
        second: The version to compare against.

    Returns:
        ``-1``, ``0`` or ``1`` when *first* is numerically less than, equal
        to, or greater than *second*.

    Raises:
        VersionParseError: If the first divergent segment is not a
            non-negative integer.
    """
    segments_a = first.split(".")
    segments_b = second.split(".")

    index = 0
    while (
        index < len(segments_a)
        and index < len(segments_b)
        and segments_a[index] == segments_b[index]
    ):
        index += 1

    if index < len(segments_a) and index < len(segments_b):
        diff = _parse_segment(first, segments_a[index]) - _parse_segment(
            second, segments_b[index]
        )
    else:
        diff = len(segments_a) - len(segments_b)

    return (diff > 0) - (diff < 0)


def version_at_least(version: str, minimum: str) -> bool:
    """Return ``True`` when *version* compares greater than or equal to *minimum*."""
    return compare_versions(version, minimum) >= 0
