# -*- coding: utf-8 -*-

"""
Version string parsing and small helpers shared by the finalize components.

Build artifacts carry their version inside the file name, for example::

    dotnet-runtime-2.0.0-preview2-25407-01-win-x64.zip
                   ^^^^^^^^^^^^^^^^^^^^^^^
                   version: 2.0.0, prerelease: "preview2-", major: 25407, minor: 01

The same parser drives both the stale marker purge (:func:`is_bare_version`)
and the rename to ``Latest`` (:func:`to_latest_name`), so the two can never
disagree on what a version substring is.
"""

import typing as T
import re
import dataclasses
from datetime import datetime, timezone, timedelta

from .constants import LATEST_TOKEN

_version_pattern = re.compile(
    r"(?P<version>\d+\.\d+\.\d+)"
    r"(-(?P<prerelease>[^-]+-)?(?P<major>\d+)-(?P<minor>\d+))?"
)

_time_span_pattern = re.compile(
    r"^(?:(?P<days>\d+)\.)?(?P<hours>\d+):(?P<minutes>\d+):(?P<seconds>\d+(?:\.\d+)?)$"
)


def get_utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclasses.dataclass(frozen=True)
class VersionMatch:
    """
    A version substring located inside a larger string.

    :param text: the full matched substring.
    :param version: the ``MAJOR.MINOR.PATCH`` part.
    :param prerelease: prerelease tag including its trailing hyphen,
        e.g. ``"preview-"``, or ``None``.
    :param major: first trailing build counter, or ``None``.
    :param minor: second trailing build counter, or ``None``.
    :param start: start offset of the match in the source string.
    :param end: end offset (exclusive) of the match in the source string.
    """

    text: str
    version: str
    prerelease: T.Optional[str]
    major: T.Optional[int]
    minor: T.Optional[int]
    start: int
    end: int

    @property
    def has_build_numbers(self) -> bool:
        return self.major is not None


def _to_version_match(m: "re.Match") -> VersionMatch:
    major = m.group("major")
    minor = m.group("minor")
    return VersionMatch(
        text=m.group(0),
        version=m.group("version"),
        prerelease=m.group("prerelease"),
        major=None if major is None else int(major),
        minor=None if minor is None else int(minor),
        start=m.start(),
        end=m.end(),
    )


def find_versions(text: str) -> T.List[VersionMatch]:
    """
    Return every non-overlapping version substring in ``text``, left to right.
    """
    return [_to_version_match(m) for m in _version_pattern.finditer(text)]


def parse_version(text: str) -> T.Optional[VersionMatch]:
    """
    Return the first version substring in ``text``, or ``None``.
    """
    m = _version_pattern.search(text)
    if m is None:
        return None
    return _to_version_match(m)


def replace_version(text: str, replacement: str) -> str:
    """
    Replace every version substring in ``text`` with ``replacement``.
    """
    parts = list()
    cursor = 0
    for match in find_versions(text):
        parts.append(text[cursor : match.start])
        parts.append(replacement)
        cursor = match.end
    parts.append(text[cursor:])
    return "".join(parts)


def basename(key: str) -> str:
    return key.rsplit("/", 1)[-1]


def is_bare_version(filename: str) -> bool:
    """
    Whether the file name consists of version strings only.

    ``1.2.3`` and ``1.2.3-preview-4-5`` are bare versions; ``1.2.3.json``
    and ``notaversion.txt`` are not.
    """
    if not filename:
        return False
    return replace_version(filename, "") == ""


def to_latest_name(filename: str) -> str:
    return replace_version(filename, LATEST_TOKEN)


def to_seconds(value: T.Union[int, float, str, timedelta]) -> float:
    """
    Normalize a duration to seconds.

    Accepts a number of seconds, a :class:`~datetime.timedelta`, or a time
    span string like ``"00:01:00"`` or ``"1.00:00:00.5"``.
    """
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, (int, float)):
        return float(value)
    m = _time_span_pattern.match(value.strip())
    if m is None:
        try:
            return float(value)
        except ValueError:
            raise ValueError(f"invalid duration: {value!r}")
    days = int(m.group("days") or 0)
    return timedelta(
        days=days,
        hours=int(m.group("hours")),
        minutes=int(m.group("minutes")),
        seconds=float(m.group("seconds")),
    ).total_seconds()
