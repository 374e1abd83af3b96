# -*- coding: utf-8 -*-

from datetime import timedelta

import pytest

from finalize_build.utils import (
    find_versions,
    parse_version,
    replace_version,
    basename,
    is_bare_version,
    to_latest_name,
    to_seconds,
)


class TestParseVersion:
    """Test version parsing."""

    def test_plain_version(self):
        """Test a plain MAJOR.MINOR.PATCH version."""
        match = parse_version("1.2.3")
        assert match.text == "1.2.3"
        assert match.version == "1.2.3"
        assert match.prerelease is None
        assert match.major is None
        assert match.minor is None
        assert match.has_build_numbers is False
        assert (match.start, match.end) == (0, 5)

    def test_prerelease_with_build_numbers(self):
        """Test a prerelease tag followed by two build numbers."""
        match = parse_version("myfile-1.2.3-preview-4-5.zip")
        assert match.text == "1.2.3-preview-4-5"
        assert match.version == "1.2.3"
        assert match.prerelease == "preview-"
        assert match.major == 4
        assert match.minor == 5
        assert match.has_build_numbers is True

    def test_build_numbers_without_prerelease(self):
        match = parse_version("2.0.0-25407-01")
        assert match.text == "2.0.0-25407-01"
        assert match.prerelease is None
        assert match.major == 25407
        assert match.minor == 1

    def test_no_version(self):
        """Test text without a version."""
        assert parse_version("notaversion.txt") is None
        assert parse_version("1.2") is None
        assert find_versions("no digits here") == []

    def test_find_versions(self):
        """Test every version in a name is found."""
        matches = find_versions("a-1.0.0-b-2.0.0-rc1-3-4")
        assert [m.text for m in matches] == ["1.0.0", "2.0.0-rc1-3-4"]


def test_replace_version():
    assert replace_version("x-1.2.3.zip", "V") == "x-V.zip"
    assert replace_version("1.0.0_2.0.0", "") == "_"
    assert replace_version("unchanged.txt", "V") == "unchanged.txt"


def test_basename():
    assert basename("a/b/c.zip") == "c.zip"
    assert basename("c.zip") == "c.zip"
    assert basename("a/b/") == ""


def test_is_bare_version():
    """Test the purge filter on marker names."""
    assert is_bare_version("1.2.3") is True
    assert is_bare_version("1.2.3-preview-4-5") is True
    assert is_bare_version("notaversion.txt") is False
    # a version with an extension is not a marker
    assert is_bare_version("1.2.3.json") is False
    assert is_bare_version("") is False


def test_to_latest_name():
    """Test renaming a versioned file to Latest."""
    assert to_latest_name("myfile-1.2.3-preview-4-5.zip") == "myfile-Latest.zip"
    assert (
        to_latest_name("dotnet-runtime-2.0.0-preview2-25407-01-win-x64.zip")
        == "dotnet-runtime-Latest-win-x64.zip"
    )
    assert to_latest_name("readme.txt") == "readme.txt"


def test_to_seconds():
    """Test duration parsing from numbers, timedeltas and time spans."""
    assert to_seconds(5) == 5.0
    assert to_seconds(0.5) == 0.5
    assert to_seconds(timedelta(minutes=1)) == 60.0
    assert to_seconds("00:01:00") == 60.0
    assert to_seconds("00:00:00.5") == 0.5
    assert to_seconds("1.00:00:01") == 86401.0
    assert to_seconds("2.5") == 2.5
    with pytest.raises(ValueError):
        to_seconds("soon")


if __name__ == "__main__":
    from finalize_build.tests import run_cov_test

    run_cov_test(
        __file__,
        "finalize_build.utils",
        preview=False,
    )
