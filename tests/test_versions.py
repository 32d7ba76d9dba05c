"""Tests for numeric-segment version comparison and version extraction."""

from __future__ import annotations

import itertools

import pytest

from latest.analysis.versions import (
    extract_version,
    extract_version_field,
    is_newer,
    newest,
    parse_segments,
    strip_v,
)

SAMPLES = [
    "0",
    "1",
    "1.0",
    "1.0.0",
    "1.0.1",
    "1.9.0",
    "1.10.0",
    "v2.0.0",
    "2.0.0-rc1",
    "2.0.0+build.7",
    "10.0",
    "2024.01.15",
    "latest",
    "",
]


@pytest.mark.parametrize(
    "installed,candidate,expected",
    [
        ("1.0.0", "1.0.1", True),
        ("1.9.0", "1.10.0", True),
        ("1.0.0", "1.0.0", False),
        ("2.0.0", "1.9.9", False),
        ("1.0", "1.0.0", False),
        ("1.0", "1.0.1", True),
        ("v1.2.3", "1.2.4", True),
        ("1_2_3", "1.2.3", False),
        ("stable", "nightly", False),
        ("", "0.0.1", True),
    ],
)
def test_is_newer(installed, candidate, expected):
    assert is_newer(installed, candidate) is expected


def test_parse_segments_ignores_non_digits():
    assert parse_segments("v1.2.3-beta.4+sha.5") == ["1", "2", "3", "4", "5"]
    assert parse_segments("no digits") == []


def test_parse_segments_drops_leading_zeros():
    assert parse_segments("2024.01.007") == ["2024", "1", "7"]
    assert parse_segments("0.00") == ["0", "0"]


class TestHugeSegments:
    HUGE = "9" * 5000

    def test_huge_installed_segment_never_raises(self):
        assert not is_newer("1." + self.HUGE, "2.0")
        assert is_newer("1." + self.HUGE, "1." + self.HUGE + "1")

    def test_huge_candidate_is_newer(self):
        assert is_newer("1.0", "1." + self.HUGE)
        assert not is_newer("1." + self.HUGE, "1." + self.HUGE)

    def test_leading_zeros_do_not_count(self):
        assert not is_newer("1.0001", "1.1")
        assert is_newer("1.0009", "1.10")
        assert not is_newer("1." + "0" * 5000 + "5", "1.5")

    def test_newest_with_huge_segments(self):
        items = ["1.2", "1." + self.HUGE, "1.3"]
        assert newest(items, key=lambda v: v) == "1." + self.HUGE


@pytest.mark.parametrize("version", SAMPLES)
def test_is_newer_is_irreflexive(version):
    assert not is_newer(version, version)


def test_is_newer_is_antisymmetric():
    for a, b in itertools.product(SAMPLES, repeat=2):
        assert not (is_newer(a, b) and is_newer(b, a)), (a, b)


def test_is_newer_is_transitive():
    for a, b, c in itertools.product(SAMPLES, repeat=3):
        if is_newer(a, b) and is_newer(b, c):
            assert is_newer(a, c), (a, b, c)


def test_digitless_strings_compare_equal():
    assert not is_newer("latest", "stable")
    assert not is_newer("stable", "latest")


class TestNewest:
    def test_picks_numeric_maximum(self):
        assert newest(["1.9.0", "1.10.0", "1.2.0"], key=lambda v: v) == "1.10.0"

    def test_earlier_item_wins_tie(self):
        items = [("2.0", "brew"), ("2.0.0", "apt")]
        assert newest(items, key=lambda i: i[0]) == ("2.0", "brew")

    def test_empty(self):
        assert newest([], key=lambda v: v) is None


@pytest.mark.parametrize(
    "text,expected",
    [
        ("v25.2.1", "25.2.1"),
        ("git version 2.47.1", "2.47.1"),
        ("Python 3.12.4", "3.12.4"),
        ("go version go1.23.4 darwin/arm64", "1.23.4"),
        ("openjdk 21.0.5-ea 2024-10-15", "21.0.5-ea"),
        ("tool 7", None),
        ("", None),
    ],
)
def test_extract_version(text, expected):
    assert extract_version(text) == expected


def test_extract_version_field():
    text = "Name: flask\nVersion: 3.1.2\nSummary: A simple framework"
    assert extract_version_field(text) == "3.1.2"
    assert extract_version_field("Name: flask") is None
    assert extract_version_field("Version:   ") is None


def test_strip_v():
    assert strip_v("v1.2") == "1.2"
    assert strip_v("1.2") == "1.2"
