"""Unit tests for the small text helpers."""

from __future__ import annotations

import pytest

from careerintel.utils.text import collapse_whitespace, extract_profile_field, infer_country_code, match_choice


class TestCollapseWhitespace:
    def test_runs_become_single_spaces(self) -> None:
        assert collapse_whitespace(" a \n\n b\t c ") == "a b c"


class TestExtractProfileField:
    TEXT = "Jane Doe\nposition:  Head of Design \nLocation: Manchester, UK\nCompany:\n"

    def test_label_is_case_insensitive(self) -> None:
        assert extract_profile_field(self.TEXT, "Position") == "Head of Design"

    def test_stops_at_end_of_line(self) -> None:
        assert extract_profile_field(self.TEXT, "Location") == "Manchester, UK"

    def test_empty_value_is_missing(self) -> None:
        assert extract_profile_field(self.TEXT, "Company") is None

    def test_absent_label_and_text(self) -> None:
        assert extract_profile_field(self.TEXT, "Salary") is None
        assert extract_profile_field(None, "Location") is None


class TestInferCountryCode:
    @pytest.mark.parametrize(
        ("location", "code"),
        [
            ("London, UK", "gb"),
            ("Austin, TX", "us"),
            ("Toronto, Ontario", "ca"),
            ("Melbourne VIC", "au"),
            ("München, Deutschland", "de"),
            ("Lyon", "fr"),
        ],
    )
    def test_keywords(self, location: str, code: str) -> None:
        assert infer_country_code(location) == code

    @pytest.mark.parametrize("location", [None, "", "Remote", "Tokyo"])
    def test_unknown(self, location: str | None) -> None:
        assert infer_country_code(location) == "unknown"


class TestMatchChoice:
    CHOICES = ("Entry", "Mid", "Senior", "C-Level")

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("senior", "Senior"), ("Mid-level", "Mid"), ("MID LEVEL", "Mid"), ("c level", "C-Level"), ("clevel", "C-Level")],
    )
    def test_loose_spellings_match(self, value: str, expected: str) -> None:
        assert match_choice(value, self.CHOICES) == expected

    def test_aliases_use_normalised_keys(self) -> None:
        assert match_choice("Junior", self.CHOICES, {"junior": "Entry"}) == "Entry"

    def test_no_match(self) -> None:
        assert match_choice("Wizard", self.CHOICES, {"junior": "Entry"}) is None
        assert match_choice("", self.CHOICES) is None
        assert match_choice(None, self.CHOICES) is None
