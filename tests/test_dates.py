# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the month-precision date model.

Covers parsing strictness, formatting, the round-trip law, and ordering.
"""

import itertools
from datetime import date, datetime
from unittest.mock import patch

import pytest

from bestbefore.dates import CalendarMonth
from bestbefore.errors import MalformedDateError, PolicyError


class TestParse:
    """Tests for CalendarMonth.parse."""

    def test_parses_two_digit_month(self):
        assert CalendarMonth.parse("03.2024") == CalendarMonth(year=2024, month=3)

    def test_parses_unpadded_month(self):
        """Month zero padding is optional on input."""
        assert CalendarMonth.parse("3.2024") == CalendarMonth(2024, 3)

    def test_parses_december(self):
        assert CalendarMonth.parse("12.2030") == CalendarMonth(2030, 12)

    def test_parses_short_year(self):
        """Years of any width are accepted when representable."""
        assert CalendarMonth.parse("01.5") == CalendarMonth(5, 1)

    @pytest.mark.parametrize("text", ["13.2024", "00.2024", "99.2024"])
    def test_rejects_month_out_of_range(self, text):
        with pytest.raises(MalformedDateError) as exc_info:
            CalendarMonth.parse(text)
        assert text in str(exc_info.value)

    def test_rejects_year_month_order(self):
        """'2024.03' has a four digit month segment and is rejected."""
        with pytest.raises(MalformedDateError):
            CalendarMonth.parse("2024.03")

    @pytest.mark.parametrize(
        "text",
        ["032024", "03-2024", "03.20.24", "", ".", "03.", ".2024"],
    )
    def test_rejects_wrong_shape(self, text):
        with pytest.raises(MalformedDateError):
            CalendarMonth.parse(text)

    @pytest.mark.parametrize("text", ["ab.2024", "+3.2024", " 3.2024", "0x1.2024"])
    def test_rejects_non_integer_month(self, text):
        with pytest.raises(MalformedDateError) as exc_info:
            CalendarMonth.parse(text)
        assert "month" in str(exc_info.value).lower()

    @pytest.mark.parametrize("text", ["03.20x4", "03.-2024", "03.2024 ", "03.2_024"])
    def test_rejects_non_integer_year(self, text):
        with pytest.raises(MalformedDateError) as exc_info:
            CalendarMonth.parse(text)
        assert "year" in str(exc_info.value).lower()

    def test_rejects_unicode_digits(self):
        with pytest.raises(MalformedDateError):
            CalendarMonth.parse("0³.2024")

    @pytest.mark.parametrize(
        "text, expected, rendered",
        [
            ("01.0", CalendarMonth(0, 1), "01.0000"),
            ("01.10000", CalendarMonth(10000, 1), "01.10000"),
        ],
    )
    def test_accepts_years_outside_datetime_range(self, text, expected, rendered):
        """Years are plain integers; datetime.date limits do not apply."""
        value = CalendarMonth.parse(text)
        assert value == expected
        assert value.format() == rendered
        assert CalendarMonth.parse(value.format()) == value

    def test_rejects_oversized_year(self):
        with pytest.raises(MalformedDateError):
            CalendarMonth.parse("01." + "9" * 10000)

    def test_rejects_non_string(self):
        with pytest.raises(MalformedDateError):
            CalendarMonth.parse(3.2024)

    def test_error_keeps_offending_text(self):
        with pytest.raises(MalformedDateError) as exc_info:
            CalendarMonth.parse("13.2024")
        assert exc_info.value.text == "13.2024"

    def test_malformed_date_is_policy_error(self):
        assert issubclass(MalformedDateError, PolicyError)


class TestConstruction:
    """Tests for direct construction and truncation."""

    def test_rejects_invalid_month(self):
        with pytest.raises(MalformedDateError):
            CalendarMonth(2024, 13)

    def test_is_immutable(self):
        month = CalendarMonth(2024, 3)
        with pytest.raises(AttributeError):
            month.month = 4

    def test_is_hashable(self):
        assert len({CalendarMonth(2024, 3), CalendarMonth.parse("03.2024")}) == 1

    def test_from_date_truncates(self):
        assert CalendarMonth.from_date(date(2024, 3, 31)) == CalendarMonth(2024, 3)

    def test_from_datetime_truncates(self):
        assert CalendarMonth.from_date(datetime(2023, 12, 31, 23, 59)) == CalendarMonth(2023, 12)

    def test_from_system_clock(self):
        with patch("bestbefore.dates.datetime") as mock_datetime:
            mock_datetime.now.return_value = datetime(2025, 7, 19, 8, 30)
            assert CalendarMonth.from_system_clock() == CalendarMonth(2025, 7)

    def test_to_date_is_first_of_month(self):
        assert CalendarMonth(2024, 3).to_date() == date(2024, 3, 1)

    @pytest.mark.parametrize("year", [0, 10000])
    def test_to_date_outside_datetime_range_raises(self, year):
        with pytest.raises(ValueError):
            CalendarMonth(year, 1).to_date()


class TestFormat:
    """Tests for MM.YYYY rendering."""

    def test_zero_pads_month(self):
        assert CalendarMonth(2024, 3).format() == "03.2024"

    def test_str_matches_format(self):
        assert str(CalendarMonth(2030, 12)) == "12.2030"

    def test_pads_short_year(self):
        assert CalendarMonth(5, 1).format() == "01.0005"

    @pytest.mark.property
    def test_round_trip(self):
        """parse(format(d)) == d across a spread of years and all months."""
        for year in (0, 1, 9, 99, 999, 1970, 2024, 9999, 10000, 123456):
            for month in range(1, 13):
                value = CalendarMonth(year, month)
                assert CalendarMonth.parse(value.format()) == value


class TestOrdering:
    """Tests for the (year, month) total order."""

    def test_year_dominates(self):
        assert CalendarMonth(2023, 12) < CalendarMonth(2024, 1)

    def test_month_breaks_ties(self):
        assert CalendarMonth(2024, 2) < CalendarMonth(2024, 3)

    def test_equal_values(self):
        assert CalendarMonth(2024, 3) == CalendarMonth(2024, 3)
        assert not CalendarMonth(2024, 3) > CalendarMonth(2024, 3)

    @pytest.mark.property
    def test_totality(self):
        """Exactly one of a<b, a==b, a>b holds for every pair."""
        values = [CalendarMonth(y, m) for y in (2023, 2024, 2025) for m in (1, 6, 12)]
        for a, b in itertools.product(values, repeat=2):
            outcomes = [a < b, a == b, a > b]
            assert outcomes.count(True) == 1

    def test_next_month_wraps_year(self):
        assert CalendarMonth(2024, 12).next_month() == CalendarMonth(2025, 1)

    def test_previous_month_wraps_year(self):
        assert CalendarMonth(2024, 1).previous_month() == CalendarMonth(2023, 12)
