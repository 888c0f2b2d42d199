# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""
Month-precision calendar values.

Dates are written as "MM.YYYY" (e.g. "03.2024" is March 2024). The day is
always the first of the month and is never surfaced.

Parsing is strict:
- Month segment: 1 or 2 ASCII digits, value 1-12
- Year segment: one or more ASCII digits, any width
- No surrounding whitespace, no signs

So "2024.03" is rejected (the month segment has four digits) rather than
being read with its segments swapped.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Union

from bestbefore.errors import MalformedDateError

DATE_FORMAT_HINT = "MM.YYYY"


@dataclass(frozen=True, order=True)
class CalendarMonth:
    """A (year, month) pair ordered by year, then month.

    Field order matters: dataclass ordering compares fields in
    declaration order.
    """

    year: int
    month: int

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise MalformedDateError(
                f"Invalid month: {self.month}. Expected a number from 1-12",
                text=self.month,
            )

    @classmethod
    def parse(cls, text: str) -> "CalendarMonth":
        """Parse a "MM.YYYY" token.

        Args:
            text: Raw date text

        Returns:
            Parsed CalendarMonth

        Raises:
            MalformedDateError: If the text is not a valid MM.YYYY date
        """
        if not isinstance(text, str):
            raise MalformedDateError(
                f"Invalid date format: {text!r}. Expected format: '{DATE_FORMAT_HINT}'",
                text=text,
            )

        parts = text.split(".")
        if len(parts) != 2:
            raise MalformedDateError(
                f"Invalid date format: '{text}'. Expected format: '{DATE_FORMAT_HINT}'",
                text=text,
            )

        month_part, year_part = parts
        if not (_is_ascii_digits(month_part) and len(month_part) <= 2):
            raise MalformedDateError(
                f"Invalid month: '{month_part}' in '{text}'. Expected a number from 1-12",
                text=text,
            )
        if not _is_ascii_digits(year_part):
            raise MalformedDateError(
                f"Invalid year: '{year_part}' in '{text}'. Expected a valid year number",
                text=text,
            )

        month = int(month_part)
        try:
            year = int(year_part)
        except ValueError as e:
            # Beyond the interpreter's int string conversion limit
            raise MalformedDateError(
                f"Invalid year in '{text}'. Expected a valid year number",
                text=text,
            ) from e
        if not 1 <= month <= 12:
            raise MalformedDateError(
                f"Invalid month: {month} in '{text}'. Expected a number from 1-12",
                text=text,
            )

        return cls(year=year, month=month)

    @classmethod
    def from_date(cls, value: Union[date, datetime]) -> "CalendarMonth":
        """Truncate a date or datetime to its month."""
        return cls(year=value.year, month=value.month)

    @classmethod
    def from_system_clock(cls) -> "CalendarMonth":
        """Current local month. No timezone normalization is applied."""
        return cls.from_date(datetime.now())

    def format(self) -> str:
        """Render as "MM.YYYY"."""
        return f"{self.month:02d}.{self.year:04d}"

    def next_month(self) -> "CalendarMonth":
        if self.month == 12:
            return CalendarMonth(year=self.year + 1, month=1)
        return CalendarMonth(year=self.year, month=self.month + 1)

    def previous_month(self) -> "CalendarMonth":
        if self.month == 1:
            return CalendarMonth(year=self.year - 1, month=12)
        return CalendarMonth(year=self.year, month=self.month - 1)

    def to_date(self) -> date:
        """First day of the month.

        Raises:
            ValueError: If the year is outside datetime.MINYEAR..MAXYEAR
        """
        return date(self.year, self.month, 1)

    def __str__(self) -> str:
        return self.format()


def _is_ascii_digits(segment: str) -> bool:
    # str.isdigit() also accepts superscripts and other Unicode digits
    return bool(segment) and segment.isascii() and segment.isdigit()
