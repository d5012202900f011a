"""Time periods in days, business days, weeks, months or years that can be added to dates."""

from __future__ import annotations

import calendar as _calendar
import datetime as _dt
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

_NUMBER = re.compile(r"[+-]?[0-9]+")
_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1


class TimePeriodError(ValueError):
    """Raised when a time period cannot be parsed or converted."""


class BusinessCalendar(Protocol):
    """Anything that can step to the next or previous business day."""

    def next_bday(self, date: _dt.date) -> _dt.date: ...

    def prev_bday(self, date: _dt.date) -> _dt.date: ...


class TimePeriodUnit(Enum):
    """Unit of a time period, valued by its one-letter code."""

    DAILY = "D"
    BUSINESS_DAILY = "B"
    WEEKLY = "W"
    MONTHLY = "M"
    ANNUAL = "Y"

    def __str__(self) -> str:
        return self.value


def last_day_of_month(year: int, month: int) -> int:
    """Return the number of the last day of the given month."""
    return _calendar.monthrange(year, month)[1]


@dataclass(frozen=True)
class TimePeriod:
    """A signed number of time units, e.g. ``3M`` or ``-1Y``."""

    num: int
    unit: TimePeriodUnit

    @classmethod
    def parse(cls, text: str) -> "TimePeriod":
        """Parse strings of the form ``[+|-]<int><unit>``."""
        if len(text.encode("utf-8")) < 2:
            raise TimePeriodError("couldn't parse time period, string is too short")
        try:
            unit = TimePeriodUnit(text[-1])
        except ValueError:
            raise TimePeriodError(
                "invalid time period unit, use one of 'D', 'B', 'W', 'M', or 'Y'"
            ) from None
        digits = text[:-1]
        if not _NUMBER.fullmatch(digits):
            raise TimePeriodError("parsing number of periods for time period failed")
        num = int(digits)
        if not _I32_MIN <= num <= _I32_MAX:
            raise TimePeriodError("parsing number of periods for time period failed")
        return cls(num, unit)

    def add_to(
        self, date: _dt.date, cal: Optional[BusinessCalendar] = None
    ) -> _dt.date:
        """Add this period to ``date``.

        Business daily periods need a calendar. Monthly periods move the day to
        the end of the target month if the month is too short.
        """
        unit = self.unit
        if unit is TimePeriodUnit.DAILY:
            return date + _dt.timedelta(days=self.num)
        if unit is TimePeriodUnit.WEEKLY:
            return date + _dt.timedelta(days=7 * self.num)
        if unit is TimePeriodUnit.BUSINESS_DAILY:
            if cal is None:
                raise TimePeriodError("business daily periods require a calendar")
            step = cal.prev_bday if self.num < 0 else cal.next_bday
            for _ in range(abs(self.num)):
                date = step(date)
            return date
        if unit is TimePeriodUnit.MONTHLY:
            years, months = divmod(abs(self.num), 12)
            if self.num < 0:
                years, months = -years, -months
            year = date.year + years
            month = date.month + months
            if month < 1:
                year -= 1
                month += 12
            elif month > 12:
                year += 1
                month -= 12
            day = date.day
            if day > 28:
                day = min(day, last_day_of_month(year, month))
            return _dt.date(year, month, day)
        return _dt.date(date.year + self.num, date.month, date.day)

    def sub_from(
        self, date: _dt.date, cal: Optional[BusinessCalendar] = None
    ) -> _dt.date:
        """Subtract this period from ``date``."""
        return self.inverse().add_to(date, cal)

    def inverse(self) -> "TimePeriod":
        """Return the period with the opposite sign."""
        return TimePeriod(-self.num, self.unit)

    def frequency(self) -> int:
        """Return the number of periods per year, if there is a whole number."""
        n = abs(self.num)
        if self.unit is TimePeriodUnit.MONTHLY:
            frequencies = {1: 12, 3: 4, 6: 2, 12: 1}
            if n in frequencies:
                return frequencies[n]
        elif self.unit is TimePeriodUnit.ANNUAL and n == 1:
            return 1
        raise TimePeriodError("the time period can't be converted to frequency")

    def __str__(self) -> str:
        return f"{self.num}{self.unit}"

    def __neg__(self) -> "TimePeriod":
        return self.inverse()

    def __radd__(self, other):
        if isinstance(other, _dt.date):
            return self.add_to(other)
        return NotImplemented

    def __rsub__(self, other):
        if isinstance(other, _dt.date):
            return self.sub_from(other)
        return NotImplemented