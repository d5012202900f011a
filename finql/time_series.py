"""Time series of values and detection of gaps in them."""

from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Tuple


class TimeSeriesError(ValueError):
    """Raised when a time series operation is not possible."""


class BusinessCalendar(Protocol):
    """Anything that can step to the next or previous business day."""

    def next_bday(self, date: _dt.date) -> _dt.date: ...

    def prev_bday(self, date: _dt.date) -> _dt.date: ...


def _local_date(time: _dt.datetime) -> _dt.date:
    if time.tzinfo is not None:
        time = time.astimezone()
    return time.date()


@dataclass
class TimeValue:
    """A value observed at a point in time."""

    time: _dt.datetime
    value: float


@dataclass
class TimeSeries:
    """A titled series of time values, ordered by time."""

    series: List[TimeValue] = field(default_factory=list)
    title: str = ""

    def min_max(self) -> Tuple[_dt.date, _dt.date, float, float]:
        """Return the first and last date and the minimum and maximum value."""
        if not self.series:
            raise TimeSeriesError("Time series is empty.")
        values = [tv.value for tv in self.series]
        return (
            _local_date(self.series[0].time),
            _local_date(self.series[-1].time),
            min(values),
            max(values),
        )

    def find_gaps(
        self, cal: BusinessCalendar, today: Optional[_dt.date] = None
    ) -> List[Tuple[_dt.date, _dt.date]]:
        """Return business day ranges from the first date until ``today`` without values."""
        min_date, _, _, _ = self.min_max()
        if today is None:
            today = _dt.date.today()
        dates = {_local_date(tv.time) for tv in self.series}
        gaps = []
        gap_begin = None
        date = min_date
        while date <= today:
            if gap_begin is None:
                if date not in dates:
                    gap_begin = date
            elif date in dates:
                gaps.append((gap_begin, cal.prev_bday(date)))
                gap_begin = None
            date = cal.next_bday(date)
        if gap_begin is not None:
            gaps.append((gap_begin, today))
        return gaps