"""Interest rate compounding and discounting of cash flows."""

from __future__ import annotations

import abc
import datetime as _dt
import math
from enum import Enum
from typing import Iterable, Protocol

from finql.model import CashAmount, CashFlow


class DayCountConvention(Protocol):
    """Anything that turns a pair of dates into a year fraction."""

    def year_fraction(self, start: _dt.date, end: _dt.date) -> float: ...


class Compounding(Enum):
    """Methods for compounding interest rates."""

    SIMPLE = "simple"
    ANNUAL = "annual"
    SEMI_ANNUAL = "semi-annual"
    QUARTERLY = "quarterly"
    MONTHLY = "monthly"
    CONTINUOUS = "continuous"

    def __str__(self) -> str:
        return self.value


class DiscountError(ValueError):
    """Raised when a cash flow's currency differs from the discounter's."""

    def __init__(
        self,
        message: str = "discount error: the cash flow currency does not match "
        "the discounter currency",
    ) -> None:
        super().__init__(message)


class Discounter(abc.ABC):
    """Calculates discount factors for cash flows in one currency."""

    @abc.abstractmethod
    def discount_factor(self, today: _dt.date, pay_date: _dt.date) -> float:
        """Return the factor discounting a payment at ``pay_date`` to ``today``."""

    @abc.abstractmethod
    def currency(self) -> str:
        """Return the currency of cash flows this discounter accepts."""

    def discount_cash_flow(self, cf: CashFlow, today: _dt.date) -> CashAmount:
        """Return the value of ``cf`` discounted to ``today``."""
        if cf.amount.currency != self.currency():
            raise DiscountError()
        amount = self.discount_factor(today, cf.date) * cf.amount.amount
        return CashAmount(amount, cf.amount.currency)

    def discount_cash_flow_stream(
        self, cf_stream: Iterable[CashFlow], today: _dt.date
    ) -> CashAmount:
        """Return the sum of all cash flows discounted to ``today``."""
        currency = self.currency()
        total = 0.0
        for cf in cf_stream:
            if cf.amount.currency != currency:
                raise DiscountError()
            total += self.discount_factor(today, cf.date) * cf.amount.amount
        return CashAmount(total, currency)


class FlatRate(Discounter):
    """A constant interest rate with a day count convention and compounding."""

    def __init__(
        self,
        rate: float,
        day_count_conv: DayCountConvention,
        compounding: Compounding,
        currency: str,
    ) -> None:
        self.rate = rate
        self.day_count_conv = day_count_conv
        self.compounding = compounding
        self._currency = currency

    def __repr__(self) -> str:
        return (
            f"FlatRate(rate={self.rate!r}, day_count_conv={self.day_count_conv!r}, "
            f"compounding={self.compounding!r}, currency={self._currency!r})"
        )

    def discount_factor(self, today: _dt.date, pay_date: _dt.date) -> float:
        yf = self.day_count_conv.year_fraction(today, pay_date)
        rate = self.rate
        compounding = self.compounding
        if compounding is Compounding.SIMPLE:
            return 1.0 / (1.0 + rate * yf)
        if compounding is Compounding.ANNUAL:
            return (1.0 + rate) ** (-yf)
        if compounding is Compounding.SEMI_ANNUAL:
            return (1.0 + 0.5 * rate) ** (-2.0 * yf)
        if compounding is Compounding.QUARTERLY:
            return (1.0 + 0.25 * rate) ** (-4.0 * yf)
        if compounding is Compounding.MONTHLY:
            return (1.0 + rate / 12.0) ** (-12.0 * yf)
        return math.exp(-rate * yf)

    def currency(self) -> str:
        return self._currency