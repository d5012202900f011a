import datetime as dt
import math

import pytest

from finql.model import CashAmount, CashFlow
from finql.rates import Compounding, DiscountError, FlatRate
from finql.time_period import TimePeriod

TOL = 1e-11


class _Act365:
    def year_fraction(self, start, end):
        return (end - start).days / 365.0


def _rate(compounding, currency="EUR"):
    return FlatRate(0.05, _Act365(), compounding, currency)


START = dt.date(2019, 12, 16)
END = START + TimePeriod.parse("6M")
YF = _Act365().year_fraction(START, END)


@pytest.mark.parametrize(
    "compounding, expected",
    [
        (Compounding.ANNUAL, (1.0 + 0.05) ** (-YF)),
        (Compounding.SEMI_ANNUAL, (1.0 + 0.025) ** (-YF * 2.0)),
        (Compounding.QUARTERLY, (1.0 + 0.0125) ** (-YF * 4.0)),
        (Compounding.MONTHLY, (1.0 + 0.05 / 12.0) ** (-YF * 12.0)),
        (Compounding.CONTINUOUS, math.exp(-0.05 * YF)),
        (Compounding.SIMPLE, 1.0 / (1.0 + 0.05 * YF)),
    ],
)
def test_compounding_methods(compounding, expected):
    assert abs(_rate(compounding).discount_factor(START, END) - expected) < TOL


def test_end_date_is_six_months_later():
    assert END == dt.date(2020, 6, 16)


def _flows(currency="EUR"):
    return [
        CashFlow(CashAmount(100.0, currency), dt.date(2021, 4, 1)),
        CashFlow(CashAmount(100.0, currency), dt.date(2021, 10, 1)),
        CashFlow(CashAmount(100.0, currency), dt.date(2022, 4, 1)),
        CashFlow(CashAmount(100.0, currency), dt.date(2022, 10, 3)),
    ]


TODAY = dt.date(2019, 10, 1)
DAYS = [366.0 + 182.0, 366.0 + 365.0, 366.0 + 365.0 + 182.0, 366.0 + 2.0 * 365.0 + 2.0]


@pytest.mark.parametrize("index", range(4))
def test_discount_cash_flow(index):
    rate = _rate(Compounding.CONTINUOUS)
    result = rate.discount_cash_flow(_flows()[index], TODAY)
    assert abs(result.amount - 100.0 * math.exp(-0.05 * DAYS[index] / 365.0)) < TOL
    assert result.currency == "EUR"


def test_discount_cash_flow_stream():
    rate = _rate(Compounding.CONTINUOUS)
    expected = 100.0 * sum(math.exp(-0.05 * d / 365.0) for d in DAYS)
    result = rate.discount_cash_flow_stream(_flows(), TODAY)
    assert abs(result.amount - expected) < TOL
    assert result.currency == "EUR"


def test_empty_stream_is_zero():
    result = _rate(Compounding.ANNUAL).discount_cash_flow_stream([], TODAY)
    assert result == CashAmount(0.0, "EUR")


def test_currency_mismatch_single():
    with pytest.raises(DiscountError):
        _rate(Compounding.ANNUAL).discount_cash_flow(_flows("USD")[0], TODAY)


def test_currency_mismatch_stream():
    flows = _flows() + [CashFlow(CashAmount(1.0, "USD"), dt.date(2023, 1, 2))]
    with pytest.raises(DiscountError):
        _rate(Compounding.ANNUAL).discount_cash_flow_stream(flows, TODAY)


def test_discount_factor_today_is_one():
    for compounding in Compounding:
        assert _rate(compounding).discount_factor(TODAY, TODAY) == pytest.approx(1.0)


def test_currency_and_compounding_names():
    assert _rate(Compounding.ANNUAL, "USD").currency() == "USD"
    assert str(Compounding.SEMI_ANNUAL) == "semi-annual"
    assert Compounding("continuous") is Compounding.CONTINUOUS