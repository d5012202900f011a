import datetime as dt

import pytest

from finql.market import Market
from finql.model import (
    Asset,
    CashAmount,
    CashFlow,
    Quote,
    QuoteHandler,
    Ticker,
    TransactionKind,
)
from finql.portfolio import PortfolioPosition, Position
from finql.strategy import (
    ReInvestInSingleStock,
    StaticInSingleStock,
    StockTransactionCosts,
    StockTransactionFee,
    StrategyError,
)

DIV_DATE = dt.date(2021, 6, 15)


def _portfolio(shares, cash=0.0):
    portfolio = PortfolioPosition("EUR")
    portfolio.cash.position = cash
    portfolio.assets[1] = Position(1, "EUR", position=shares)
    return portfolio


def _dividends(per_share):
    return [CashFlow(CashAmount(per_share, "EUR"), DIV_DATE)]


def test_fee_bounded_by_min_and_max():
    fee = StockTransactionFee(5.0, 20.0, 0.01)
    assert fee.calc_fee(100.0) == 5.0
    assert fee.calc_fee(1_000_000.0) == 20.0
    for price in (0.0, 50.0, 1200.0, 5000.0):
        assert 5.0 <= fee.calc_fee(price) <= 20.0


def test_fee_without_max_grows():
    fee = StockTransactionFee(1.0, None, 0.01)
    assert fee.calc_fee(1_000_000.0) > fee.calc_fee(10_000.0) > 1.0


def test_default_costs_are_free():
    costs = StockTransactionCosts()
    assert costs.tax_rate == 0.0
    assert costs.fee.calc_fee(12345.0) == 0.0


@pytest.mark.asyncio
async def test_static_no_dividend_date():
    strategy = StaticInSingleStock(1, _dividends(0.5), StockTransactionCosts())
    assert await strategy.apply(_portfolio(100.0), dt.date(2021, 6, 14)) == []


@pytest.mark.asyncio
async def test_static_dividend_and_tax():
    costs = StockTransactionCosts(tax_rate=0.25)
    strategy = StaticInSingleStock(1, _dividends(0.5), costs)
    transactions = await strategy.apply(_portfolio(100.0), DIV_DATE)
    assert [t.kind for t in transactions] == [TransactionKind.DIVIDEND, TransactionKind.TAX]
    dividend, tax = transactions
    assert dividend.asset_id == 1
    assert dividend.cash_flow.date == DIV_DATE
    assert dividend.cash_flow.amount.amount == pytest.approx(0.5 * 100.0)
    assert tax.cash_flow.amount.amount == pytest.approx(-0.25 * dividend.cash_flow.amount.amount)
    assert tax.transaction_ref is None


@pytest.mark.asyncio
async def test_static_without_tax():
    strategy = StaticInSingleStock(1, _dividends(0.5), StockTransactionCosts())
    transactions = await strategy.apply(_portfolio(100.0), DIV_DATE)
    assert [t.kind for t in transactions] == [TransactionKind.DIVIDEND]


def test_next_day():
    strategy = StaticInSingleStock(1, [], StockTransactionCosts())
    assert strategy.next_day(dt.date(2021, 12, 31)) == dt.date(2022, 1, 1)


async def _market(price):
    db = QuoteHandler()
    asset_id = await db.insert_asset(Asset("Stock"))
    ticker_id = await db.insert_ticker(Ticker("STOCK", asset_id, "EUR", "manual"))
    time = dt.datetime(2021, 6, 14, 12).astimezone()
    await db.insert_quote(Quote(ticker_id, price, time))
    return Market(db), ticker_id


@pytest.mark.asyncio
async def test_reinvest_buys_shares():
    market, ticker_id = await _market(10.0)
    costs = StockTransactionCosts(fee=StockTransactionFee(1.0, None, 0.0))
    strategy = ReInvestInSingleStock(1, ticker_id, market, _dividends(1.0), costs)
    transactions = await strategy.apply(_portfolio(100.0), DIV_DATE)
    assert [t.kind for t in transactions] == [
        TransactionKind.DIVIDEND,
        TransactionKind.ASSET,
        TransactionKind.FEE,
    ]
    buy = transactions[1]
    assert buy.asset_id == 1
    assert buy.position == 10.0
    assert buy.cash_flow.amount.amount == pytest.approx(-buy.position * 10.0)
    assert transactions[2].cash_flow.amount.amount == -1.0


@pytest.mark.asyncio
async def test_reinvest_not_enough_cash():
    market, ticker_id = await _market(1000.0)
    strategy = ReInvestInSingleStock(1, ticker_id, market, _dividends(1.0), StockTransactionCosts())
    transactions = await strategy.apply(_portfolio(100.0), DIV_DATE)
    assert [t.kind for t in transactions] == [TransactionKind.DIVIDEND]


@pytest.mark.asyncio
async def test_reinvest_missing_quote():
    market = Market(QuoteHandler())
    strategy = ReInvestInSingleStock(1, 1, market, _dividends(1.0), StockTransactionCosts())
    with pytest.raises(StrategyError):
        await strategy.apply(_portfolio(100.0), DIV_DATE)


@pytest.mark.asyncio
async def test_reinvest_no_dividend_date():
    market, ticker_id = await _market(10.0)
    strategy = ReInvestInSingleStock(1, ticker_id, market, _dividends(1.0), StockTransactionCosts())
    assert await strategy.apply(_portfolio(100.0), dt.date(2021, 7, 1)) == []


def test_calc_position_and_fee_invariants():
    costs = StockTransactionCosts(fee=StockTransactionFee(2.0, 10.0, 0.01))
    strategy = ReInvestInSingleStock(1, 1, Market(QuoteHandler()), [], costs)
    for cash, price in ((100.0, 7.0), (3.0, 2.5), (1000.0, 33.0)):
        shares, fee = strategy.calc_position_and_fee(cash, price)
        assert shares == int(shares)
        assert shares * price <= cash
        assert fee == costs.fee.calc_fee(shares * price)
    assert strategy.calc_position_and_fee(5.0, 10.0)[0] == 0.0