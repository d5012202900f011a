"""Investment strategies that generate transactions on given dates."""

from __future__ import annotations

import abc
import datetime as _dt
import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from finql.market import Market
from finql.model import (
    CashAmount,
    CashFlow,
    DataError,
    Transaction,
    TransactionKind,
)
from finql.portfolio import PortfolioPosition
from finql.time_period import TimePeriod

_log = logging.getLogger(__name__)

_ONE_DAY = TimePeriod.parse("1D")


class StrategyError(Exception):
    """Raised when a strategy can't retrieve the data it needs."""


@dataclass
class StockTransactionFee:
    """Proportional fee bounded below by ``min_fee`` and optionally above by ``max_fee``."""

    min_fee: float = 0.0
    max_fee: Optional[float] = None
    proportional_fee: float = 0.0

    def calc_fee(self, total_price: float) -> float:
        """Return the fee for a trade of the given total price."""
        fee = max(total_price * self.proportional_fee, self.min_fee)
        if self.max_fee is not None:
            fee = min(fee, self.max_fee)
        return fee


@dataclass
class StockTransactionCosts:
    """Fees and tax rate applied to stock transactions."""

    fee: StockTransactionFee = field(default_factory=StockTransactionFee)
    tax_rate: float = 0.0


class Strategy(abc.ABC):
    """Produces transactions for a portfolio position at a given date."""

    @abc.abstractmethod
    async def apply(
        self, position: PortfolioPosition, date: _dt.date
    ) -> List[Transaction]:
        """Return the transactions the strategy makes at ``date``."""

    @abc.abstractmethod
    def next_day(self, date: _dt.date) -> _dt.date:
        """Return the next date the strategy is to be applied."""


def _dividend_on(date: _dt.date, cash_flows: Sequence[CashFlow]) -> Optional[CashFlow]:
    return next((cf for cf in cash_flows if cf.date == date), None)


def _dividend_and_tax(
    dividend_per_share: CashFlow,
    shares: float,
    asset_id: int,
    tax_rate: float,
) -> Tuple[CashFlow, CashFlow, List[Transaction]]:
    currency = dividend_per_share.amount.currency
    amount = dividend_per_share.amount.amount * shares
    dividend = CashFlow(CashAmount(amount, currency), dividend_per_share.date)
    tax = CashFlow(CashAmount(-tax_rate * amount, currency), dividend_per_share.date)
    transactions = [
        Transaction(TransactionKind.DIVIDEND, dividend, asset_id=asset_id)
    ]
    _log.debug("added transaction %r", transactions[-1])
    if tax.amount.amount != 0.0:
        transactions.append(Transaction(TransactionKind.TAX, tax))
        _log.debug("added transaction %r", transactions[-1])
    return dividend, tax, transactions


class StaticInSingleStock(Strategy):
    """Hold a single stock and collect its dividends without reinvesting."""

    def __init__(
        self,
        asset_id: int,
        dividends: Sequence[CashFlow],
        costs: StockTransactionCosts,
    ) -> None:
        self.asset_id = asset_id
        self.dividends = list(dividends)
        self.costs = costs

    async def apply(
        self, position: PortfolioPosition, date: _dt.date
    ) -> List[Transaction]:
        per_share = _dividend_on(date, self.dividends)
        if per_share is None:
            return []
        shares = position.assets[self.asset_id].position
        dividend, tax, transactions = _dividend_and_tax(
            per_share, shares, self.asset_id, self.costs.tax_rate
        )
        _log.debug(
            "StaticInSingleStock: added dividend %s and tax %s at date %s.",
            dividend.amount.amount,
            -tax.amount.amount,
            date,
        )
        return transactions

    def next_day(self, date: _dt.date) -> _dt.date:
        return _ONE_DAY.add_to(date)


class ReInvestInSingleStock(Strategy):
    """Hold a single stock and reinvest dividends and cash into it."""

    def __init__(
        self,
        asset_id: int,
        ticker_id: int,
        market: Market,
        dividends: Sequence[CashFlow],
        costs: StockTransactionCosts,
    ) -> None:
        self.asset_id = asset_id
        self.ticker_id = ticker_id
        self.market = market
        self.dividends = list(dividends)
        self.costs = costs

    async def apply(
        self, position: PortfolioPosition, date: _dt.date
    ) -> List[Transaction]:
        per_share = _dividend_on(date, self.dividends)
        if per_share is None:
            return []
        shares = position.assets[self.asset_id].position
        dividend, tax, transactions = _dividend_and_tax(
            per_share, shares, self.asset_id, self.costs.tax_rate
        )
        available_cash = dividend.amount.amount + tax.amount.amount + position.cash.position

        time = _dt.datetime(date.year, date.month, date.day, 20).astimezone()
        try:
            quote, _ = await self.market.db.get_last_quote_before_by_id(
                self.ticker_id, time
            )
        except DataError as err:
            raise StrategyError("Failed to retrieve data from database") from err
        price = quote.price

        additional, fee = self.calc_position_and_fee(available_cash, price)
        currency = position.cash.currency
        if additional > 0.0:
            buy = Transaction(
                TransactionKind.ASSET,
                CashFlow(CashAmount(-additional * price, currency), date),
                asset_id=self.asset_id,
                position=additional,
            )
            transactions.append(buy)
            _log.debug("added transaction %r", buy)
            if fee != 0.0:
                fee_transaction = Transaction(
                    TransactionKind.FEE, CashFlow(CashAmount(-fee, currency), date)
                )
                transactions.append(fee_transaction)
                _log.debug("added transaction %r", fee_transaction)
        _log.debug(
            "ReInvestInSingleStock: added dividend %s and tax %s and buying %s shares "
            "with fee %s from available cash %s with price %s at date %s.",
            dividend.amount.amount,
            -tax.amount.amount,
            additional,
            fee,
            available_cash,
            price,
            date,
        )
        return transactions

    def next_day(self, date: _dt.date) -> _dt.date:
        return _ONE_DAY.add_to(date)

    def calc_position_and_fee(self, cash: float, price: float) -> Tuple[float, float]:
        """Return the number of whole shares to buy with ``cash`` and its fee."""
        fee_model = self.costs.fee
        max_position = float(math.floor(cash / price))
        fee = fee_model.calc_fee(max_position * price)
        while max_position > 0.0 and max_position * price - fee < 0.0:
            max_position -= 1.0
            fee = fee_model.calc_fee(max_position * price)
        return max_position, fee