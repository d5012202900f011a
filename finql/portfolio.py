"""Portfolio positions and profit and loss calculated from transactions."""

from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Tuple

from finql.market import Market, MarketError
from finql.model import (
    AssetHandler,
    DataError,
    QuoteHandler,
    Transaction,
    TransactionKind,
)


class PositionError(Exception):
    """Raised when a position or its profit and loss can't be calculated."""


def _local_midnight(date: _dt.date) -> _dt.datetime:
    return _dt.datetime(date.year, date.month, date.day).astimezone()


@dataclass
class Position:
    """Holdings and accumulated cash flows of one asset, or of cash if ``asset_id`` is None."""

    asset_id: Optional[int]
    currency: str
    name: str = ""
    position: float = 0.0
    purchase_value: float = 0.0
    trading_pnl: float = 0.0
    interest: float = 0.0
    dividend: float = 0.0
    fees: float = 0.0
    tax: float = 0.0
    last_quote: Optional[float] = None
    last_quote_time: Optional[_dt.datetime] = None

    def _quote_from_purchase(self) -> Optional[float]:
        if self.position == 0.0:
            return None
        return -self.purchase_value / self.position

    def _use_purchase_quote(self) -> None:
        self.last_quote = self._quote_from_purchase()
        self.last_quote_time = None

    async def add_quote(self, time: _dt.datetime, market: Market) -> None:
        """Attach the latest quote before ``time``, in the position currency.

        Falls back to the average purchase price if no quote or exchange rate
        is available. Positions without asset are valued at 1.0.
        """
        if self.asset_id is None:
            self.last_quote = 1.0
            self.last_quote_time = _dt.datetime.now().astimezone()
            return
        try:
            quote, currency = await market.db.get_last_quote_before_by_id(
                self.asset_id, time
            )
        except DataError:
            self._use_purchase_quote()
            return
        if currency == self.currency:
            self.last_quote = quote.price
            self.last_quote_time = quote.time
            return
        try:
            fx_rate = await market.fx_rate(currency, self.currency, time)
        except MarketError:
            self._use_purchase_quote()
            return
        self.last_quote = quote.price * fx_rate
        self.last_quote_time = quote.time


@dataclass
class PositionTotals:
    """Aggregated value and profit and loss figures of a portfolio."""

    value: float
    trading_pnl: float
    unrealized_pnl: float
    dividend: float
    interest: float
    tax: float
    fees: float


class PortfolioPosition:
    """Cash position plus positions of individual assets, keyed by asset id."""

    def __init__(self, base_currency: str) -> None:
        self.cash = Position(None, base_currency)
        self.assets: Dict[int, Position] = {}

    def __repr__(self) -> str:
        return f"PortfolioPosition(cash={self.cash!r}, assets={self.assets!r})"

    def _asset(self, asset_id: int) -> Position:
        pos = self.assets.get(asset_id)
        if pos is None:
            pos = Position(asset_id, self.cash.currency)
            self.assets[asset_id] = pos
        return pos

    async def get_asset_names(self, db: AssetHandler) -> None:
        """Fill in the names of all asset positions from ``db``."""
        for asset_id, pos in self.assets.items():
            asset = await db.get_asset_by_id(asset_id)
            pos.name = asset.name

    async def add_quote(self, time: _dt.datetime, market: Market) -> None:
        """Attach the latest quotes before ``time`` to all asset positions."""
        for pos in self.assets.values():
            await pos.add_quote(time, market)

    def calc_totals(self) -> PositionTotals:
        """Sum up value and profit and loss over cash and all assets."""
        totals = PositionTotals(
            value=self.cash.position,
            trading_pnl=self.cash.trading_pnl,
            unrealized_pnl=0.0,
            dividend=self.cash.dividend,
            interest=self.cash.interest,
            tax=self.cash.tax,
            fees=self.cash.fees,
        )
        for pos in self.assets.values():
            if pos.last_quote is not None:
                pos_value = pos.position * pos.last_quote
            else:
                pos_value = -pos.purchase_value
            totals.value += pos_value
            totals.trading_pnl += pos.trading_pnl
            totals.unrealized_pnl += pos_value + pos.purchase_value
            totals.dividend += pos.dividend
            totals.interest += pos.interest
            totals.tax += pos.tax
            totals.fees += pos.fees
        return totals

    def reset_pnl(self) -> None:
        """Restart profit and loss from the current quotes and drop empty positions."""
        self.remove_zero_positions()
        for pos in (self.cash, *self.assets.values()):
            pos.trading_pnl = 0.0
            pos.dividend = 0.0
            pos.interest = 0.0
            pos.fees = 0.0
            pos.tax = 0.0
        for pos in self.assets.values():
            quote = pos.last_quote if pos.last_quote is not None else 0.0
            pos.purchase_value = -pos.position * quote

    def remove_zero_positions(self) -> None:
        """Remove all asset positions with zero holdings."""
        self.assets = {k: p for k, p in self.assets.items() if p.position != 0.0}


def _referenced_asset(
    transactions: Sequence[Transaction], trans_ref: Optional[int]
) -> Optional[int]:
    if trans_ref is None:
        return None
    for trans in transactions:
        if trans.id == trans_ref:
            return trans.asset_reference()
    return None


def calc_position(
    base_currency: str,
    transactions: Sequence[Transaction],
    date: Optional[_dt.date] = None,
) -> PortfolioPosition:
    """Return the position built by all transactions before ``date``."""
    positions = PortfolioPosition(base_currency)
    calc_delta_position(positions, transactions, None, date)
    return positions


def calc_delta_position(
    positions: PortfolioPosition,
    transactions: Sequence[Transaction],
    start: Optional[_dt.date] = None,
    end: Optional[_dt.date] = None,
) -> None:
    """Apply transactions dated on or after ``start`` and before ``end`` to ``positions``."""
    base_currency = positions.cash.currency
    for trans in transactions:
        date = trans.cash_flow.date
        if start is not None and date < start:
            continue
        if end is not None and date >= end:
            continue
        if trans.cash_flow.amount.currency != base_currency:
            raise PositionError("Calculation of P&L failed: foreign currency")
        amount = trans.cash_flow.amount.amount
        positions.cash.position += amount

        kind = trans.kind
        if kind is TransactionKind.ASSET:
            pos = positions._asset(trans.asset_id)
            delta = trans.position
            if pos.position * delta >= 0.0:
                pos.position += delta
                pos.purchase_value += amount
            else:
                eff_price = -pos.purchase_value / pos.position
                sell_price = -amount / delta
                pnl = -delta * (sell_price - eff_price)
                pos.trading_pnl += pnl
                pos.position += delta
                pos.purchase_value += amount - pnl
        elif kind is TransactionKind.INTEREST:
            positions._asset(trans.asset_id).interest += amount
        elif kind is TransactionKind.DIVIDEND:
            positions._asset(trans.asset_id).dividend += amount
        elif kind is TransactionKind.FEE:
            asset_id = _referenced_asset(transactions, trans.transaction_ref)
            target = positions.cash if asset_id is None else positions._asset(asset_id)
            target.fees += amount
        elif kind is TransactionKind.TAX:
            asset_id = _referenced_asset(transactions, trans.transaction_ref)
            target = positions.cash if asset_id is None else positions._asset(asset_id)
            target.tax += amount


async def calculate_position_and_pnl(
    currency: str,
    transactions: Sequence[Transaction],
    date: Optional[_dt.date],
    db: QuoteHandler,
) -> Tuple[PortfolioPosition, PositionTotals]:
    """Return position and totals of all transactions before ``date``.

    Positions are valued with the latest quotes before midnight of ``date``,
    or before now if no date is given.
    """
    position = calc_position(currency, transactions, date)
    try:
        await position.get_asset_names(db)
    except DataError as err:
        raise PositionError("Calculation of P&L failed: unknown asset") from err
    time = _local_midnight(date) if date is not None else _dt.datetime.now().astimezone()
    await position.add_quote(time, Market(db))
    return position, position.calc_totals()


async def calculate_position_for_period(
    currency: str,
    transactions: Sequence[Transaction],
    start: _dt.date,
    end: _dt.date,
    db: QuoteHandler,
) -> Tuple[PortfolioPosition, PositionTotals]:
    """Return position and profit and loss changes between ``start`` and ``end``.

    The initial position is valued with quotes before ``start``, the final one
    with quotes before the day after ``end``.
    """
    position, _ = await calculate_position_and_pnl(currency, transactions, start, db)
    position.reset_pnl()
    calc_delta_position(position, transactions, start, end)
    try:
        await position.get_asset_names(db)
    except DataError as err:
        raise PositionError("Calculation of P&L failed: unknown asset") from err
    end_time = _local_midnight(end + _dt.timedelta(days=1))
    await position.add_quote(end_time, Market(db))
    return position, position.calc_totals()