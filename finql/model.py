"""Core data types for cash flows, transactions, assets, tickers and quotes, with in-memory stores."""

from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple


class DataError(LookupError):
    """Raised when data cannot be found or stored."""


@dataclass(frozen=True)
class CashAmount:
    """An amount of money in a given currency (ISO code such as ``EUR``)."""

    amount: float
    currency: str


@dataclass(frozen=True)
class CashFlow:
    """A cash amount paid at a given date."""

    amount: CashAmount
    date: _dt.date


class TransactionKind(Enum):
    """Kind of a portfolio transaction."""

    CASH = "cash"
    ASSET = "asset"
    DIVIDEND = "dividend"
    INTEREST = "interest"
    TAX = "tax"
    FEE = "fee"


_ASSET_KINDS = frozenset(
    {TransactionKind.ASSET, TransactionKind.DIVIDEND, TransactionKind.INTEREST}
)
_REF_KINDS = frozenset({TransactionKind.TAX, TransactionKind.FEE})


@dataclass(frozen=True)
class Transaction:
    """A cash flow together with what caused it.

    Asset, dividend and interest transactions belong to an asset; asset
    transactions also change the position by ``position``. Tax and fee
    transactions may refer to another transaction by its id.
    """

    kind: TransactionKind
    cash_flow: CashFlow
    id: Optional[int] = None
    asset_id: Optional[int] = None
    position: float = 0.0
    transaction_ref: Optional[int] = None
    note: Optional[str] = None

    def __post_init__(self) -> None:
        if self.kind in _ASSET_KINDS:
            if self.asset_id is None:
                raise ValueError(f"{self.kind.value} transaction requires an asset id")
        elif self.asset_id is not None:
            raise ValueError(f"{self.kind.value} transaction can't refer to an asset")
        if self.kind is not TransactionKind.ASSET and self.position != 0.0:
            raise ValueError("only asset transactions can change a position")
        if self.kind not in _REF_KINDS and self.transaction_ref is not None:
            raise ValueError(
                f"{self.kind.value} transaction can't refer to another transaction"
            )

    def asset_reference(self) -> Optional[int]:
        """Return the asset this transaction belongs to, if any."""
        if self.kind in _ASSET_KINDS:
            return self.asset_id
        return None


@dataclass(frozen=True)
class Asset:
    """A tradable asset."""

    name: str
    id: Optional[int] = None
    wkn: Optional[str] = None
    isin: Optional[str] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class Ticker:
    """A source of quotes for an asset, with its currency and price factor."""

    name: str
    asset: int
    currency: str
    source: str
    id: Optional[int] = None
    priority: int = 10
    factor: float = 1.0
    tz: Optional[str] = None
    cal: Optional[str] = None


@dataclass(frozen=True)
class Quote:
    """A price of a ticker at a point in time."""

    ticker: int
    price: float
    time: _dt.datetime
    id: Optional[int] = None
    volume: Optional[float] = None


class AssetHandler:
    """In-memory store of assets; subclass to keep them elsewhere."""

    def __init__(self) -> None:
        self._assets: Dict[int, Asset] = {}
        self._next_asset_id = 1

    async def insert_asset(self, asset: Asset) -> int:
        """Store an asset and return its new id."""
        if any(a.name == asset.name for a in self._assets.values()):
            raise DataError(f"asset '{asset.name}' already exists")
        asset_id = self._next_asset_id
        self._next_asset_id += 1
        self._assets[asset_id] = replace(asset, id=asset_id)
        return asset_id

    async def get_asset_by_id(self, asset_id: int) -> Asset:
        try:
            return self._assets[asset_id]
        except KeyError:
            raise DataError(f"no asset with id {asset_id}") from None

    async def get_asset_by_name(self, name: str) -> Asset:
        for asset in self._assets.values():
            if asset.name == name:
                return asset
        raise DataError(f"no asset named '{name}'")

    async def get_all_assets(self) -> List[Asset]:
        return list(self._assets.values())


class QuoteHandler(AssetHandler):
    """In-memory store of assets, tickers and quotes."""

    def __init__(self) -> None:
        super().__init__()
        self._tickers: Dict[int, Ticker] = {}
        self._quotes: Dict[int, Quote] = {}
        self._next_ticker_id = 1
        self._next_quote_id = 1

    async def insert_ticker(self, ticker: Ticker) -> int:
        """Store a ticker of a known asset and return its new id."""
        await self.get_asset_by_id(ticker.asset)
        ticker_id = self._next_ticker_id
        self._next_ticker_id += 1
        self._tickers[ticker_id] = replace(ticker, id=ticker_id)
        return ticker_id

    async def get_ticker_by_id(self, ticker_id: int) -> Ticker:
        try:
            return self._tickers[ticker_id]
        except KeyError:
            raise DataError(f"no ticker with id {ticker_id}") from None

    async def get_all_ticker(self) -> List[Ticker]:
        return list(self._tickers.values())

    async def get_all_ticker_for_asset(self, asset_id: int) -> List[Ticker]:
        return [t for t in self._tickers.values() if t.asset == asset_id]

    async def insert_quote(self, quote: Quote) -> int:
        """Store a quote of a known ticker and return its new id."""
        await self.get_ticker_by_id(quote.ticker)
        quote_id = self._next_quote_id
        self._next_quote_id += 1
        self._quotes[quote_id] = replace(quote, id=quote_id)
        return quote_id

    async def get_all_quotes_for_ticker(self, ticker_id: int) -> List[Quote]:
        """Return all quotes of a ticker, ordered by time."""
        quotes = [q for q in self._quotes.values() if q.ticker == ticker_id]
        return sorted(quotes, key=lambda q: q.time)

    async def get_last_quote_before_by_id(
        self, asset_id: int, time: _dt.datetime
    ) -> Tuple[Quote, str]:
        """Return the latest quote of an asset not after ``time`` and its currency.

        Among quotes at the same time, the ticker with the highest priority wins.
        """
        tickers = {t.id: t for t in await self.get_all_ticker_for_asset(asset_id)}
        candidates = [
            q for q in self._quotes.values() if q.ticker in tickers and q.time <= time
        ]
        if not candidates:
            raise DataError(f"no quote for asset {asset_id} before {time}")
        best = max(candidates, key=lambda q: (q.time, tickers[q.ticker].priority))
        return best, tickers[best.ticker].currency

    async def get_last_quote_before(
        self, asset_name: str, time: _dt.datetime
    ) -> Tuple[Quote, str]:
        """Return the latest quote of the asset with this name not after ``time``."""
        asset = await self.get_asset_by_name(asset_name)
        return await self.get_last_quote_before_by_id(asset.id, time)