"""Market data quote providers and storing fetched quotes in a quote store."""

from __future__ import annotations

import abc
import datetime as _dt
from dataclasses import replace
from enum import Enum
from typing import List

from finql.model import CashFlow, DataError, Quote, QuoteHandler, Ticker


class MarketQuoteError(Exception):
    """Raised when fetching or storing market quotes fails."""


class MarketDataSourceError(ValueError):
    """Raised when a market data source name is not known."""


class MarketQuoteProvider(abc.ABC):
    """General interface for providers of market data quotes."""

    @abc.abstractmethod
    async def fetch_latest_quote(self, ticker: Ticker) -> Quote:
        """Fetch the latest quote of a ticker."""

    @abc.abstractmethod
    async def fetch_quote_history(
        self, ticker: Ticker, start: _dt.datetime, end: _dt.datetime
    ) -> List[Quote]:
        """Fetch historic quotes between ``start`` and ``end``."""

    @abc.abstractmethod
    async def fetch_dividend_history(
        self, ticker: Ticker, start: _dt.datetime, end: _dt.datetime
    ) -> List[CashFlow]:
        """Fetch historic dividends, each a payment per single share."""


async def _store(db: QuoteHandler, quote: Quote, ticker: Ticker) -> None:
    try:
        await db.insert_quote(replace(quote, price=quote.price * ticker.factor))
    except DataError as err:
        raise MarketQuoteError("Storing quote in database failed") from err


async def update_ticker(
    provider: MarketQuoteProvider, ticker: Ticker, db: QuoteHandler
) -> None:
    """Fetch the latest quote of ``ticker`` and store it, scaled by the ticker factor."""
    quote = await provider.fetch_latest_quote(ticker)
    await _store(db, quote, ticker)


async def update_ticker_history(
    provider: MarketQuoteProvider,
    ticker: Ticker,
    db: QuoteHandler,
    start: _dt.datetime,
    end: _dt.datetime,
) -> None:
    """Fetch the quote history of ``ticker`` and store it, scaled by the ticker factor."""
    quotes = await provider.fetch_quote_history(ticker, start, end)
    for quote in quotes:
        await _store(db, quote, ticker)


class MarketDataSource(Enum):
    """Known sources of market data."""

    MANUAL = "manual"
    YAHOO = "yahoo"
    GURU_FOCUS = "gurufocus"
    EOD_HIST_DATA = "eodhistdata"
    ALPHA_VANTAGE = "alpha_vantage"
    COMDIRECT = "comdirect"

    @classmethod
    def parse(cls, text: str) -> "MarketDataSource":
        """Return the source with the given name."""
        try:
            return cls(text)
        except ValueError:
            raise MarketDataSourceError("Parsing market data source failed") from None

    def __str__(self) -> str:
        return self.value

    @classmethod
    def extern_sources(cls) -> List[str]:
        """Return the names of all external sources."""
        return [source.value for source in cls if source is not cls.MANUAL]