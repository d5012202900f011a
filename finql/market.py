"""A market: access to stored quotes, quote providers and currency conversion."""

from __future__ import annotations

import datetime as _dt
from typing import Dict, List

from finql.market_quotes import (
    MarketQuoteError,
    MarketQuoteProvider,
    update_ticker,
    update_ticker_history,
)
from finql.model import DataError, QuoteHandler
from finql.time_period import TimePeriod


class MarketError(Exception):
    """Raised when market data can't be found, fetched or converted."""


def _at_hour(date: _dt.date, hour: int) -> _dt.datetime:
    return _dt.datetime(date.year, date.month, date.day, hour).astimezone()


class Market:
    """Container of quote providers in front of a quote store."""

    def __init__(self, db: QuoteHandler) -> None:
        self.db = db
        self._providers: Dict[str, MarketQuoteProvider] = {}

    def add_provider(self, name: str, provider: MarketQuoteProvider) -> None:
        """Register a provider for tickers whose source is ``name``."""
        self._providers[name] = provider

    async def update_quotes(self) -> List[int]:
        """Fetch the latest quote of every ticker; return ids of tickers that failed."""
        try:
            tickers = await self.db.get_all_ticker()
        except DataError as err:
            raise MarketError("Database error") from err
        failed = []
        for ticker in tickers:
            provider = self._providers.get(ticker.source)
            if provider is None:
                continue
            try:
                await update_ticker(provider, ticker, self.db)
            except (MarketQuoteError, DataError):
                failed.append(ticker.id)
        return failed

    async def update_quote_history(
        self, ticker_id: int, start: _dt.datetime, end: _dt.datetime
    ) -> None:
        """Fetch and store the quote history of one ticker."""
        try:
            ticker = await self.db.get_ticker_by_id(ticker_id)
            provider = self._providers.get(ticker.source)
            if provider is not None:
                await update_ticker_history(provider, ticker, self.db, start, end)
        except DataError as err:
            raise MarketError("Database error") from err
        except MarketQuoteError as err:
            raise MarketError("Market quote error") from err

    async def update_quote_history_for_asset(
        self, asset_id: int, start: _dt.datetime, end: _dt.datetime
    ) -> None:
        """Fetch and store the quote history of all tickers of an asset."""
        try:
            tickers = await self.db.get_all_ticker_for_asset(asset_id)
            for ticker in tickers:
                provider = self._providers.get(ticker.source)
                if provider is not None:
                    await update_ticker_history(provider, ticker, self.db, start, end)
        except DataError as err:
            raise MarketError("Database error") from err
        except MarketQuoteError as err:
            raise MarketError("Market quote error") from err

    async def get_asset_price(
        self, asset_id: int, currency: str, date: _dt.date
    ) -> float:
        """Return the price of an asset at ``date``, converted to ``currency``.

        If nothing is stored, the quotes of the week before are fetched first.
        """
        try:
            quote, quote_currency = await self.db.get_last_quote_before_by_id(
                asset_id, _at_hour(date, 18)
            )
        except DataError:
            week_before = TimePeriod.parse("-7D").add_to(date)
            await self.update_quote_history_for_asset(
                asset_id, _at_hour(week_before, 0), _at_hour(date, 20)
            )
            try:
                quote, quote_currency = await self.db.get_last_quote_before_by_id(
                    asset_id, _at_hour(date, 20)
                )
            except DataError as err:
                raise MarketError("Database error") from err
        if currency == quote_currency:
            return quote.price
        fx_rate = await self.fx_rate(currency, quote_currency, _at_hour(date, 20))
        return quote.price * fx_rate

    async def fx_rate(self, foreign: str, base: str, time: _dt.datetime) -> float:
        """Return the price of one unit of ``foreign`` in ``base`` at ``time``."""
        if foreign == base:
            return 1.0
        try:
            quote, quote_currency = await self.db.get_last_quote_before(foreign, time)
        except DataError as err:
            raise MarketError("Currency conversion failure") from err
        if quote_currency == base:
            return quote.price
        raise MarketError("Currency conversion failure")