# finql

A toolbox for quantitative analysis of financial assets, using only the
Python standard library.

It provides:

- **Time periods** such as `"3M"`, `"-1Y"` or `"2B"` that can be added to and
  subtracted from dates (`finql.time_period.TimePeriod`).
- **Time series** of timestamped values with min/max and gap detection against
  a business-day calendar (`finql.time_series.TimeSeries`).
- **Discounting** of cash flows with flat rates under simple, annual,
  semi-annual, quarterly, monthly or continuous compounding
  (`finql.rates.FlatRate`).
- **Data types and an in-memory store** for cash flows, transactions, assets,
  tickers and quotes (`finql.model`).
- **Market data**: a `finql.market.Market` that holds quote providers, stores
  fetched quotes, looks up asset prices and converts currencies.
- **Portfolio positions**: positions, realised trading P&L, fees, taxes,
  dividends and interest built from a list of transactions
  (`finql.portfolio`), valued with stored quotes.
- **Strategies** for back-testing dividend handling on a single stock
  (`finql.strategy`).

## Installation

```
pip install finql
```

## Time periods

```python
import datetime
from finql.time_period import TimePeriod

six_months = TimePeriod.parse("6M")
start = datetime.date(2019, 12, 16)

start + six_months                          # datetime.date(2020, 6, 16)
(start + six_months) - six_months == start  # True
str(-six_months)                            # "-6M"
six_months.frequency()                      # 2
```

Units are `D` (days), `B` (business days), `W` (weeks), `M` (months) and
`Y` (years). Monthly periods move the day to the last day of the target month
when the month is too short, so `2019-11-30 + 3M` gives `2020-02-29`.
`frequency()` works for 1, 3, 6 and 12 months and for one year; otherwise,
like a malformed string passed to `parse`, it raises
`finql.time_period.TimePeriodError`.

Business-day periods need a calendar passed to `add_to` or `sub_from`: any
object with `next_bday(date)` and `prev_bday(date)` methods.

## Time series

```python
from finql.time_series import TimeSeries, TimeValue

ts = TimeSeries(series=[TimeValue(time, 1.0) for time in times], title="prices")
first, last, low, high = ts.min_max()
gaps = ts.find_gaps(cal, today=datetime.date(2021, 11, 12))
```

`find_gaps` walks business days from the first date up to `today` (default:
the current date) and returns `(begin, end)` ranges without values. An empty
series raises `finql.time_series.TimeSeriesError`.

## Discounting

`FlatRate` needs a day count convention: any object with a
`year_fraction(start, end)` method.

```python
import datetime
from finql.model import CashAmount, CashFlow
from finql.rates import Compounding, FlatRate

class Act365:
    def year_fraction(self, start, end):
        return (end - start).days / 365.0

rate = FlatRate(0.05, Act365(), Compounding.CONTINUOUS, "EUR")
cf = CashFlow(CashAmount(100.0, "EUR"), datetime.date(2021, 4, 1))
rate.discount_cash_flow(cf, datetime.date(2019, 10, 1))         # CashAmount
rate.discount_cash_flow_stream([cf, cf], datetime.date(2019, 10, 1))
```

A cash flow in a currency other than the rate's raises
`finql.rates.DiscountError`. Other discounters can be written by subclassing
`finql.rates.Discounter` and implementing `discount_factor` and `currency`.

## Transactions and portfolio positions

```python
import datetime
from finql.model import CashAmount, CashFlow, Transaction, TransactionKind
from finql.portfolio import calc_position

def cf(amount, day):
    return CashFlow(CashAmount(amount, "EUR"), day)

d = datetime.date
transactions = [
    Transaction(TransactionKind.CASH, cf(10000.0, d(2020, 1, 1)), id=1),
    Transaction(TransactionKind.ASSET, cf(-104.0, d(2020, 1, 2)), id=2,
                asset_id=1, position=100.0),
    Transaction(TransactionKind.FEE, cf(-5.0, d(2020, 1, 2)), id=3,
                transaction_ref=2),
]

positions = calc_position("EUR", transactions, None)
positions.cash.position          # 9891.0
positions.assets[1].fees         # -5.0
```

Fees and taxes referring to an asset, dividend or interest transaction are
booked on that asset; otherwise on the cash position. Selling part of a
position books realised P&L in `trading_pnl`. A transaction in a currency other
than the base currency raises `finql.portfolio.PositionError`.

The asynchronous `calculate_position_and_pnl(currency, transactions, date, db)`
and `calculate_position_for_period(currency, transactions, start, end, db)`
also fill in asset names and the latest quotes from a quote store and return
the position together with its `PositionTotals`. Where no quote or exchange
rate is found, a position is valued at its average purchase price.

## Quote store and market

`finql.model.QuoteHandler` is an in-memory store of assets, tickers and
quotes (`insert_asset`, `insert_ticker`, `insert_quote`,
`get_last_quote_before_by_id`, ...). Missing entries raise
`finql.model.DataError`. Exchange rates are looked up as quotes of an asset
named after the foreign currency (e.g. `"USD"`) whose ticker is in the base
currency.

```python
from finql.market import Market

market = Market(db)
market.add_provider("manual", provider)
failed_ticker_ids = await market.update_quotes()
price = await market.get_asset_price(asset_id, "EUR", datetime.date(2020, 1, 31))
rate = await market.fx_rate("USD", "EUR", time)
```

Providers subclass `finql.market_quotes.MarketQuoteProvider` and implement
`fetch_latest_quote`, `fetch_quote_history` and `fetch_dividend_history`.
Fetched prices are multiplied by the ticker's `factor` before storing.
`MarketDataSource.parse("yahoo")` maps source names to enum members, and
`MarketDataSource.extern_sources()` lists the external ones.

## Strategies

`StaticInSingleStock` books dividends (and tax, by
`StockTransactionCosts.tax_rate`) on the dates of a list of per-share
dividends. `ReInvestInSingleStock` additionally buys as many whole shares as
the available cash allows after fees (`StockTransactionFee`: proportional fee
with a minimum and an optional maximum). Both return the transactions from
`await strategy.apply(position, date)`.

## What the package does not do

- It contains no quote providers for any market data vendor; only the
  `MarketQuoteProvider` interface is provided, to be implemented by the user.
- It has no persistent storage; `QuoteHandler` keeps everything in memory.
- It ships no holiday calendars and no day count conventions; business-day
  periods, gap detection and `FlatRate` take objects supplied by the caller.
- It has no command-line interface.

## Running the tests

```
pip install -e ".[test]"
pytest
```