"""Time periods, time series, discounting, market quotes, portfolio positions and strategies for financial assets."""

__version__ = "0.1.0"