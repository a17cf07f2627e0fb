"""Paper-trading portfolio and cached market data."""

__version__ = "0.1.0"
