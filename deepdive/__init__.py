"""DeepDive: trading-journal analysis with a resilient result store."""

__version__ = "0.1.0"
