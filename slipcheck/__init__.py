"""slipcheck — quantitative risk engine for multi-leg sports wagers."""

__version__ = "1.0.0"
