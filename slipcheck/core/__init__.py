"""Core mathematics and configuration for the slipcheck risk engine.

This package contains pure building blocks:

- ``odds_math``     — odds conversion, implied probability, normal CDF
- ``kelly``         — Kelly sizing, variance, tilt heuristics, parlay Kelly
- ``engine_config`` — tunable constants (Kelly defaults, hedge bands, etc.)

Nothing in this package imports from ``slipcheck.services``.
All modules are side-effect-free and unit-testable in isolation.
"""
