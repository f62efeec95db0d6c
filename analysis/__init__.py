"""
Analysis Engine Module

Derives fund premium analytics from aligned price and NAV series:
- RSI (14-day, Wilder smoothing)
- Historical volatility (30-day, annualized)
- Premium rate and percentile rank
- Composite score and portfolio ranking
"""

__version__ = "0.1.0"
