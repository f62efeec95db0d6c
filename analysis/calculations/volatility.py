"""
Volatility calculation utilities.
Pure functions for log returns and rolling annualized historical volatility.
"""

import numpy as np
import math
from typing import List


class VolatilityError(Exception):
    """Raised when volatility calculation fails."""
    pass


DEFAULT_VOL_WINDOW = 30
TRADING_DAYS_PER_YEAR = 252


def log_returns(prices: List[float]) -> np.ndarray:
    """
    Calculate log returns from price series.

    Formula: r_t = ln(P_t) - ln(P_{t-1}) = ln(P_t / P_{t-1})

    Args:
        prices: List of prices in chronological order

    Returns:
        Numpy array of log returns (length = len(prices) - 1)

    Raises:
        VolatilityError: If insufficient data or invalid prices
    """
    if len(prices) < 2:
        raise VolatilityError("Insufficient data: need at least 2 prices")

    if any(p <= 0 for p in prices):
        raise VolatilityError("Zero or negative prices not allowed")

    price_array = np.array(prices, dtype=np.float64)

    return np.diff(np.log(price_array))


def historical_volatility(
    prices: List[float],
    window: int = DEFAULT_VOL_WINDOW,
    annualize: int = TRADING_DAYS_PER_YEAR
) -> List[float]:
    """
    Calculate annualized historical volatility for every price position.

    Formula at position i (i >= window):
        σ_i = std(r[i-window .. i-1], ddof=1) × √annualize × 100
    where r[j] = ln(P_{j+1} / P_j), i.e. the `window` returns ending at P_i.

    Args:
        prices: List of prices in chronological order
        window: Number of log returns per estimate (default 30)
        annualize: Annualization factor (252 trading days)

    Returns:
        List with one volatility (in percent) per price; positions
        before `window` are 0.0, and all are 0.0 when fewer than
        window + 1 prices are available

    Raises:
        VolatilityError: If window < 2 or prices are invalid
    """
    if window <= 1:
        raise VolatilityError("Window must be > 1 for standard deviation")

    volatilities = [0.0] * len(prices)
    if len(prices) < window + 1:
        return volatilities

    log_ret = log_returns(prices)

    if np.any(~np.isfinite(log_ret)):
        raise VolatilityError("Non-finite values not allowed in log returns")

    scale = math.sqrt(annualize) * 100

    for i in range(window, len(prices)):
        window_returns = log_ret[i - window:i]
        std_dev = np.std(window_returns, ddof=1)
        volatilities[i] = float(std_dev * scale)

    return volatilities
