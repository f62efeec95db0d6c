"""
Relative strength index utilities.
Pure functions - Wilder-smoothed RSI with a zero sentinel for missing history.
"""

from typing import List


class IndicatorError(Exception):
    """Raised when indicator parameters are invalid."""
    pass


DEFAULT_RSI_PERIOD = 14

# avgLoss == 0 after smoothing maps to this RS instead of infinity
ZERO_LOSS_RS = 100.0


def calculate_rsi(prices: List[float], period: int = DEFAULT_RSI_PERIOD) -> List[float]:
    """
    Calculate RSI for every position of a price series.

    Seeding: simple mean of gains and losses over the first `period` deltas.
    If the seed average loss is exactly zero it is treated as 1 so the first
    value stays finite; it then depends on the size of the average gain.

    Smoothing: avg = (avg * (period - 1) + current) / period. A smoothed
    average loss of zero gives RS = 100, capping RSI at 100 - 100/101 (about 99.01).

    Args:
        prices: Closing prices in chronological order
        period: Lookback period (default 14)

    Returns:
        List with one RSI per price; the first `period` entries are 0.0

    Raises:
        IndicatorError: If period is not positive

    Example:
        15 strictly rising prices with period=14 give
        [0.0] * 14 + [100 - 100 / (1 + avg_gain / 1)]
    """
    if period <= 0:
        raise IndicatorError(f"RSI period must be positive, got {period}")

    # Need period deltas (period + 1 prices) to seed the averages
    if len(prices) <= period:
        return [0.0] * len(prices)

    rsi_values = [0.0] * period

    gains = 0.0
    losses = 0.0
    for i in range(1, period + 1):
        diff = prices[i] - prices[i - 1]
        if diff > 0:
            gains += diff
        else:
            losses += abs(diff)

    avg_gain = gains / period
    avg_loss = losses / period

    seed_loss = 1.0 if avg_loss == 0 else avg_loss
    rsi_values.append(100 - (100 / (1 + avg_gain / seed_loss)))

    for i in range(period + 1, len(prices)):
        diff = prices[i] - prices[i - 1]
        current_gain = diff if diff > 0 else 0.0
        current_loss = abs(diff) if diff < 0 else 0.0

        avg_gain = (avg_gain * (period - 1) + current_gain) / period
        avg_loss = (avg_loss * (period - 1) + current_loss) / period

        rs = ZERO_LOSS_RS if avg_loss == 0 else avg_gain / avg_loss
        rsi_values.append(100 - (100 / (1 + rs)))

    return rsi_values
