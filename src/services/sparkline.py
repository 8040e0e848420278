"""
Synthetic sparkline series.

Presentation fallback only: when no real intraday history is available,
fabricate a random walk that ends at the current price and roughly
carries the reported percent change. Never fed back into the pipeline.
"""

from __future__ import annotations

from typing import List, Optional

import numpy as np

DEFAULT_POINTS = 20
DEFAULT_VOLATILITY = 0.015  # 1.5% per step (daily-ish)

INTRADAY_POINTS = 78  # 6.5h session in 5-minute bars
INTRADAY_VOLATILITY = 0.002


def generate_sparkline(
    price: float,
    pct_change: float,
    points: int = DEFAULT_POINTS,
    volatility: float = DEFAULT_VOLATILITY,
    seed: Optional[int] = None,
) -> List[float]:
    """
    Random walk of ``points`` prices ending exactly at ``price``.

    The walk is built backwards from the current price; the trend spreads
    ``pct_change`` evenly across the steps and each step adds uniform
    noise in ``[-volatility, +volatility]``.

    Args:
        price: Current price (last point).
        pct_change: Percent change the series should roughly show.
        points: Series length.
        volatility: Per-step noise amplitude as a fraction.
        seed: Seed for a reproducible series.

    Returns:
        Prices, oldest first.
    """
    if points <= 0:
        return []
    if points == 1 or price <= 0:
        return [float(price)] * points

    rng = np.random.default_rng(seed)
    steps = points - 1
    trend = pct_change / steps / 100.0
    noise = rng.uniform(-volatility, volatility, size=steps)

    # Dividing back through each step's growth factor walks into the past
    factors = 1.0 + trend + noise
    factors = np.where(factors <= 0, 1.0, factors)
    history = price / np.cumprod(factors)

    series = np.concatenate([history[::-1], [price]])
    return [float(p) for p in series]


def generate_intraday_series(
    price: float,
    pct_change: float,
    seed: Optional[int] = None,
) -> List[float]:
    """Session-length series for the stock detail chart."""
    return generate_sparkline(
        price,
        pct_change,
        points=INTRADAY_POINTS,
        volatility=INTRADAY_VOLATILITY,
        seed=seed,
    )
