from __future__ import annotations

import math
import sys

MONTHS_PER_YEAR = 12
RATE_EPSILON = 1e-6
MIN_GROWTH_BASE = 1e-9
MAX_VALUE = sys.float_info.max


def bounded(value: float) -> float:
    """Map NaN to 0 and clip infinities to the largest finite float."""
    if math.isnan(value):
        return 0.0
    return max(-MAX_VALUE, min(MAX_VALUE, value))


def growth_factor(rate: float, periods: float) -> float:
    """
    (1 + rate) ** periods, kept real and finite.

    The base is floored just above zero so a rate at or below -100% cannot
    produce a complex number, and overflow saturates at the largest float.
    """
    base = max(1.0 + rate, MIN_GROWTH_BASE)
    try:
        return base ** periods
    except OverflowError:
        return MAX_VALUE


def annuity_present_value(
    real_rate: float,
    periods: float,
    periodic_payment: float,
    future_value: float = 0.0,
) -> float:
    """
    Present value of an ordinary annuity plus a terminal balance.

    `periods` is in years and `periodic_payment` is the annual amount; the
    stream is compounded monthly (rate / 12 over periods * 12 sub-periods).
    """
    if periods <= 0:
        return future_value

    n = periods * MONTHS_PER_YEAR
    rate = real_rate / MONTHS_PER_YEAR
    if abs(rate) < RATE_EPSILON:
        # sum of the monthly payments, written in annual units
        return periodic_payment * periods + future_value

    discount = growth_factor(rate, -n)
    monthly_payment = periodic_payment / MONTHS_PER_YEAR
    pv = monthly_payment * (1 - discount) / rate + future_value * discount
    return bounded(pv)


def sinking_fund_payment(target: float, rate: float, periods: float) -> float:
    """Level payment per period that accumulates to `target` at per-period `rate`."""
    if periods <= 0:
        return bounded(target)
    if abs(rate) < RATE_EPSILON:
        return bounded(target / periods)
    return bounded(target * rate / (growth_factor(rate, periods) - 1))
