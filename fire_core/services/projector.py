from __future__ import annotations

import logging
import math
from typing import Iterable, List, Optional

from fire_core.domain.models import (
    Assumptions,
    CashFlows,
    FutureCashEvent,
    Profile,
    Projection,
    Trajectory,
    TrajectoryPoint,
)
from fire_core.services.timevalue import MONTHS_PER_YEAR, bounded, growth_factor

logger = logging.getLogger(__name__)

MIN_TERMINAL_AGE = 100


def _events_in_year(
    events: List[FutureCashEvent], age: int, since: Optional[float] = None
) -> List[FutureCashEvent]:
    # the first simulated year also picks up events dated after the current
    # age but before it starts
    if since is not None:
        return [e for e in events if since < e.age < age + 1]
    return [e for e in events if age <= e.age < age + 1]


def simulate(
    profile: Profile,
    cash_flows: CashFlows,
    assumptions: Assumptions,
    events: Iterable[FutureCashEvent],
    fire_number: float,
) -> Projection:
    """
    Year-by-year projection with 12 monthly compounding steps per year.

    Each sample is the balance at the start of that age, before the year's
    events, contributions and withdrawals. Balances are tracked twice:
    nominal (grown at the nominal return, withdrawals inflated) and real
    (grown at the real return, in today's money).
    """
    events = list(events)
    nominal_m = assumptions.nominal_return / MONTHS_PER_YEAR
    real_m = assumptions.real_return / MONTHS_PER_YEAR
    inflation_m = assumptions.inflation / MONTHS_PER_YEAR

    target_age = profile.target_age
    pension_start = cash_flows.pension_start_age if cash_flows.pension_start_age is not None else target_age
    gap_with_pension = max(0.0, cash_flows.monthly_expenses - cash_flows.monthly_pension)
    gap_no_pension = max(0.0, cash_flows.monthly_expenses)
    contribution = cash_flows.monthly_contribution
    retired_at_start = profile.already_retired

    start_age = int(math.ceil(profile.current_age))
    end_age = int(math.ceil(max(MIN_TERMINAL_AGE, profile.life_expectancy)))

    nominal = profile.current_savings
    real = profile.current_savings
    achieved_age: Optional[float] = None
    points: List[TrajectoryPoint] = []

    for age in range(start_age, end_age + 1):
        points.append(TrajectoryPoint(age=float(age), nominal_balance=nominal, real_balance=real))

        if achieved_age is None and real >= fire_number and (age <= target_age or retired_at_start):
            achieved_age = float(age)

        years_elapsed = age - profile.current_age
        since = profile.current_age if age == start_age and profile.current_age < start_age else None
        for event in _events_in_year(events, age, since):
            nominal += event.amount * growth_factor(assumptions.inflation, years_elapsed)
            real += event.amount

        for m in range(MONTHS_PER_YEAR):
            month_age = age + m / MONTHS_PER_YEAR
            if month_age < target_age:
                nominal = nominal * (1 + nominal_m) + contribution
                real = real * (1 + real_m) + contribution
            else:
                gap = gap_with_pension if month_age >= pension_start else gap_no_pension
                elapsed_months = years_elapsed * MONTHS_PER_YEAR + m
                nominal = nominal * (1 + nominal_m) - gap * growth_factor(inflation_m, elapsed_months)
                real = real * (1 + real_m) - gap

        nominal = max(0.0, bounded(nominal))
        real = max(0.0, bounded(real))

    logger.debug("simulated %d years from age %d; achieved at %s", len(points), start_age, achieved_age)
    return Projection(trajectory=Trajectory(points=tuple(points)), achieved_age=achieved_age)
