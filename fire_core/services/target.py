from __future__ import annotations

import logging
from typing import Iterable

from fire_core.domain.models import Assumptions, CashFlows, FireTarget, FutureCashEvent, Profile
from fire_core.services.timevalue import annuity_present_value, bounded, growth_factor

logger = logging.getLogger(__name__)

# Perpetuity multiple used when the real return gives no usable yield (4% rule).
PERPETUITY_MULTIPLE = 25


def solve_target(
    profile: Profile,
    cash_flows: CashFlows,
    assumptions: Assumptions,
    events: Iterable[FutureCashEvent] = (),
) -> FireTarget:
    """
    Back-solve the capital needed at the base age to fund retirement.

    Two annuity phases are chained backwards from life expectancy:
    - after pension start: expenses minus pension, ending at the legacy balance;
    - before pension start (bridge period): full expenses.
    Future cash events after the base age are then discounted to the base age
    and netted against the result.
    """
    real = assumptions.real_return
    base_age = max(profile.current_age, profile.target_age)
    pension_start = (
        cash_flows.pension_start_age if cash_flows.pension_start_age is not None else profile.target_age
    )

    gap_with_pension = cash_flows.monthly_expenses - cash_flows.monthly_pension
    gap_no_pension = cash_flows.monthly_expenses

    actual_pension_start = max(base_age, pension_start)
    years_after_pension = max(0.0, profile.life_expectancy - actual_pension_start)
    years_to_pension = max(0.0, pension_start - base_age)

    if gap_with_pension <= 0:
        preservation_target = 0.0
    elif real > 0:
        preservation_target = gap_with_pension * 12 / real
    else:
        preservation_target = gap_with_pension * 12 * PERPETUITY_MULTIPLE
    final_balance = preservation_target * assumptions.preservation_ratio

    at_pension_start = annuity_present_value(real, years_after_pension, gap_with_pension * 12, final_balance)
    fire_number = annuity_present_value(real, years_to_pension, gap_no_pension * 12, at_pension_start)

    adjustment = 0.0
    for event in events:
        # events at or before the base age are already part of current savings
        if event.age > base_age:
            adjustment += event.amount * growth_factor(real, base_age - event.age)
    fire_number = bounded(fire_number - adjustment)

    logger.debug(
        "fire number %.2f at base age %.2f (bridge %.2fy, post-pension %.2fy, events %.2f)",
        fire_number,
        base_age,
        years_to_pension,
        years_after_pension,
        adjustment,
    )
    return FireTarget(
        fire_number=fire_number,
        base_age=base_age,
        monthly_gap_with_pension=gap_with_pension,
        monthly_gap_no_pension=gap_no_pension,
        years_to_pension=years_to_pension,
        years_after_pension=years_after_pension,
        preservation_target=preservation_target,
        final_balance_at_end=final_balance,
        target_at_pension_start=at_pension_start,
        event_adjustment=adjustment,
    )


def compute_fire_number(
    profile: Profile,
    cash_flows: CashFlows,
    assumptions: Assumptions,
    events: Iterable[FutureCashEvent] = (),
) -> float:
    return solve_target(profile, cash_flows, assumptions, events).fire_number
