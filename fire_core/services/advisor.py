from __future__ import annotations

import logging
from typing import Optional

from fire_core.domain.models import Profile, Suggestion, Trajectory
from fire_core.services.timevalue import MAX_VALUE, MONTHS_PER_YEAR, bounded, sinking_fund_payment


logger = logging.getLogger(__name__)


def suggest(
    profile: Profile,
    trajectory: Trajectory,
    fire_number: float,
    real_return: float,
    current_savings: Optional[float] = None,
    target_age: Optional[float] = None,
) -> Suggestion:
    """
    Single-lever remedies for a shortfall at the target age.

    - extra_monthly: additional monthly saving that closes the gap by itself;
    - extra_return: additional annual real return (percentage points) that
      closes the gap by itself. The two are alternatives, not additive.
    - achievable_age: first simulated age where the real balance meets the
      target, i.e. the retirement age the current plan supports.

    Callers invoke this only when the target was not achieved by the target
    age and current savings are below the FIRE number.
    """
    if current_savings is None:
        current_savings = profile.current_savings
    if target_age is None:
        target_age = profile.target_age

    extra_monthly = None
    extra_return = None
    years_left = target_age - profile.current_age
    if years_left > 0:
        expected_at_target = trajectory.real_at(target_age)
        shortfall = max(0.0, fire_number - expected_at_target)
        r = real_return / MONTHS_PER_YEAR
        if shortfall > 0 and r > 0:
            extra_monthly = sinking_fund_payment(shortfall, r, years_left * MONTHS_PER_YEAR)
        if 0 < expected_at_target < fire_number:
            try:
                factor = (fire_number / expected_at_target) ** (1 / years_left)
            except OverflowError:
                factor = MAX_VALUE
            extra_return = bounded((factor - 1) * 100)

    suggestion = Suggestion(
        extra_monthly=extra_monthly,
        extra_return=extra_return,
        achievable_age=trajectory.first_age_at_or_above(fire_number),
        never_reached=extra_monthly is None and extra_return is None,
    )
    logger.debug("suggestion for shortfall (savings %.2f vs %.2f): %s", current_savings, fire_number, suggestion)
    return suggestion
