from __future__ import annotations

import dataclasses
import logging
import math
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from fire_core.domain.models import (
    Assumptions,
    CashFlows,
    FutureCashEvent,
    PlanInputs,
    PlanResult,
    Profile,
)
from fire_core.services import advisor, projector, target as target_service

logger = logging.getLogger(__name__)


def _finite(value, floor: Optional[float] = None) -> float:
    try:
        val = float(value)
    except (TypeError, ValueError):
        val = 0.0
    if not math.isfinite(val):
        val = 0.0
    if floor is not None:
        val = max(val, floor)
    return val


def normalize_plan(inputs: PlanInputs) -> PlanInputs:
    """
    Coerce a plan into the ranges the engine expects instead of rejecting it.

    Non-numeric or non-finite values become 0, money amounts are floored at 0,
    the target age floors at the current age, life expectancy floors at the
    target age, a missing pension start falls back to the target age and the
    preservation ratio is clamped to [0, 1].
    """
    p = inputs.profile
    current_age = _finite(p.current_age, 0.0)
    target_age = _finite(p.target_age, current_age)
    life_expectancy = _finite(p.life_expectancy, target_age)
    profile = Profile(
        current_age=current_age,
        target_age=target_age,
        life_expectancy=life_expectancy,
        current_savings=_finite(p.current_savings, 0.0),
    )

    cf = inputs.cash_flows
    pension_start = target_age if cf.pension_start_age is None else _finite(cf.pension_start_age, 0.0)
    cash_flows = CashFlows(
        monthly_income=_finite(cf.monthly_income, 0.0),
        monthly_contribution=_finite(cf.monthly_contribution, 0.0),
        monthly_expenses=_finite(cf.monthly_expenses, 0.0),
        monthly_pension=_finite(cf.monthly_pension, 0.0),
        pension_start_age=pension_start,
    )

    a = inputs.assumptions
    assumptions = Assumptions(
        nominal_return=_finite(a.nominal_return),
        inflation=_finite(a.inflation),
        preservation_ratio=min(1.0, _finite(a.preservation_ratio, 0.0)),
    )

    events = tuple(
        FutureCashEvent(name=str(e.name or ""), amount=_finite(e.amount), age=_finite(e.age))
        for e in inputs.events
    )
    return PlanInputs(profile=profile, cash_flows=cash_flows, assumptions=assumptions, events=events)


def run_plan(inputs: PlanInputs) -> PlanResult:
    """Full recomputation: target -> projection -> advice -> report values."""
    inputs = normalize_plan(inputs)
    profile, cash_flows, assumptions = inputs.profile, inputs.cash_flows, inputs.assumptions

    fire_target = target_service.solve_target(profile, cash_flows, assumptions, inputs.events)
    fire_number = fire_target.fire_number
    projection = projector.simulate(profile, cash_flows, assumptions, inputs.events, fire_number)

    achieved = projection.achieved_age
    suggestion = None
    if (achieved is None or achieved > profile.target_age) and profile.current_savings < fire_number:
        suggestion = advisor.suggest(
            profile,
            projection.trajectory,
            fire_number,
            assumptions.real_return,
            current_savings=profile.current_savings,
            target_age=profile.target_age,
        )

    if achieved is not None:
        status = "on_track"
    elif profile.current_savings >= fire_number:
        status = "funded"
    else:
        status = "shortfall"

    progress = min(profile.current_savings / fire_number * 100, 100.0) if fire_number > 0 else 0.0
    bridge_years = max(0.0, cash_flows.pension_start_age - profile.target_age)

    logger.info("plan status=%s fire_number=%.0f achieved_age=%s", status, fire_number, achieved)
    return PlanResult(
        inputs=inputs,
        target=fire_target,
        projection=projection,
        suggestion=suggestion,
        savings_rate=cash_flows.savings_rate,
        progress=progress,
        bridge_years=bridge_years,
        status=status,
    )


def sweep_preservation(
    inputs: PlanInputs, ratios: Optional[Iterable[float]] = None, steps: int = 11
) -> pd.DataFrame:
    """
    Re-run the plan over a grid of legacy-preservation ratios.

    Without explicit ratios the grid runs from 1.0 down to 0.0 in `steps` points.
    """
    if ratios is None:
        ratios = np.linspace(1.0, 0.0, steps)

    rows = []
    for ratio in ratios:
        variant = dataclasses.replace(
            inputs,
            assumptions=dataclasses.replace(inputs.assumptions, preservation_ratio=float(ratio)),
        )
        result = run_plan(variant)
        rows.append(
            {
                "preservation_ratio": float(ratio),
                "fire_number": result.fire_number,
                "achieved_age": result.achieved_age,
                "status": result.status,
            }
        )
    return pd.DataFrame(rows, columns=["preservation_ratio", "fire_number", "achieved_age", "status"])
