from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from fire_core.domain.models import PlanResult, Suggestion

TRAJECTORY_COLUMNS = ["age", "nominal_balance", "real_balance", "fire_number", "phase"]


def trajectory_frame(result: PlanResult) -> pd.DataFrame:
    target_age = result.inputs.profile.target_age
    rows = [
        {
            "age": p.age,
            "nominal_balance": p.nominal_balance,
            "real_balance": p.real_balance,
            "fire_number": result.fire_number,
            "phase": "accumulation" if p.age < target_age else "retirement",
        }
        for p in result.projection.trajectory
    ]
    return pd.DataFrame(rows, columns=TRAJECTORY_COLUMNS)


def _achievement_text(result: PlanResult) -> str:
    if result.status == "on_track":
        return f"reached at age {result.achieved_age:g}"
    if result.status == "funded":
        return "already funded"
    return f"shortfall at age {result.inputs.profile.target_age:g}"


def summary_rows(result: PlanResult) -> List[Tuple[str, str]]:
    """Key/value rows describing the inputs and outcome of a plan."""
    p = result.inputs.profile
    cf = result.inputs.cash_flows
    a = result.inputs.assumptions
    rows: List[Tuple[str, str]] = [
        ("--- Profile ---", ""),
        ("Current age", f"{p.current_age:.1f}"),
        ("Target retirement age", f"{p.target_age:.1f}"),
        ("Life expectancy", f"{p.life_expectancy:.1f}"),
        ("Current savings", f"{p.current_savings:,.0f}"),
        ("Monthly income", f"{cf.monthly_income:,.0f}"),
        ("Monthly contribution", f"{cf.monthly_contribution:,.0f}"),
        ("Monthly expenses in retirement", f"{cf.monthly_expenses:,.0f}"),
        ("Monthly pension", f"{cf.monthly_pension:,.0f}"),
        ("Pension start age", f"{cf.pension_start_age:.1f}" if cf.pension_start_age is not None else ""),
        ("--- Assumptions ---", ""),
        ("Nominal return", f"{a.nominal_return * 100:.2f}%"),
        ("Inflation", f"{a.inflation * 100:.2f}%"),
        ("Preservation ratio", f"{a.preservation_ratio * 100:.0f}%"),
        ("--- Results ---", ""),
        ("FIRE number", f"{result.display_fire_number:,.0f}"),
        ("Achievement", _achievement_text(result)),
        ("Progress", f"{result.progress:.1f}%"),
        ("Savings rate", f"{result.savings_rate:.1f}%"),
    ]
    if result.inputs.events:
        rows.append(("--- Future cash events ---", ""))
        for e in result.inputs.events:
            label = "[income]" if e.is_income else "[expense]"
            rows.append((f"{label} {e.name}", f"age {e.age:g} | {e.amount:,.0f}"))
    return rows


def export_csv(result: PlanResult, path: str | Path) -> Path:
    """Write the summary block followed by the trajectory table (UTF-8 with BOM)."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    summary = pd.DataFrame(summary_rows(result), columns=["item", "value"])
    with out.open("w", encoding="utf-8-sig", newline="") as f:
        summary.to_csv(f, index=False)
        f.write("\n")
        trajectory_frame(result).to_csv(f, index=False)
    return out


def suggestion_to_json(suggestion: Optional[Suggestion]) -> Optional[Dict[str, Any]]:
    if suggestion is None:
        return None
    payload: Dict[str, Any] = {"never_reached": suggestion.never_reached}
    if suggestion.extra_monthly is not None:
        payload["extra_monthly"] = suggestion.extra_monthly
    if suggestion.extra_return is not None:
        payload["extra_return"] = suggestion.extra_return
    if suggestion.achievable_age is not None:
        payload["achievable_age"] = suggestion.achievable_age
    return payload


def result_to_json(result: PlanResult) -> Dict[str, Any]:
    return {
        "fire_number": result.fire_number,
        "achieved_age": result.achieved_age,
        "status": result.status,
        "progress": result.progress,
        "savings_rate": result.savings_rate,
        "bridge_years": result.bridge_years,
        "suggestion": suggestion_to_json(result.suggestion),
        "trajectory": [
            {"age": p.age, "nominal_balance": p.nominal_balance, "real_balance": p.real_balance}
            for p in result.projection.trajectory
        ],
    }
