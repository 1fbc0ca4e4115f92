from __future__ import annotations

import dataclasses
import datetime as dt
import json
import math
import re
from pathlib import Path
from typing import Any, Dict, Optional

from fire_core.domain.models import Assumptions, CashFlows, FutureCashEvent, PlanInputs, Profile

DEFAULT_CURRENT_AGE = 50.0
DEFAULT_TARGET_AGE = 62.0
DEFAULT_LIFE_EXPECTANCY = 95.0
DEFAULT_NOMINAL_RETURN = 0.07
DEFAULT_INFLATION = 0.02

PRESERVATION_MODELS = {
    "preservation": 1.0,
    "partial": 0.5,
    "depletion": 0.0,
}

# annual income, annual contribution, monthly expenses, nominal return
PRESETS: Dict[str, Dict[str, float]] = {
    "conservative": {
        "annual_income": 6_000_000,
        "annual_contribution": 750_000,
        "monthly_expenses": 3_000_000,
        "nominal_return": 0.06,
    },
    "moderate": {
        "annual_income": 7_200_000,
        "annual_contribution": 1_500_000,
        "monthly_expenses": 4_000_000,
        "nominal_return": 0.07,
    },
    "aggressive": {
        "annual_income": 8_400_000,
        "annual_contribution": 3_500_000,
        "monthly_expenses": 5_000_000,
        "nominal_return": 0.07,
    },
}

_YEAR_MONTH = re.compile(r"^(\d{4})-(\d{2})$")


def parse_amount(raw: Any, default: float = 0.0) -> float:
    """
    Parse a money/number value. Accepts numbers and strings with thousands
    separators ("1,200,000"). Anything unparseable or non-finite becomes
    `default`.
    """
    if raw is None:
        return default
    if isinstance(raw, str):
        txt = raw.strip().replace(",", "")
        if not txt:
            return default
    else:
        txt = raw
    try:
        val = float(txt)
    except (TypeError, ValueError):
        return default
    return val if math.isfinite(val) else default


def parse_rate(raw: Any, default: float = 0.0, whole_percent: bool = False) -> float:
    """
    Parse a rate that may contain a percent sign or plain float.
    Accepts 0.07, "0.07", "7%", or "7" (treated as 7%).

    With `whole_percent`, 1 itself reads as 1% rather than 100%; returns and
    inflation use this, ratios where 1 means "all of it" do not.
    """
    if isinstance(raw, str) and raw.strip().endswith("%"):
        return parse_amount(raw.strip()[:-1], default * 100) / 100.0
    val = parse_amount(raw, default)
    if abs(val) > 1 or (whole_percent and abs(val) == 1):
        return val / 100.0
    return val


def age_between(start: Optional[str], end: Optional[str]) -> Optional[float]:
    """Years between two YYYY-MM strings, or None if either is malformed."""
    if not start or not end:
        return None
    m1 = _YEAR_MONTH.match(str(start).strip())
    m2 = _YEAR_MONTH.match(str(end).strip())
    if not m1 or not m2:
        return None
    y1, mo1 = int(m1.group(1)), int(m1.group(2))
    y2, mo2 = int(m2.group(1)), int(m2.group(2))
    return (y2 - y1) + (mo2 - mo1) / 12


def age_from_birth(birth: Optional[str], today: Optional[dt.date] = None) -> Optional[float]:
    today = today or dt.date.today()
    return age_between(birth, f"{today.year:04d}-{today.month:02d}")


def apply_preset(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Return `data` layered over the named preset (explicit keys win)."""
    key = name.strip().lower()
    if key not in PRESETS:
        raise ValueError(f"Unknown preset: {name!r} (expected one of {sorted(PRESETS)})")
    merged: Dict[str, Any] = dict(PRESETS[key])
    merged.update({k: v for k, v in data.items() if k != "preset"})
    return merged


def _preservation_ratio(data: Dict[str, Any]) -> float:
    model = data.get("retirement_model")
    if model is not None and "preservation_ratio" not in data:
        key = str(model).strip().lower()
        if key not in PRESERVATION_MODELS:
            raise ValueError(f"Unknown retirement model: {model!r} (expected one of {sorted(PRESERVATION_MODELS)})")
        return PRESERVATION_MODELS[key]
    ratio = parse_rate(data.get("preservation_ratio"), 1.0)
    return min(1.0, max(0.0, ratio))


def _event_from_dict(item: Dict[str, Any]) -> FutureCashEvent:
    amount = parse_amount(item.get("amount"))
    if str(item.get("type", "")).lower() == "expense":
        amount = -abs(amount)
    name = item.get("name") or ("Other income" if amount > 0 else "Other expense")
    return FutureCashEvent(name=str(name), amount=amount, age=parse_amount(item.get("age")))


def plan_from_dict(data: Dict[str, Any], today: Optional[dt.date] = None) -> PlanInputs:
    if not isinstance(data, dict):
        raise ValueError("Plan must be a JSON object")
    if data.get("preset"):
        data = apply_preset(data, str(data["preset"]))

    birth = data.get("birth_date")
    current_age = parse_amount(data.get("current_age"), 0.0) or age_from_birth(birth, today) or DEFAULT_CURRENT_AGE
    target_age = (
        parse_amount(data.get("target_age"), 0.0)
        or age_between(birth, data.get("retirement_date"))
        or DEFAULT_TARGET_AGE
    )
    life_expectancy = max(target_age, parse_amount(data.get("life_expectancy"), 0.0) or DEFAULT_LIFE_EXPECTANCY)

    pension_start_age = None
    if data.get("pension_start_age") is not None:
        pension_start_age = parse_amount(data.get("pension_start_age"), target_age)
    elif data.get("pension_start_date"):
        pension_start_age = age_between(birth, data.get("pension_start_date"))

    profile = Profile(
        current_age=current_age,
        target_age=target_age,
        life_expectancy=life_expectancy,
        current_savings=parse_amount(data.get("current_savings")),
    )
    # annual figures are the form's inputs; explicit monthly keys win
    cash_flows = CashFlows.from_annual(
        annual_income=parse_amount(data.get("annual_income")),
        annual_contribution=parse_amount(data.get("annual_contribution")),
        monthly_expenses=parse_amount(data.get("monthly_expenses")),
        monthly_pension=parse_amount(data.get("monthly_pension")),
        pension_start_age=pension_start_age,
    )
    monthly = {key: parse_amount(data.get(key)) for key in ("monthly_income", "monthly_contribution") if key in data}
    if monthly:
        cash_flows = dataclasses.replace(cash_flows, **monthly)
    assumptions = Assumptions(
        nominal_return=parse_rate(data.get("nominal_return"), DEFAULT_NOMINAL_RETURN, whole_percent=True),
        inflation=parse_rate(data.get("inflation"), DEFAULT_INFLATION, whole_percent=True),
        preservation_ratio=_preservation_ratio(data),
    )
    events = tuple(_event_from_dict(item) for item in data.get("events", []) or [] if isinstance(item, dict))
    return PlanInputs(profile=profile, cash_flows=cash_flows, assumptions=assumptions, events=events)


def plan_to_dict(inputs: PlanInputs) -> Dict[str, Any]:
    p, cf, a = inputs.profile, inputs.cash_flows, inputs.assumptions
    return {
        "current_age": p.current_age,
        "target_age": p.target_age,
        "life_expectancy": p.life_expectancy,
        "current_savings": p.current_savings,
        "monthly_income": cf.monthly_income,
        "monthly_contribution": cf.monthly_contribution,
        "monthly_expenses": cf.monthly_expenses,
        "monthly_pension": cf.monthly_pension,
        "pension_start_age": cf.pension_start_age,
        "nominal_return": a.nominal_return,
        "inflation": a.inflation,
        "preservation_ratio": a.preservation_ratio,
        "events": [{"name": e.name, "amount": e.amount, "age": e.age} for e in inputs.events],
    }


def load_plan(path: str | Path, today: Optional[dt.date] = None) -> PlanInputs:
    return plan_from_dict(read_plan_data(path), today=today)


def save_plan(inputs: PlanInputs, path: str | Path) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", encoding="utf-8") as f:
        json.dump(plan_to_dict(inputs), f, indent=2)
    return out


def read_plan_data(path: str | Path) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)
    with p.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid plan file {p}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Plan file {p} must contain a JSON object")
    return data
