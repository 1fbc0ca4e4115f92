from __future__ import annotations

import dataclasses
import math
from typing import List, Optional, Tuple


@dataclasses.dataclass(frozen=True)
class Profile:
    current_age: float
    target_age: float
    life_expectancy: float
    current_savings: float = 0.0

    @property
    def already_retired(self) -> bool:
        return self.current_age >= self.target_age


@dataclasses.dataclass(frozen=True)
class CashFlows:
    monthly_income: float = 0.0
    monthly_contribution: float = 0.0
    monthly_expenses: float = 0.0
    monthly_pension: float = 0.0
    pension_start_age: Optional[float] = None

    @classmethod
    def from_annual(
        cls,
        annual_income: float = 0.0,
        annual_contribution: float = 0.0,
        monthly_expenses: float = 0.0,
        monthly_pension: float = 0.0,
        pension_start_age: Optional[float] = None,
    ) -> "CashFlows":
        return cls(
            monthly_income=annual_income / 12,
            monthly_contribution=annual_contribution / 12,
            monthly_expenses=monthly_expenses,
            monthly_pension=monthly_pension,
            pension_start_age=pension_start_age,
        )

    @property
    def savings_rate(self) -> float:
        """Contribution as a percentage of income (0 when there is no income)."""
        if self.monthly_income <= 0:
            return 0.0
        return self.monthly_contribution / self.monthly_income * 100


@dataclasses.dataclass(frozen=True)
class Assumptions:
    nominal_return: float = 0.07
    inflation: float = 0.02
    preservation_ratio: float = 1.0  # 0..1

    @property
    def real_return(self) -> float:
        return self.nominal_return - self.inflation


@dataclasses.dataclass(frozen=True)
class FutureCashEvent:
    name: str
    amount: float  # positive = windfall, negative = planned expense
    age: float

    @property
    def is_income(self) -> bool:
        return self.amount > 0


@dataclasses.dataclass(frozen=True)
class PlanInputs:
    profile: Profile
    cash_flows: CashFlows
    assumptions: Assumptions
    events: Tuple[FutureCashEvent, ...] = ()


@dataclasses.dataclass(frozen=True)
class TrajectoryPoint:
    age: float
    nominal_balance: float
    real_balance: float


@dataclasses.dataclass(frozen=True)
class Trajectory:
    points: Tuple[TrajectoryPoint, ...]

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self):
        return iter(self.points)

    @property
    def ages(self) -> List[float]:
        return [p.age for p in self.points]

    def real_at(self, age: float) -> float:
        for p in self.points:
            if math.isclose(p.age, age, abs_tol=1e-9):
                return p.real_balance
        return 0.0

    def first_age_at_or_above(self, threshold: float) -> Optional[float]:
        for p in self.points:
            if p.real_balance >= threshold:
                return p.age
        return None

    def to_timeseries(self) -> List[Tuple[float, float, float]]:
        return [(p.age, p.nominal_balance, p.real_balance) for p in self.points]


@dataclasses.dataclass(frozen=True)
class FireTarget:
    fire_number: float
    base_age: float
    monthly_gap_with_pension: float  # signed: negative means pension surplus
    monthly_gap_no_pension: float
    years_to_pension: float
    years_after_pension: float
    preservation_target: float
    final_balance_at_end: float
    target_at_pension_start: float
    event_adjustment: float = 0.0

    @property
    def pension_surplus(self) -> bool:
        return self.monthly_gap_with_pension < 0


@dataclasses.dataclass(frozen=True)
class Projection:
    trajectory: Trajectory
    achieved_age: Optional[float] = None


@dataclasses.dataclass(frozen=True)
class Suggestion:
    extra_monthly: Optional[float] = None
    extra_return: Optional[float] = None  # percentage points
    achievable_age: Optional[float] = None
    never_reached: bool = False

    @property
    def has_remedy(self) -> bool:
        return self.extra_monthly is not None or self.extra_return is not None


@dataclasses.dataclass(frozen=True)
class PlanResult:
    inputs: PlanInputs
    target: FireTarget
    projection: Projection
    suggestion: Optional[Suggestion]
    savings_rate: float
    progress: float
    bridge_years: float
    status: str  # "on_track" | "funded" | "shortfall"

    @property
    def fire_number(self) -> float:
        return self.target.fire_number

    @property
    def display_fire_number(self) -> float:
        return max(0.0, self.target.fire_number)

    @property
    def achieved_age(self) -> Optional[float]:
        return self.projection.achieved_age
