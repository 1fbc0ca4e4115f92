from fire_core.domain.models import (  # noqa: F401
    Assumptions,
    CashFlows,
    FireTarget,
    FutureCashEvent,
    PlanInputs,
    PlanResult,
    Profile,
    Projection,
    Suggestion,
    Trajectory,
    TrajectoryPoint,
)

__all__ = [
    "Assumptions",
    "CashFlows",
    "FireTarget",
    "FutureCashEvent",
    "PlanInputs",
    "PlanResult",
    "Profile",
    "Projection",
    "Suggestion",
    "Trajectory",
    "TrajectoryPoint",
]
