from fire_core.services.advisor import suggest  # noqa: F401
from fire_core.services.pipeline import normalize_plan, run_plan, sweep_preservation  # noqa: F401
from fire_core.services.projector import simulate  # noqa: F401
from fire_core.services.target import compute_fire_number, solve_target  # noqa: F401
from fire_core.services.timevalue import annuity_present_value  # noqa: F401

__all__ = [
    "annuity_present_value",
    "compute_fire_number",
    "solve_target",
    "simulate",
    "suggest",
    "normalize_plan",
    "run_plan",
    "sweep_preservation",
]
