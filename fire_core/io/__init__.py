from fire_core.io.config import (  # noqa: F401
    load_plan,
    plan_from_dict,
    plan_to_dict,
    save_plan,
)
from fire_core.io.export import export_csv, result_to_json, trajectory_frame  # noqa: F401

__all__ = [
    "load_plan",
    "plan_from_dict",
    "plan_to_dict",
    "save_plan",
    "export_csv",
    "result_to_json",
    "trajectory_frame",
]
