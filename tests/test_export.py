from pathlib import Path

from fire_core.domain.models import Assumptions, CashFlows, FutureCashEvent, PlanInputs, Profile
from fire_core.io.export import TRAJECTORY_COLUMNS, export_csv, result_to_json, summary_rows, trajectory_frame
from fire_core.services.pipeline import run_plan


def _result(contribution: float = 100_000.0):
    plan = PlanInputs(
        profile=Profile(current_age=30.0, target_age=60.0, life_expectancy=90.0, current_savings=5_000_000.0),
        cash_flows=CashFlows(monthly_income=400_000.0, monthly_contribution=contribution, monthly_expenses=2_000_000.0),
        assumptions=Assumptions(nominal_return=0.07, inflation=0.02, preservation_ratio=0.5),
        events=(FutureCashEvent(name="House", amount=-50_000_000.0, age=65.0),),
    )
    return run_plan(plan)


def test_trajectory_frame_has_one_row_per_year():
    result = _result()
    frame = trajectory_frame(result)
    assert list(frame.columns) == TRAJECTORY_COLUMNS
    assert len(frame) == len(result.projection.trajectory)
    assert frame["age"].iloc[0] == 30.0
    assert frame["age"].iloc[-1] == 100.0
    assert set(frame["phase"]) == {"accumulation", "retirement"}
    assert (frame["real_balance"] >= 0).all()


def test_summary_lists_events_and_results():
    labels = [label for label, _ in summary_rows(_result())]
    assert "FIRE number" in labels
    assert "--- Future cash events ---" in labels
    assert "[expense] House" in labels


def test_export_csv_writes_summary_and_trajectory(tmp_path: Path):
    out = export_csv(_result(), tmp_path / "reports" / "plan.csv")
    raw = out.read_bytes()
    assert raw.startswith(b"\xef\xbb\xbf")
    text = raw.decode("utf-8-sig")
    assert text.startswith("item,value")
    assert "age,nominal_balance,real_balance,fire_number,phase" in text


def test_result_json_follows_output_contract():
    payload = result_to_json(_result())
    assert set(payload) >= {"fire_number", "achieved_age", "trajectory", "suggestion"}
    assert payload["achieved_age"] is None
    assert payload["suggestion"]["never_reached"] is False
    assert "extra_monthly" in payload["suggestion"]
    first = payload["trajectory"][0]
    assert set(first) == {"age", "nominal_balance", "real_balance"}
