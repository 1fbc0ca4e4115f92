import json
from pathlib import Path

from typer.testing import CliRunner

from fire_core.cli import app


runner = CliRunner()


def _write_plan(tmp_path: Path, **overrides) -> Path:
    data = {
        "current_age": 30,
        "target_age": 60,
        "life_expectancy": 90,
        "current_savings": 0,
        "monthly_income": 4_000_000,
        "monthly_contribution": 100_000,
        "monthly_expenses": 2_000_000,
        "monthly_pension": 0,
        "pension_start_age": 60,
        "nominal_return": 0.07,
        "inflation": 0.02,
        "preservation_ratio": 1.0,
    }
    data.update(overrides)
    path = tmp_path / "plan.json"
    path.write_text(json.dumps(data))
    return path


def test_cli_plan_from_options_writes_json(tmp_path: Path):
    out_path = tmp_path / "result.json"
    result = runner.invoke(
        app,
        [
            "plan",
            "--current-age",
            "30",
            "--target-age",
            "60",
            "--life-expectancy",
            "90",
            "--savings",
            "0",
            "--monthly-contribution",
            "1000000",
            "--monthly-expenses",
            "2000000",
            "--nominal-return",
            "7%",
            "--inflation",
            "2%",
            "--out",
            str(out_path),
        ],
    )
    assert result.exit_code == 0, result.stdout
    payload = json.loads(out_path.read_text())
    assert payload["fire_number"] > 0
    assert payload["achieved_age"] == 53.0
    assert payload["status"] == "on_track"
    assert payload["suggestion"] is None
    assert payload["trajectory"][0]["age"] == 30.0


def test_cli_plan_from_config_with_event_and_reports(tmp_path: Path):
    plan_path = _write_plan(tmp_path)
    csv_path = tmp_path / "report.csv"
    saved_path = tmp_path / "saved.json"
    result = runner.invoke(
        app,
        [
            "plan",
            "--config",
            str(plan_path),
            "--event",
            "House:-50000000:65",
            "--csv",
            str(csv_path),
            "--save",
            str(saved_path),
        ],
    )
    assert result.exit_code == 0, result.stdout
    assert "FIRE number" in result.stdout
    assert "Ways to close the gap" in result.stdout
    assert csv_path.exists()
    saved = json.loads(saved_path.read_text())
    assert saved["events"] == [{"name": "House", "amount": -50_000_000.0, "age": 65.0}]


def test_cli_model_option_overrides_config_ratio(tmp_path: Path):
    plan_path = _write_plan(tmp_path, preservation_ratio=1.0)
    saved_path = tmp_path / "saved.json"
    result = runner.invoke(
        app, ["plan", "--config", str(plan_path), "--model", "depletion", "--save", str(saved_path)]
    )
    assert result.exit_code == 0, result.stdout
    assert json.loads(saved_path.read_text())["preservation_ratio"] == 0.0


def test_cli_sweep_writes_csv(tmp_path: Path):
    plan_path = _write_plan(tmp_path)
    out_path = tmp_path / "sweep.csv"
    result = runner.invoke(app, ["sweep", "--config", str(plan_path), "--steps", "5", "--out", str(out_path)])
    assert result.exit_code == 0, result.stdout
    lines = out_path.read_text().strip().splitlines()
    assert lines[0] == "preservation_ratio,fire_number,achieved_age,status"
    assert len(lines) == 6


def test_cli_sweep_prints_table(tmp_path: Path):
    plan_path = _write_plan(tmp_path)
    result = runner.invoke(app, ["sweep", "--config", str(plan_path), "--steps", "3"])
    assert result.exit_code == 0, result.stdout
    assert "Preservation sweep" in result.stdout


def test_cli_export_and_presets(tmp_path: Path):
    plan_path = _write_plan(tmp_path)
    csv_path = tmp_path / "export.csv"
    result = runner.invoke(app, ["export", "--config", str(plan_path), "--out", str(csv_path)])
    assert result.exit_code == 0, result.stdout
    assert csv_path.read_text(encoding="utf-8-sig").startswith("item,value")

    listing = runner.invoke(app, ["presets"])
    assert listing.exit_code == 0
    assert "moderate" in listing.stdout
    assert "depletion" in listing.stdout


def test_cli_rejects_bad_input(tmp_path: Path):
    missing = runner.invoke(app, ["plan", "--config", str(tmp_path / "nope.json")])
    assert missing.exit_code == 2

    bad_event = runner.invoke(app, ["plan", "--event", "just-a-name"])
    assert bad_event.exit_code == 2

    bad_preset = runner.invoke(app, ["plan", "--preset", "yolo"])
    assert bad_preset.exit_code == 2


def test_cli_explains_when_only_remedy_is_too_large_to_show():
    result = runner.invoke(
        app,
        [
            "plan",
            "--current-age",
            "59",
            "--target-age",
            "60",
            "--life-expectancy",
            "90",
            "--savings",
            "1000000",
            "--monthly-contribution",
            "0",
            "--monthly-expenses",
            "2000000",
            "--nominal-return",
            "2%",
            "--inflation",
            "2%",
            "--model",
            "depletion",
        ],
    )
    assert result.exit_code == 0, result.stdout
    assert "Ways to close the gap" in result.stdout
    assert "No single change closes the gap" in result.stdout
