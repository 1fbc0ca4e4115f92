from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from fire_core.domain.models import PlanInputs, PlanResult
from fire_core.io import config as config_io
from fire_core.io import export as export_io
from fire_core.services import pipeline

app = typer.Typer(help="FIRE retirement projection CLI.")

# Return remedies above this many percentage points are not worth showing.
MAX_SHOWN_EXTRA_RETURN = 20.0


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


def _save_json(path: Path, payload):
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)


def _parse_event(raw: str) -> Dict[str, Any]:
    """
    Parse NAME:AMOUNT:AGE, e.g. "House:-50000000:65" or "Inheritance:20000000:70".
    """
    parts = raw.rsplit(":", 2)
    if len(parts) != 3:
        raise typer.BadParameter(f"Event must look like NAME:AMOUNT:AGE, got {raw!r}")
    name, amount, age = parts
    try:
        return {"name": name.strip(), "amount": float(amount.replace(",", "")), "age": float(age)}
    except ValueError:
        raise typer.BadParameter(f"Event amount and age must be numbers, got {raw!r}")


def _build_plan(
    config: Optional[Path],
    overrides: Dict[str, Any],
    events: Optional[List[str]],
) -> PlanInputs:
    data: Dict[str, Any] = {}
    if config:
        try:
            data = config_io.read_plan_data(config)
        except (FileNotFoundError, ValueError) as exc:
            raise typer.BadParameter(str(exc))
    if overrides.get("retirement_model") is not None and overrides.get("preservation_ratio") is None:
        data.pop("preservation_ratio", None)
    data.update({k: v for k, v in overrides.items() if v is not None})
    if events:
        data["events"] = list(data.get("events", []) or []) + [_parse_event(e) for e in events]
    try:
        return config_io.plan_from_dict(data)
    except ValueError as exc:
        raise typer.BadParameter(str(exc))


def _money(value: float) -> str:
    return f"{value:,.0f}"


def _print_result(console: Console, result: PlanResult) -> None:
    profile = result.inputs.profile
    cf = result.inputs.cash_flows
    a = result.inputs.assumptions

    console.print("\n[bold cyan]== FIRE Projection ==[/bold cyan]")
    console.print(
        f"Age {profile.current_age:.1f} -> retire {profile.target_age:.1f} -> life expectancy "
        f"{profile.life_expectancy:.1f} | return {a.nominal_return * 100:.1f}%, inflation "
        f"{a.inflation * 100:.1f}%, real {a.real_return * 100:.1f}%"
    )
    console.print(f"FIRE number: [bold]{_money(result.display_fire_number)}[/bold]")
    if result.target.pension_surplus:
        console.print("[green]Pension income covers retirement expenses.[/green]")
    if result.bridge_years > 0:
        console.print(
            f"Bridge period: {result.bridge_years:.1f} years of full expenses before the pension starts."
        )
    console.print(
        f"Savings rate: {result.savings_rate:.1f}% ({_money(cf.monthly_contribution)}/mo) | "
        f"Progress: {result.progress:.1f}%"
    )

    if result.status == "on_track":
        years = result.achieved_age - profile.current_age
        console.print(
            f"[green]Target reached at age {result.achieved_age:g} (in {years:.1f} years).[/green]"
        )
    elif result.status == "funded":
        console.print("[green]Current savings already cover the FIRE number.[/green]")
    else:
        console.print(f"[red]Shortfall expected at age {profile.target_age:.1f}.[/red]")

    s = result.suggestion
    if s is None:
        return
    console.print("\n[bold magenta]Ways to close the gap:[/bold magenta]")
    shown = 0
    if s.extra_monthly is not None:
        shown += 1
        console.print(
            f"- Save {_money(s.extra_monthly)} more per month ({_money(s.extra_monthly * 12)}/yr) "
            f"to retire at {profile.target_age:.1f}."
        )
    if s.extra_return is not None and s.extra_return < MAX_SHOWN_EXTRA_RETURN:
        shown += 1
        console.print(f"- Or earn {s.extra_return:.1f} percentage points more annual return.")
    if s.achievable_age is not None:
        shown += 1
        delay = s.achievable_age - profile.target_age
        style = "[red]" if delay > 10 else ""
        end = "[/red]" if style else ""
        console.print(f"- Or retire at {s.achievable_age:g} instead {style}({delay:.1f} years later){end}.")
    if not shown:
        console.print("- No single change closes the gap; lower the target or retire later.")


@app.command()
def plan(
    config: Optional[Path] = typer.Option(None, help="Plan JSON file"),
    preset: Optional[str] = typer.Option(None, help="Preset: conservative|moderate|aggressive"),
    current_age: Optional[float] = typer.Option(None, help="Current age in years"),
    target_age: Optional[float] = typer.Option(None, help="Target retirement age"),
    life_expectancy: Optional[float] = typer.Option(None, help="Life expectancy"),
    savings: Optional[float] = typer.Option(None, help="Current savings"),
    monthly_income: Optional[float] = typer.Option(None, help="Monthly income"),
    monthly_contribution: Optional[float] = typer.Option(None, help="Monthly contribution while working"),
    monthly_expenses: Optional[float] = typer.Option(None, help="Monthly expenses in retirement (today's money)"),
    monthly_pension: Optional[float] = typer.Option(None, help="Monthly pension income (today's money)"),
    pension_start_age: Optional[float] = typer.Option(None, help="Pension start age (defaults to target age)"),
    nominal_return: Optional[str] = typer.Option(None, help="Annual nominal return, e.g. 0.07, 7 or 7% (1 means 1%)"),
    inflation: Optional[str] = typer.Option(None, help="Annual inflation, e.g. 0.02, 2 or 2% (1 means 1%)"),
    preservation: Optional[str] = typer.Option(None, help="Legacy-preservation ratio 0..1"),
    model: Optional[str] = typer.Option(None, help="Retirement model: preservation|partial|depletion"),
    event: Optional[List[str]] = typer.Option(None, help="Future cash event NAME:AMOUNT:AGE (repeatable)"),
    out: Optional[Path] = typer.Option(None, help="Output path for result JSON"),
    csv: Optional[Path] = typer.Option(None, help="Output path for CSV report"),
    save: Optional[Path] = typer.Option(None, help="Save the normalized plan JSON here"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Compute the FIRE number, project the trajectory and suggest remedies."""
    _configure_logging(verbose)
    overrides = {
        "preset": preset,
        "current_age": current_age,
        "target_age": target_age,
        "life_expectancy": life_expectancy,
        "current_savings": savings,
        "monthly_income": monthly_income,
        "monthly_contribution": monthly_contribution,
        "monthly_expenses": monthly_expenses,
        "monthly_pension": monthly_pension,
        "pension_start_age": pension_start_age,
        "nominal_return": nominal_return,
        "inflation": inflation,
        "preservation_ratio": preservation,
        "retirement_model": model,
    }
    inputs = _build_plan(config, overrides, event)
    result = pipeline.run_plan(inputs)

    if save:
        config_io.save_plan(result.inputs, save)
        typer.echo(f"Plan saved to {save}")
    if csv:
        export_io.export_csv(result, csv)
        typer.echo(f"CSV report written to {csv}")
    if out:
        _save_json(out, export_io.result_to_json(result))
        typer.echo(f"Result written to {out}")
    else:
        _print_result(Console(), result)


@app.command()
def export(
    config: Path = typer.Option(..., help="Plan JSON file"),
    out: Path = typer.Option(..., help="Output CSV path"),
):
    """Write the summary and year-by-year trajectory of a plan to CSV."""
    inputs = _build_plan(config, {}, None)
    result = pipeline.run_plan(inputs)
    export_io.export_csv(result, out)
    typer.echo(f"CSV report written to {out}")


@app.command()
def sweep(
    config: Optional[Path] = typer.Option(None, help="Plan JSON file"),
    steps: int = typer.Option(11, help="Number of preservation ratios between 1.0 and 0.0"),
    out: Optional[Path] = typer.Option(None, help="Output path for sweep CSV"),
):
    """Show how the FIRE number changes with the legacy-preservation ratio."""
    if steps < 2:
        raise typer.BadParameter("steps must be at least 2")
    inputs = _build_plan(config, {}, None)
    frame = pipeline.sweep_preservation(inputs, steps=steps)
    if out:
        out.parent.mkdir(parents=True, exist_ok=True)
        frame.to_csv(out, index=False)
        typer.echo(f"Sweep written to {out}")
        return

    table = Table(title="Preservation sweep")
    table.add_column("Preserve", justify="right")
    table.add_column("FIRE number", justify="right")
    table.add_column("Achieved age", justify="right")
    table.add_column("Status")
    for row in frame.itertuples(index=False):
        achieved = "-" if pd.isna(row.achieved_age) else f"{row.achieved_age:g}"
        table.add_row(f"{row.preservation_ratio * 100:.0f}%", _money(max(0.0, row.fire_number)), achieved, row.status)
    Console().print(table)


@app.command()
def presets():
    """List the built-in input presets and retirement models."""
    table = Table(title="Presets")
    table.add_column("Name")
    table.add_column("Annual income", justify="right")
    table.add_column("Annual contribution", justify="right")
    table.add_column("Monthly expenses", justify="right")
    table.add_column("Return", justify="right")
    for name, values in config_io.PRESETS.items():
        table.add_row(
            name,
            _money(values["annual_income"]),
            _money(values["annual_contribution"]),
            _money(values["monthly_expenses"]),
            f"{values['nominal_return'] * 100:.1f}%",
        )
    console = Console()
    console.print(table)
    models = ", ".join(f"{k} ({v * 100:.0f}%)" for k, v in config_io.PRESERVATION_MODELS.items())
    console.print(f"Retirement models: {models}")


if __name__ == "__main__":
    app()
