import pytest

from fire_core.domain.models import Assumptions, CashFlows, Profile, Trajectory, TrajectoryPoint
from fire_core.services.advisor import suggest
from fire_core.services.projector import simulate
from fire_core.services.target import compute_fire_number


def _annuity_factor(monthly_rate: float, months: int) -> float:
    return ((1 + monthly_rate) ** months - 1) / monthly_rate


def _underfunded():
    profile = Profile(current_age=30.0, target_age=60.0, life_expectancy=90.0, current_savings=0.0)
    cash_flows = CashFlows(monthly_contribution=100_000.0, monthly_expenses=2_000_000.0, pension_start_age=60.0)
    assumptions = Assumptions(nominal_return=0.07, inflation=0.02, preservation_ratio=1.0)
    fire_number = compute_fire_number(profile, cash_flows, assumptions)
    projection = simulate(profile, cash_flows, assumptions, [], fire_number)
    return profile, cash_flows, assumptions, fire_number, projection


def test_extra_monthly_closes_the_gap_by_itself():
    profile, cash_flows, assumptions, fire_number, projection = _underfunded()
    assert projection.achieved_age is None

    s = suggest(profile, projection.trajectory, fire_number, assumptions.real_return)
    assert s.extra_monthly is not None and s.extra_monthly > 0
    assert not s.never_reached
    assert s.has_remedy

    factor = _annuity_factor(assumptions.real_return / 12, 360)
    assert (cash_flows.monthly_contribution + s.extra_monthly) * factor == pytest.approx(fire_number, rel=1e-9)


def test_extra_return_is_an_independent_alternative():
    profile, _, assumptions, fire_number, projection = _underfunded()
    s = suggest(profile, projection.trajectory, fire_number, assumptions.real_return)

    expected_at_target = projection.trajectory.real_at(60.0)
    assert 0 < expected_at_target < fire_number
    assert s.extra_return == pytest.approx(((fire_number / expected_at_target) ** (1 / 30) - 1) * 100)
    assert expected_at_target * (1 + s.extra_return / 100) ** 30 == pytest.approx(fire_number)


def test_no_years_left_means_no_remedy():
    profile = Profile(current_age=65.0, target_age=65.0, life_expectancy=90.0, current_savings=1_000.0)
    trajectory = Trajectory(points=(TrajectoryPoint(age=65.0, nominal_balance=1_000.0, real_balance=1_000.0),))
    s = suggest(profile, trajectory, 1_000_000.0, 0.05)
    assert s.extra_monthly is None
    assert s.extra_return is None
    assert s.never_reached
    assert not s.has_remedy


def test_non_positive_real_return_and_empty_balance_is_never_reached():
    profile = Profile(current_age=30.0, target_age=60.0, life_expectancy=90.0)
    assumptions = Assumptions(nominal_return=0.01, inflation=0.03)
    projection = simulate(profile, CashFlows(monthly_expenses=1_000.0), assumptions, [], 500_000.0)
    s = suggest(profile, projection.trajectory, 500_000.0, assumptions.real_return)
    assert s.extra_monthly is None
    assert s.extra_return is None
    assert s.never_reached
    assert s.achievable_age is None


def test_target_age_missing_from_trajectory_counts_as_empty():
    profile = Profile(current_age=30.0, target_age=59.5, life_expectancy=90.0)
    points = tuple(TrajectoryPoint(age=float(a), nominal_balance=10_000.0, real_balance=10_000.0) for a in range(30, 101))
    s = suggest(profile, Trajectory(points=points), 100_000.0, 0.05)
    assert s.extra_return is None
    r = 0.05 / 12
    assert s.extra_monthly == pytest.approx(100_000.0 * r / ((1 + r) ** (29.5 * 12) - 1))


def test_achievable_age_reports_later_crossover():
    points = tuple(
        TrajectoryPoint(age=float(a), nominal_balance=0.0, real_balance=1_000.0 * (a - 30)) for a in range(30, 101)
    )
    profile = Profile(current_age=30.0, target_age=40.0, life_expectancy=90.0)
    s = suggest(profile, Trajectory(points=points), 25_000.0, 0.04)
    assert s.achievable_age == 55.0
    assert s.extra_monthly is not None
    assert s.extra_return is not None
