"""Tests for personal monthly goals and performance logs."""
from datetime import date

import pytest

from services.goals import (
    add_performance_log,
    calculate_progress,
    get_monthly_goal,
    get_performance_logs,
    get_user_performance,
    month_bounds,
    set_monthly_goal,
)


def test_set_goal_inserts_then_updates(storage):
    assert set_monthly_goal(storage, "u1", 3, 2024, 10, 5, 2).success
    assert set_monthly_goal(storage, "u1", 3, 2024, 20, 6, 3).success

    rows = storage.list_entities("monthly_goals")
    assert len(rows) == 1
    assert get_monthly_goal(storage, "u1", 3, 2024)["target_contacts"] == 20
    assert get_monthly_goal(storage, "u1", 4, 2024) is None


def test_logs_are_limited_to_the_month(storage):
    add_performance_log(storage, "u1", 1, 0, 0, entry_date=date(2024, 2, 29))
    add_performance_log(storage, "u1", 2, 1, 0, entry_date=date(2024, 3, 1))
    add_performance_log(storage, "u1", 3, 1, 1, entry_date=date(2024, 3, 31))
    add_performance_log(storage, "u2", 9, 9, 9, entry_date=date(2024, 3, 10))

    logs = get_performance_logs(storage, "u1", 3, 2024)
    assert [log["entry_date"] for log in logs] == ["2024-03-31", "2024-03-01"]


def test_user_performance_sums_logs(storage):
    set_monthly_goal(storage, "u1", 3, 2024, 10, 5, 2)
    add_performance_log(storage, "u1", 2, 1, 0, notes="manhã", entry_date=date(2024, 3, 1))
    add_performance_log(storage, "u1", 3, 1, 1, entry_date=date(2024, 3, 2))

    performance = get_user_performance(storage, "u1", 3, 2024)
    assert performance["goals"]["target_orders"] == 2
    assert performance["realized"] == {"contacts": 5, "quotes": 2, "orders": 1}


def test_user_performance_without_goal(storage):
    performance = get_user_performance(storage, "u9", 1, 2024)
    assert performance == {"goals": None, "realized": {"contacts": 0, "quotes": 0, "orders": 0}}


def test_month_bounds():
    assert month_bounds(2, 2024) == ("2024-02-01", "2024-02-29")


@pytest.mark.parametrize("current, target, expected", [
    (5, 0, (0.0, "gray")),
    (1, 10, (10.0, "red")),
    (3, 10, (30.0, "yellow")),
    (7, 10, (70.0, "blue")),
    (10, 10, (100.0, "green")),
    (25, 10, (100.0, "green")),
])
def test_calculate_progress(current, target, expected):
    percent, color = calculate_progress(current, target)
    assert percent == pytest.approx(expected[0])
    assert color == expected[1]
