"""Tests for the channel ranking and totals."""
from datetime import date

import pytest

from services.sales_calculations import (
    UserEntry,
    calculate_channel,
    days_and_weeks_remaining,
    ranking_to_dataframe,
)

MID_MONTH = date(2024, 3, 15)


def entry(id, goal, realized, open_orders=0, name=None):
    return UserEntry(id=id, name=name or id, code="", sector="Consumo",
                     monthly_goal=goal, realized_amount=realized, open_orders_amount=open_orders)


def test_days_and_weeks_remaining_mid_month():
    # March has 31 days: 15th through 31st inclusive
    assert days_and_weeks_remaining(MID_MONTH) == (17, 3)


def test_days_and_weeks_remaining_last_day_is_at_least_one():
    assert days_and_weeks_remaining(date(2024, 2, 29)) == (1, 1)


def test_days_and_weeks_remaining_first_day():
    assert days_and_weeks_remaining(date(2023, 2, 1)) == (28, 4)


def test_example_ranking_and_totals():
    entries = [entry("a", 1000, 500), entry("b", 2000, 1900)]
    ranked, totals = calculate_channel(entries, today=MID_MONTH)

    assert [u.id for u in ranked] == ["b", "a"]
    assert ranked[0].percent_realized == pytest.approx(95)
    assert ranked[1].percent_realized == pytest.approx(50)
    assert totals.realized_amount == 2400
    assert totals.meta_total == 3000
    assert totals.percent_total == pytest.approx(80)


def test_zero_goal_gives_zero_percent():
    ranked, totals = calculate_channel([entry("z", 0, 100, open_orders=50)], today=MID_MONTH)
    user = ranked[0]
    assert user.percent_realized == 0
    assert user.percent_of_goal_including_open_orders == 0
    assert user.remaining_goal_amount == 0
    assert totals.percent_total == 0


def test_derived_fields():
    ranked, _ = calculate_channel([entry("x", 1700, 0, open_orders=300)], today=MID_MONTH)
    user = ranked[0]
    assert user.remaining_goal_amount == 1700
    assert user.per_day_amount == pytest.approx(100)  # 17 days left
    assert user.per_week_amount == pytest.approx(1700 / 3)
    assert user.invoiced_plus_open == 300
    assert user.percent_of_goal_including_open_orders == pytest.approx(300 / 1700 * 100)


def test_over_goal_clamps_remaining_to_zero():
    ranked, _ = calculate_channel([entry("x", 100, 250)], today=MID_MONTH)
    assert ranked[0].remaining_goal_amount == 0
    assert ranked[0].per_day_amount == 0
    assert ranked[0].percent_realized == pytest.approx(250)


def test_negative_realized_is_accepted():
    ranked, totals = calculate_channel([entry("neg", 100, -50)], today=MID_MONTH)
    assert ranked[0].percent_realized == pytest.approx(-50)
    assert ranked[0].remaining_goal_amount == 150
    assert totals.realized_amount == -50


def test_ties_keep_input_order():
    entries = [entry("first", 100, 50), entry("top", 100, 90), entry("second", 200, 100), entry("third", 0, 0),
               entry("fourth", 0, 10)]
    ranked, _ = calculate_channel(entries, today=MID_MONTH)
    assert [u.id for u in ranked] == ["top", "first", "second", "third", "fourth"]


@pytest.mark.parametrize("entries", [
    [entry("a", 1000, 500), entry("b", 2000, 1900), entry("c", 0, 10)],
    [entry("a", 50, -5), entry("b", 10, 10), entry("c", 300, 1)],
    [entry("solo", 10, 3)],
])
def test_ranking_invariants(entries):
    ranked, totals = calculate_channel(entries, today=MID_MONTH)

    percents = [u.percent_realized for u in ranked]
    assert percents == sorted(percents, reverse=True)
    assert all(u.remaining_goal_amount >= 0 for u in ranked)
    assert totals.realized_amount == pytest.approx(sum(e.realized_amount for e in entries))
    assert totals.meta_total == pytest.approx(sum(e.monthly_goal for e in entries))


def test_same_day_is_idempotent():
    entries = [entry("a", 1000, 500), entry("b", 2000, 1900)]
    assert calculate_channel(entries, today=MID_MONTH) == calculate_channel(entries, today=MID_MONTH)


def test_input_entries_are_not_modified():
    entries = [entry("a", 1000, 500)]
    calculate_channel(entries, today=MID_MONTH)
    assert entries == [entry("a", 1000, 500)]


def test_empty_channel():
    ranked, totals = calculate_channel([], today=MID_MONTH)
    assert ranked == []
    assert totals.meta_total == 0
    assert totals.percent_total == 0


def test_ranking_dataframe_has_positions_and_total_row():
    ranked, totals = calculate_channel([entry("a", 1000, 500, name="Ana"), entry("b", 2000, 1900, name="Bia")],
                                       today=MID_MONTH)
    df = ranking_to_dataframe(ranked, totals)

    assert list(df["Nome"]) == ["Bia", "Ana", "Total"]
    assert list(df["#"][:2]) == [1, 2]
    assert df.iloc[-1]["Realizado"] == 2400
    assert df.iloc[-1]["% Realizado"] == pytest.approx(80)
