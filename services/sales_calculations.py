# portal_vendas/services/sales_calculations.py
"""
Per-salesperson goal metrics and channel totals for the sales & billing board.

Everything here is pure arithmetic over the entries handed in; nothing touches
storage. The only outside input is the calendar date used for the remaining
days/weeks projection.
"""
import math
import calendar
from dataclasses import dataclass, asdict
from datetime import date
from typing import List, Optional, Tuple, Union

import pandas as pd

CHANNEL_NAMES = ("Consumo", "Revenda", "Cozinhas Industriais")


@dataclass
class UserEntry:
    id: str
    name: str
    code: Union[int, str]
    sector: str
    monthly_goal: float
    realized_amount: float
    open_orders_amount: float


@dataclass
class CalculatedUser(UserEntry):
    percent_realized: float = 0.0
    remaining_goal_amount: float = 0.0
    per_day_amount: float = 0.0
    per_week_amount: float = 0.0
    invoiced_plus_open: float = 0.0
    percent_of_goal_including_open_orders: float = 0.0


@dataclass
class ChannelTotals:
    meta_total: float = 0.0
    realized_amount: float = 0.0
    open_orders_amount: float = 0.0
    invoiced_plus_open: float = 0.0
    remaining_goal_amount: float = 0.0
    per_day_amount: float = 0.0
    per_week_amount: float = 0.0
    percent_total: float = 0.0


def days_and_weeks_remaining(today: Optional[date] = None) -> Tuple[int, int]:
    """
    Days left in the month of `today` (today included) and the weeks they span.
    Both are at least 1 so the per-day/per-week split never divides by zero.
    """
    today = today or date.today()
    last_day = calendar.monthrange(today.year, today.month)[1]
    days = max(1, last_day - today.day + 1)
    weeks = max(1, math.ceil(days / 7))
    return days, weeks


def _percent(part, whole):
    return (part / whole) * 100 if whole > 0 else 0.0


def calculate_user(entry: UserEntry, days: int, weeks: int) -> CalculatedUser:
    remaining = max(0, entry.monthly_goal - entry.realized_amount)
    invoiced_plus_open = entry.realized_amount + entry.open_orders_amount
    return CalculatedUser(
        **asdict(entry),
        percent_realized=_percent(entry.realized_amount, entry.monthly_goal),
        remaining_goal_amount=remaining,
        per_day_amount=remaining / days,
        per_week_amount=remaining / weeks,
        invoiced_plus_open=invoiced_plus_open,
        percent_of_goal_including_open_orders=_percent(invoiced_plus_open, entry.monthly_goal),
    )


def calculate_channel(entries: List[UserEntry], today: Optional[date] = None) -> Tuple[List[CalculatedUser], ChannelTotals]:
    """
    Ranks a channel's salespeople by percent of goal realized and sums the channel.

    :param entries: The channel's UserEntry rows for one period.
    :param today: Reference date for the remaining days/weeks. Defaults to the wall clock.
    :return: (ranked users, highest percent first; channel totals)
    """
    days, weeks = days_and_weeks_remaining(today)
    calculated = [calculate_user(entry, days, weeks) for entry in entries]
    # sorted() is stable, so ties keep the order they were entered in
    ranked = sorted(calculated, key=lambda user: user.percent_realized, reverse=True)

    totals = ChannelTotals()
    for user in ranked:
        totals.meta_total += user.monthly_goal
        totals.realized_amount += user.realized_amount
        totals.open_orders_amount += user.open_orders_amount
        totals.invoiced_plus_open += user.invoiced_plus_open
        totals.remaining_goal_amount += user.remaining_goal_amount
        totals.per_day_amount += user.per_day_amount
        totals.per_week_amount += user.per_week_amount
    totals.percent_total = _percent(totals.realized_amount, totals.meta_total)

    return ranked, totals


RANKING_COLUMNS = {
    "name": "Nome",
    "code": "Código",
    "monthly_goal": "Meta Mensal",
    "realized_amount": "Realizado",
    "percent_realized": "% Realizado",
    "remaining_goal_amount": "Meta Restante",
    "per_day_amount": "Valor/Dia",
    "per_week_amount": "Valor/Semana",
    "open_orders_amount": "Pedidos em Aberto",
    "invoiced_plus_open": "Faturados + Abertos",
    "percent_of_goal_including_open_orders": "% Total c/ Pedidos",
}


def ranking_to_dataframe(ranked: List[CalculatedUser], totals: ChannelTotals) -> pd.DataFrame:
    """Ranking table with a 1-based position column and a trailing 'Total' row."""
    rows = [{key: getattr(user, key) for key in RANKING_COLUMNS} for user in ranked]
    df = pd.DataFrame(rows, columns=list(RANKING_COLUMNS))
    df.insert(0, "position", range(1, len(df) + 1))

    total_row = {
        "position": None,
        "name": "Total",
        "code": "",
        "monthly_goal": totals.meta_total,
        "realized_amount": totals.realized_amount,
        "percent_realized": totals.percent_total,
        "remaining_goal_amount": totals.remaining_goal_amount,
        "per_day_amount": totals.per_day_amount,
        "per_week_amount": totals.per_week_amount,
        "open_orders_amount": totals.open_orders_amount,
        "invoiced_plus_open": totals.invoiced_plus_open,
        "percent_of_goal_including_open_orders": _percent(totals.invoiced_plus_open, totals.meta_total),
    }
    df = pd.concat([df, pd.DataFrame([total_row])], ignore_index=True)
    return df.rename(columns=dict(RANKING_COLUMNS, position="#"))
