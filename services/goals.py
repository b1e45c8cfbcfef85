# portal_vendas/services/goals.py
"""Personal monthly targets (contacts, quotes, orders) and the daily logs counted against them."""
import calendar
import logging
from datetime import date
from typing import Dict, List, Optional, Tuple

from services.storage_gateway import GatewayResult, StorageGateway, utc_now_iso

logger = logging.getLogger(__name__)

GOALS_KIND = "monthly_goals"
LOGS_KIND = "performance_logs"


def get_monthly_goal(storage: StorageGateway, user_id, month: int, year: int) -> Optional[Dict]:
    rows = storage.list_entities(GOALS_KIND, filters={"user_id": user_id, "month": month, "year": year})
    if rows is None:
        logger.error(f"Error fetching goals for {user_id} {month}/{year}.")
        return None
    return rows[0] if rows else None


def month_bounds(month: int, year: int) -> Tuple[str, str]:
    last_day = calendar.monthrange(year, month)[1]
    return f"{year}-{month:02d}-01", f"{year}-{month:02d}-{last_day:02d}"


def get_performance_logs(storage: StorageGateway, user_id, month: int, year: int) -> List[Dict]:
    rows = storage.list_entities(LOGS_KIND, filters={"user_id": user_id}, order_by="entry_date", descending=True)
    if rows is None:
        logger.error(f"Error fetching logs for {user_id}.")
        return []
    start, end = month_bounds(month, year)
    # ISO dates compare correctly as strings
    return [row for row in rows if start <= str(row.get("entry_date", ""))[:10] <= end]


def add_performance_log(storage: StorageGateway, user_id, contacts: int, quotes: int, orders: int,
                        notes: Optional[str] = None, entry_date: Optional[date] = None) -> GatewayResult:
    entry_date = entry_date or date.today()
    result = storage.create_entity(LOGS_KIND, {
        "user_id": user_id,
        "contacts_done": contacts,
        "quotes_done": quotes,
        "orders_done": orders,
        "notes": notes,
        "entry_date": entry_date.isoformat(),
    })
    if not result.success:
        logger.error(f"Error adding log: {result.error}")
    return result


def get_user_performance(storage: StorageGateway, user_id, month: int, year: int) -> Dict:
    goal = get_monthly_goal(storage, user_id, month, year)
    realized = {"contacts": 0, "quotes": 0, "orders": 0}
    for log in get_performance_logs(storage, user_id, month, year):
        realized["contacts"] += log.get("contacts_done") or 0
        realized["quotes"] += log.get("quotes_done") or 0
        realized["orders"] += log.get("orders_done") or 0
    return {"goals": goal, "realized": realized}


def set_monthly_goal(storage: StorageGateway, user_id, month: int, year: int,
                     contacts: int, quotes: int, orders: int) -> GatewayResult:
    """Updates the month's goal when one exists, inserts it otherwise."""
    targets = {
        "target_contacts": contacts,
        "target_quotes": quotes,
        "target_orders": orders,
    }
    existing = get_monthly_goal(storage, user_id, month, year)
    if existing:
        result = storage.update_entity(GOALS_KIND, existing["id"], dict(targets, updated_at=utc_now_iso()))
    else:
        result = storage.create_entity(GOALS_KIND, dict(targets, user_id=user_id, month=month, year=year))
    if not result.success:
        logger.error(f"Error setting goals: {result.error}")
    return result


def calculate_progress(current, target) -> Tuple[float, str]:
    """Percent of target (capped at 100) and the color band used on the KPI cards."""
    if not target:
        return 0.0, "gray"
    percent = min(current / target * 100, 100)
    if percent >= 100:
        return percent, "green"
    if percent >= 70:
        return percent, "blue"
    if percent >= 30:
        return percent, "yellow"
    return percent, "red"
