# portal_vendas/services/sales_ledger.py
import logging
from datetime import date
from typing import Dict, List, Optional

from services.storage_gateway import GatewayResult, StorageGateway

logger = logging.getLogger(__name__)

LEDGER_KIND = "sales_entries"
REQUIRED_FIELDS = ("user_id", "entry_date", "client")


def _amount(value):
    if value in (None, ""):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def build_sale_entry(user_id, form: Dict) -> Dict:
    """Turns the ledger form into a row; empty amounts count as zero."""
    entry_date = form.get("date") or date.today()
    return {
        "user_id": user_id,
        "entry_date": entry_date.isoformat() if isinstance(entry_date, date) else str(entry_date),
        "client": (form.get("client") or "").strip(),
        "origin": (form.get("origin") or "").strip(),
        "status": (form.get("status") or "").strip(),
        "order_number": (form.get("order_number") or "").strip(),
        "amount_sold": _amount(form.get("amount_sold")),
        "amount_invoiced": _amount(form.get("amount_invoiced")),
        "observation": (form.get("observation") or "").strip() or None,
    }


def create_sale_entry(storage: StorageGateway, entry: Dict) -> GatewayResult:
    missing = [name for name in REQUIRED_FIELDS if not entry.get(name)]
    if missing:
        return GatewayResult(success=False, error=f"Campos obrigatórios: {', '.join(missing)}")
    result = storage.create_entity(LEDGER_KIND, entry)
    if not result.success:
        logger.error(f"Error creating sale entry: {result.error}")
    return result


def list_sale_entries(storage: StorageGateway, admin: bool, user_id: Optional[str],
                      users: Optional[List] = None) -> List[Dict]:
    """
    Entries newest first. Admins see every seller; others only their own rows.
    :param users: Known users, used to attach user_name and user_email to each row.
    """
    filters = {"user_id": user_id} if not admin and user_id else None
    rows = storage.list_entities(LEDGER_KIND, filters=filters, order_by="entry_date", descending=True)
    if rows is None:
        logger.error("Error listing sale entries.")
        return []

    by_id = {u.id: u for u in users or []}
    for row in rows:
        user = by_id.get(row.get("user_id"))
        row["user_name"] = (user.full_name or user.email) if user else None
        row["user_email"] = user.email if user else None
    return rows


def ledger_totals(entries: List[Dict]) -> Dict[str, float]:
    sold = sum(_amount(e.get("amount_sold")) for e in entries)
    invoiced = sum(_amount(e.get("amount_invoiced")) for e in entries)
    return {"sold": sold, "invoiced": invoiced, "to_invoice": sold - invoiced}
