# portal_vendas/services/storage_gateway.py
"""
Storage gateway: one interface over the hosted relational store and the local
key-value fallback. The implementation is picked once, by build_storage_gateway.
"""
import uuid
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from connectors.local_store import LocalStore
from connectors.supabase_connector import SupabaseConnector, describe_error

logger = logging.getLogger(__name__)

# Entity kind -> key under which the local store keeps its JSON array
LOCAL_KEYS = {
    "products": "catalogo_products",
    "categories": "catalogo_categories",
}


@dataclass
class GatewayResult:
    success: bool
    error: Optional[str] = None
    id: Optional[str] = None


def utc_now_iso():
    return datetime.now(timezone.utc).isoformat()


def _matches(row, filters):
    return all(row.get(column) == value for column, value in filters.items())


def _sort_rows(rows, column, descending):
    """
    Sorts rows on one column with None first, like SQL NULLS FIRST on ascending order.
    Columns mixing types (e.g. 3 and "3" after a hand edit) are compared as strings.
    """
    values = [row.get(column) for row in rows if row.get(column) is not None]
    numeric = all(isinstance(v, (int, float)) for v in values)
    as_text = not numeric and len({type(v) for v in values}) > 1

    def key(row):
        value = row.get(column)
        if value is None:
            return (False, "")
        return (True, str(value) if as_text else value)

    return sorted(rows, key=key, reverse=descending)


class StorageGateway:
    """Interface shared by the hosted and local implementations."""

    is_hosted = False

    def list_entities(self, kind: str, filters: Optional[Dict[str, Any]] = None,
                      order_by: Optional[str] = None, descending: bool = False) -> Optional[List[dict]]:
        raise NotImplementedError

    def create_entity(self, kind: str, fields: Dict[str, Any]) -> GatewayResult:
        raise NotImplementedError

    def update_entity(self, kind: str, entity_id: str, fields: Dict[str, Any]) -> GatewayResult:
        raise NotImplementedError

    def delete_entity(self, kind: str, entity_id: str) -> GatewayResult:
        raise NotImplementedError

    def upsert_entities(self, kind: str, rows: List[Dict[str, Any]], on_conflict: List[str]) -> GatewayResult:
        """Inserts rows, or updates the stored row holding the same values in the on_conflict columns."""
        raise NotImplementedError


class HostedStorageGateway(StorageGateway):
    is_hosted = True

    def __init__(self, connector: SupabaseConnector):
        self.connector = connector

    def list_entities(self, kind, filters=None, order_by=None, descending=False):
        try:
            return self.connector.select_rows(kind, filters=filters, order_by=order_by, descending=descending)
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to list {kind}: {e}")
            return None

    def create_entity(self, kind, fields):
        try:
            created = self.connector.insert_rows(kind, [fields])
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to create {kind}: {e}")
            return GatewayResult(success=False, error=describe_error(e))
        new_id = created[0].get("id") if created else None
        return GatewayResult(success=True, id=None if new_id is None else str(new_id))

    def update_entity(self, kind, entity_id, fields):
        try:
            self.connector.update_rows(kind, {"id": entity_id}, fields)
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to update {kind} {entity_id}: {e}")
            return GatewayResult(success=False, error=describe_error(e))
        return GatewayResult(success=True, id=str(entity_id))

    def delete_entity(self, kind, entity_id):
        try:
            self.connector.delete_rows(kind, {"id": entity_id})
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to delete {kind} {entity_id}: {e}")
            return GatewayResult(success=False, error=describe_error(e))
        return GatewayResult(success=True, id=str(entity_id))

    def upsert_entities(self, kind, rows, on_conflict):
        try:
            stored = self.connector.upsert_rows(kind, rows, on_conflict=",".join(on_conflict))
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to upsert {kind}: {e}")
            return GatewayResult(success=False, error=describe_error(e))
        new_id = stored[0].get("id") if len(stored) == 1 else None
        return GatewayResult(success=True, id=None if new_id is None else str(new_id))


class LocalStorageGateway(StorageGateway):
    def __init__(self, store: LocalStore):
        self.store = store

    def _key(self, kind):
        return LOCAL_KEYS.get(kind, kind)

    def _rows(self, kind):
        return self.store.get_item(self._key(kind), []) or []

    def list_entities(self, kind, filters=None, order_by=None, descending=False):
        rows = self._rows(kind)
        if filters:
            rows = [row for row in rows if _matches(row, filters)]
        if order_by:
            rows = _sort_rows(rows, order_by, descending)
        return rows

    def create_entity(self, kind, fields):
        row = dict(fields)
        row.setdefault("id", uuid.uuid4().hex)
        row.setdefault("created_at", utc_now_iso())
        with self.store.lock:
            rows = self._rows(kind)
            rows.append(row)
            self.store.set_item(self._key(kind), rows)
        logger.info(f"Created {kind} {row['id']} in local store.")
        return GatewayResult(success=True, id=str(row["id"]))

    def update_entity(self, kind, entity_id, fields):
        with self.store.lock:
            rows = self._rows(kind)
            for row in rows:
                if str(row.get("id")) == str(entity_id):
                    row.update({k: v for k, v in fields.items() if k != "id"})
                    self.store.set_item(self._key(kind), rows)
                    return GatewayResult(success=True, id=str(entity_id))
        logger.warning(f"Local store has no {kind} with id {entity_id}.")
        return GatewayResult(success=False, error="Registro não encontrado")

    def delete_entity(self, kind, entity_id):
        with self.store.lock:
            rows = self._rows(kind)
            remaining = [row for row in rows if str(row.get("id")) != str(entity_id)]
            if len(remaining) != len(rows):
                self.store.set_item(self._key(kind), remaining)
        return GatewayResult(success=True, id=str(entity_id))

    def upsert_entities(self, kind, rows, on_conflict):
        last_id = None
        with self.store.lock:
            stored = self._rows(kind)
            for fields in rows:
                target = {column: fields.get(column) for column in on_conflict}
                existing = next((row for row in stored if _matches(row, target)), None)
                if existing is not None:
                    existing.update({k: v for k, v in fields.items() if k != "id"})
                else:
                    existing = dict(fields)
                    existing.setdefault("id", uuid.uuid4().hex)
                    existing.setdefault("created_at", utc_now_iso())
                    stored.append(existing)
                last_id = existing["id"]
            self.store.set_item(self._key(kind), stored)
        logger.info(f"Upserted {len(rows)} {kind} row(s) in local store.")
        return GatewayResult(success=True, id=str(last_id) if len(rows) == 1 else None)


def build_storage_gateway(config, connector=None, local_store=None):
    """Picks the implementation for the whole process from the configuration."""
    if config.is_hosted:
        connector = connector or SupabaseConnector(config.supabase_url, config.supabase_anon_key)
        return HostedStorageGateway(connector)
    return LocalStorageGateway(local_store or LocalStore(config.local_store_path))
