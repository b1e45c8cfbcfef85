# portal_vendas/connectors/supabase_connector.py
import requests
import logging

logger = logging.getLogger(__name__)


def _format_filter_value(value):
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    return f"eq.{value}"


def _response_text(e):
    return e.response.text if getattr(e, "response", None) is not None else "no response"


def describe_error(e):
    """Returns the message Supabase put in the error body, or the exception text."""
    response = getattr(e, "response", None)
    if response is not None:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            for key in ("msg", "message", "error_description", "error"):
                if body.get(key):
                    return str(body[key])
    return str(e)


class SupabaseConnector:
    def __init__(self, base_url, api_key):
        if not api_key:
            logger.error("Supabase anon key is not provided.")
            raise ValueError("Supabase anon key is required.")
        if not base_url:
            logger.error("Supabase URL is not provided.")
            raise ValueError("Supabase URL is required.")
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.access_token = None

    @property
    def headers(self):
        token = self.access_token or self.api_key
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    def set_access_token(self, access_token):
        """Requests after login run as the signed-in user so row-level policies apply."""
        self.access_token = access_token

    def _send(self, method, path, params=None, json=None, extra_headers=None):
        url = f"{self.base_url}{path}"
        headers = dict(self.headers)
        if extra_headers:
            headers.update(extra_headers)
        try:
            response = requests.request(method, url, headers=headers, params=params, json=json)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Supabase {method} {path} failed: {e} - Response: {_response_text(e)}")
            raise
        if not response.content:
            return None
        return response.json()

    # --- REST (PostgREST) ---

    def select_rows(self, table, filters=None, order_by=None, descending=False, limit=None, columns="*"):
        """
        Fetches rows from a table, following pages until the table is exhausted.
        :param filters: Mapping of column -> value, combined as equality filters.
        :param limit: When given, a single request returning at most this many rows.
        :return: A list of row dictionaries. Raises RequestException on failure.
        """
        params = {"select": columns}
        for column, value in (filters or {}).items():
            params[column] = _format_filter_value(value)
        if order_by:
            params["order"] = f"{order_by}.{'desc' if descending else 'asc'}"

        if limit is not None:
            params["limit"] = limit
            return self._send("GET", f"/rest/v1/{table}", params=params) or []

        all_rows = []
        offset = 0
        size = 1000  # PostgREST default max-rows
        while True:
            page_params = dict(params, limit=size, offset=offset)
            results = self._send("GET", f"/rest/v1/{table}", params=page_params) or []
            all_rows.extend(results)
            if len(results) < size:
                break
            offset += size
        logger.info(f"Fetched {len(all_rows)} row(s) from table {table}.")
        return all_rows

    def insert_rows(self, table, rows_data):
        """
        Inserts one or more rows and returns them as stored (with generated ids).
        :param rows_data: A list of dictionaries, one per new row.
        """
        created = self._send(
            "POST", f"/rest/v1/{table}", json=rows_data,
            extra_headers={"Prefer": "return=representation"},
        ) or []
        logger.info(f"Successfully created {len(rows_data)} row(s) in table {table}.")
        return created

    def upsert_rows(self, table, rows_data, on_conflict):
        created = self._send(
            "POST", f"/rest/v1/{table}", params={"on_conflict": on_conflict}, json=rows_data,
            extra_headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        ) or []
        logger.info(f"Successfully upserted {len(rows_data)} row(s) in table {table}.")
        return created

    def update_rows(self, table, filters, fields):
        """
        Updates every row matching the equality filters.
        :param filters: Mapping of column -> value. Must not be empty.
        :param fields: The new column values.
        """
        if not filters:
            raise ValueError("update_rows requires at least one filter.")
        params = {column: _format_filter_value(value) for column, value in filters.items()}
        updated = self._send(
            "PATCH", f"/rest/v1/{table}", params=params, json=fields,
            extra_headers={"Prefer": "return=representation"},
        ) or []
        logger.info(f"Successfully updated {len(updated)} row(s) in table {table}.")
        return updated

    def delete_rows(self, table, filters):
        if not filters:
            raise ValueError("delete_rows requires at least one filter.")
        params = {column: _format_filter_value(value) for column, value in filters.items()}
        deleted = self._send(
            "DELETE", f"/rest/v1/{table}", params=params,
            extra_headers={"Prefer": "return=representation"},
        ) or []
        logger.info(f"Successfully deleted {len(deleted)} row(s) from table {table}.")
        return deleted

    # --- Auth (GoTrue) ---

    def sign_in_with_password(self, email, password):
        return self._send(
            "POST", "/auth/v1/token", params={"grant_type": "password"},
            json={"email": email, "password": password},
        )

    def sign_out(self):
        if not self.access_token:
            return
        self._send("POST", "/auth/v1/logout")

    def get_user(self):
        return self._send("GET", "/auth/v1/user")

    def sign_up(self, email, password):
        return self._send("POST", "/auth/v1/signup", json={"email": email, "password": password})

    def update_user(self, fields):
        return self._send("PUT", "/auth/v1/user", json=fields)
