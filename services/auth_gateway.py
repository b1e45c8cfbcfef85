# portal_vendas/services/auth_gateway.py
"""
Auth gateway: login, logout, roles, login history and user administration.

HostedAuthGateway talks to the Supabase auth API plus the user_roles, profiles
and login_history tables. LocalAuthGateway keeps credentials and login history
in the local store. Both keep the signed-in session on the instance, so each
browser session needs its own gateway.
"""
import uuid
import logging
from dataclasses import dataclass
from typing import List, Optional

import requests

from connectors.local_store import LocalStore
from connectors.supabase_connector import SupabaseConnector, describe_error
from services.storage_gateway import GatewayResult, utc_now_iso

logger = logging.getLogger(__name__)

ROLES = ("admin", "viewer", "blocked")
SALES_CHANNELS = ("all", "consumo", "revenda", "cozinhas")

CREDENTIALS_KEY = "catalogo_credentials"
LOGIN_HISTORY_KEY = "catalogo_login_history"
LOGIN_HISTORY_CAP = 100

DEFAULT_CREDENTIALS = [
    {"username": "admin", "password": "admin123", "role": "admin"},
    {"username": "viewer", "password": "viewer123", "role": "viewer"},
]

LOCAL_MODE_CREATE_ERROR = "Supabase não configurado. Configure para criar múltiplos usuários."
INVALID_CREDENTIALS_ERROR = "Usuário ou senha incorretos"
BLOCKED_USER_ERROR = "Usuário bloqueado. Procure um administrador."
NO_SESSION_ERROR = "Não foi possível iniciar a sessão. Tente novamente."


@dataclass
class User:
    id: str
    email: str
    role: str = "viewer"
    full_name: Optional[str] = None
    is_sales_active: bool = True
    sales_channel: str = "all"

    @property
    def display_name(self):
        return self.full_name or self.email.split("@")[0]


@dataclass
class AuthResult:
    success: bool
    error: Optional[str] = None
    role: Optional[str] = None


class AuthGateway:
    """Interface shared by the hosted and local implementations."""

    def login(self, identifier: str, secret: str) -> AuthResult:
        raise NotImplementedError

    def logout(self) -> None:
        raise NotImplementedError

    def current_user(self) -> Optional[User]:
        raise NotImplementedError

    def refresh_user(self) -> Optional[User]:
        """Re-reads the signed-in user so role changes made by an admin apply on the next page run."""
        return self.current_user()

    def is_authenticated(self) -> bool:
        return self.current_user() is not None

    def is_admin(self, user: Optional[User] = None) -> bool:
        user = user or self.current_user()
        return user is not None and user.role == "admin"

    def is_sales_active(self, user: Optional[User] = None) -> bool:
        user = user or self.current_user()
        return user is not None and user.is_sales_active

    def user_channel(self, user: Optional[User] = None) -> str:
        user = user or self.current_user()
        return user.sales_channel if user is not None else "all"

    def is_local_mode(self) -> bool:
        return True

    def login_history(self, limit: int = 50) -> List[dict]:
        raise NotImplementedError

    def create_user(self, email, password, role="viewer", full_name="", is_sales_active=True,
                    sales_channel="all") -> GatewayResult:
        raise NotImplementedError

    def update_password(self, new_password: str) -> GatewayResult:
        raise NotImplementedError

    def list_users(self) -> List[User]:
        raise NotImplementedError

    def update_user_profile(self, user_id, role=None, full_name=None, is_sales_active=None,
                            sales_channel=None) -> GatewayResult:
        raise NotImplementedError

    def delete_user_profile(self, user_id) -> GatewayResult:
        raise NotImplementedError

    def block_user(self, user_id, blocked: bool) -> GatewayResult:
        return self.update_user_profile(user_id, role="blocked" if blocked else "viewer")


class LocalAuthGateway(AuthGateway):
    def __init__(self, store: LocalStore, user_agent: Optional[str] = None):
        self.store = store
        self.user_agent = user_agent
        self._user = None

    def _credentials(self):
        return self.store.get_item(CREDENTIALS_KEY) or [dict(c) for c in DEFAULT_CREDENTIALS]

    def _save_credentials(self, credentials):
        self.store.set_item(CREDENTIALS_KEY, credentials)

    def _to_user(self, credential):
        return User(
            id=credential.get("id", credential["username"]),
            email=credential["username"],
            role=credential.get("role", "viewer"),
            full_name=credential.get("full_name"),
            is_sales_active=credential.get("is_sales_active", True),
            sales_channel=credential.get("sales_channel", "all"),
        )

    def _record_login(self, username):
        with self.store.lock:
            history = self.store.get_item(LOGIN_HISTORY_KEY, []) or []
            history.insert(0, {
                "id": uuid.uuid4().hex,
                "user_id": "local",
                "user_email": username,
                "logged_in_at": utc_now_iso(),
                "user_agent": self.user_agent,
            })
            self.store.set_item(LOGIN_HISTORY_KEY, history[:LOGIN_HISTORY_CAP])

    def login(self, identifier, secret):
        match = next(
            (c for c in self._credentials() if c["username"] == identifier and c["password"] == secret),
            None,
        )
        if match is None:
            logger.info(f"Local login rejected for '{identifier}'.")
            return AuthResult(success=False, error=INVALID_CREDENTIALS_ERROR)
        if match.get("role") == "blocked":
            return AuthResult(success=False, error=BLOCKED_USER_ERROR)
        self._user = self._to_user(match)
        self._record_login(identifier)
        logger.info(f"Local login for '{identifier}' ({self._user.role}).")
        return AuthResult(success=True, role=self._user.role)

    def logout(self):
        self._user = None

    def current_user(self):
        return self._user

    def refresh_user(self):
        if self._user is None:
            return None
        credential = next((c for c in self._credentials() if c.get("id", c["username"]) == self._user.id), None)
        if credential is None or credential.get("role") == "blocked":
            logger.info(f"Local session for '{self._user.email}' ended: account removed or blocked.")
            self.logout()
            return None
        self._user = self._to_user(credential)
        return self._user

    def login_history(self, limit=50):
        history = self.store.get_item(LOGIN_HISTORY_KEY, []) or []
        return history[:limit]

    def create_user(self, email, password, role="viewer", full_name="", is_sales_active=True,
                    sales_channel="all"):
        return GatewayResult(success=False, error=LOCAL_MODE_CREATE_ERROR)

    def update_password(self, new_password):
        # Local credentials are fixed; accepted so the settings form behaves the same in both modes
        return GatewayResult(success=True)

    def list_users(self):
        return [self._to_user(c) for c in self._credentials()]

    def update_user_profile(self, user_id, role=None, full_name=None, is_sales_active=None,
                            sales_channel=None):
        with self.store.lock:
            credentials = self._credentials()
            for credential in credentials:
                if credential.get("id", credential["username"]) == user_id:
                    if role is not None:
                        credential["role"] = role
                    if full_name is not None:
                        credential["full_name"] = full_name
                    if is_sales_active is not None:
                        credential["is_sales_active"] = is_sales_active
                    if sales_channel is not None:
                        credential["sales_channel"] = sales_channel
                    self._save_credentials(credentials)
                    return GatewayResult(success=True, id=user_id)
            return GatewayResult(success=False, error="Usuário não encontrado")

    def delete_user_profile(self, user_id):
        with self.store.lock:
            credentials = self._credentials()
            remaining = [c for c in credentials if c.get("id", c["username"]) != user_id]
            if len(remaining) == len(credentials):
                return GatewayResult(success=False, error="Usuário não encontrado")
            if not any(c.get("role") == "admin" for c in remaining):
                return GatewayResult(success=False, error="Não é possível excluir o último administrador.")
            self._save_credentials(remaining)
            return GatewayResult(success=True, id=user_id)


class HostedAuthGateway(AuthGateway):
    def __init__(self, connector: SupabaseConnector, user_agent: Optional[str] = None):
        self.connector = connector
        self.user_agent = user_agent
        self._session = None
        self._user = None

    def is_local_mode(self):
        return False

    def _fetch_role(self, user_id):
        try:
            rows = self.connector.select_rows("user_roles", filters={"user_id": user_id}, limit=1)
        except requests.exceptions.RequestException as e:
            logger.error(f"Error fetching role for {user_id}: {e}")
            return "viewer"
        return rows[0].get("role", "viewer") if rows else "viewer"

    def _fetch_profile(self, user_id):
        try:
            rows = self.connector.select_rows("profiles", filters={"id": user_id}, limit=1)
        except requests.exceptions.RequestException as e:
            logger.error(f"Error fetching profile for {user_id}: {e}")
            return {}
        return rows[0] if rows else {}

    def _build_user(self, auth_user):
        user_id = auth_user["id"]
        profile = self._fetch_profile(user_id)
        is_sales_active = profile.get("is_sales_active")
        return User(
            id=user_id,
            email=auth_user.get("email") or profile.get("email") or "",
            role=self._fetch_role(user_id),
            full_name=profile.get("full_name"),
            # Unset means active, so a missing profile never locks a seller out
            is_sales_active=True if is_sales_active is None else bool(is_sales_active),
            sales_channel=profile.get("sales_channel") or "all",
        )

    def _record_login(self, user):
        try:
            self.connector.insert_rows("login_history", [{
                "user_id": user.id,
                "user_email": user.email,
                "user_agent": self.user_agent,
            }])
        except requests.exceptions.RequestException as e:
            logger.error(f"Error recording login: {e}")

    def login(self, identifier, secret):
        try:
            session = self.connector.sign_in_with_password(identifier, secret)
        except requests.exceptions.RequestException as e:
            return AuthResult(success=False, error=describe_error(e))

        auth_user = (session or {}).get("user")
        if not auth_user:
            logger.error(f"Supabase sign-in for {identifier} returned no user.")
            return AuthResult(success=False, error=NO_SESSION_ERROR)

        self.connector.set_access_token(session.get("access_token"))
        user = self._build_user(auth_user)
        if user.role == "blocked":
            self.logout()
            return AuthResult(success=False, error=BLOCKED_USER_ERROR)

        self._session = session
        self._user = user
        self._record_login(user)
        logger.info(f"Supabase login for {user.email} ({user.role}).")
        return AuthResult(success=True, role=user.role)

    def logout(self):
        try:
            self.connector.sign_out()
        except requests.exceptions.RequestException as e:
            logger.error(f"Error signing out: {e}")
        self.connector.set_access_token(None)
        self._session = None
        self._user = None

    def current_user(self):
        return self._user

    def refresh_user(self):
        """Re-reads the signed-in user, picking up role or profile changes made by an admin."""
        if self._session is None:
            return None
        try:
            auth_user = self.connector.get_user()
        except requests.exceptions.RequestException as e:
            logger.error(f"Error fetching current user: {e}")
            return self._user
        if not auth_user:
            self.logout()
            return None
        user = self._build_user(auth_user)
        if user.role == "blocked":
            logger.info(f"Session for {user.email} ended: user was blocked.")
            self.logout()
            return None
        self._user = user
        return user

    def login_history(self, limit=50):
        try:
            return self.connector.select_rows("login_history", order_by="logged_in_at", descending=True, limit=limit)
        except requests.exceptions.RequestException as e:
            logger.error(f"Error fetching login history: {e}")
            return []

    def create_user(self, email, password, role="viewer", full_name="", is_sales_active=True,
                    sales_channel="all"):
        try:
            data = self.connector.sign_up(email, password)
        except requests.exceptions.RequestException as e:
            return GatewayResult(success=False, error=describe_error(e))

        # Sign-up answers with the user itself or wraps it, depending on email confirmation
        new_user = (data or {}).get("user") or data
        if not new_user or not new_user.get("id"):
            return GatewayResult(success=True)

        user_id = new_user["id"]
        try:
            self.connector.insert_rows("user_roles", [{"user_id": user_id, "role": role}])
            self.connector.insert_rows("profiles", [{
                "id": user_id,
                "email": email,
                "full_name": full_name or email.split("@")[0],
                "role": role,
                "is_sales_active": is_sales_active,
                "sales_channel": sales_channel,
            }])
        except requests.exceptions.RequestException as e:
            logger.error(f"User {email} created but role/profile rows failed: {e}")
            return GatewayResult(success=False, error=describe_error(e), id=user_id)
        return GatewayResult(success=True, id=user_id)

    def update_password(self, new_password):
        try:
            self.connector.update_user({"password": new_password})
        except requests.exceptions.RequestException as e:
            return GatewayResult(success=False, error=describe_error(e))
        return GatewayResult(success=True)

    def list_users(self):
        try:
            roles = self.connector.select_rows("user_roles")
            profiles = self.connector.select_rows("profiles")
        except requests.exceptions.RequestException as e:
            logger.error(f"Error fetching users: {e}")
            return []

        profiles_by_id = {p["id"]: p for p in profiles}
        users = []
        for role_row in roles:
            profile = profiles_by_id.get(role_row["user_id"], {})
            is_sales_active = profile.get("is_sales_active")
            users.append(User(
                id=role_row["user_id"],
                email=profile.get("email") or "Email desconhecido",
                role=role_row.get("role", "viewer"),
                full_name=profile.get("full_name"),
                is_sales_active=True if is_sales_active is None else bool(is_sales_active),
                sales_channel=profile.get("sales_channel") or "all",
            ))
        return users

    def update_user_profile(self, user_id, role=None, full_name=None, is_sales_active=None,
                            sales_channel=None):
        profile_fields = {}
        if full_name is not None:
            profile_fields["full_name"] = full_name
        if is_sales_active is not None:
            profile_fields["is_sales_active"] = is_sales_active
        if sales_channel is not None:
            profile_fields["sales_channel"] = sales_channel
        if role is not None:
            profile_fields["role"] = role
        try:
            if role is not None:
                self.connector.update_rows("user_roles", {"user_id": user_id}, {"role": role})
            if profile_fields:
                self.connector.update_rows("profiles", {"id": user_id}, profile_fields)
        except requests.exceptions.RequestException as e:
            return GatewayResult(success=False, error=describe_error(e))
        return GatewayResult(success=True, id=user_id)

    def delete_user_profile(self, user_id):
        # Removing the auth user itself needs the service role key; only our rows go
        try:
            self.connector.delete_rows("user_roles", {"user_id": user_id})
            self.connector.delete_rows("profiles", {"id": user_id})
        except requests.exceptions.RequestException as e:
            return GatewayResult(success=False, error=describe_error(e))
        return GatewayResult(success=True, id=user_id)


def build_auth_gateway(config, local_store=None, connector=None, user_agent=None):
    if config.is_hosted:
        connector = connector or SupabaseConnector(config.supabase_url, config.supabase_anon_key)
        return HostedAuthGateway(connector, user_agent=user_agent)
    return LocalAuthGateway(local_store or LocalStore(config.local_store_path), user_agent=user_agent)
