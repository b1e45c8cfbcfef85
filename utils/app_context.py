# portal_vendas/utils/app_context.py
"""
Composition root for the Streamlit pages. The configuration and the local store
are built once per process; gateways are built once per browser session because
they carry the signed-in user's token.
"""
import logging

import streamlit as st

from connectors.local_store import LocalStore
from connectors.supabase_connector import SupabaseConnector
from services.auth_gateway import build_auth_gateway
from services.favorites import FavoritesStore, FAVORITES_KEY
from services.sales_data import SalesDataRepository
from services.storage_gateway import LocalStorageGateway, build_storage_gateway
from utils.config_loader import load_app_config

logger = logging.getLogger(__name__)


@st.cache_resource
def get_app_config():
    return load_app_config()


@st.cache_resource
def get_local_store():
    return LocalStore(get_app_config().local_store_path)


def _user_agent():
    try:
        return st.context.headers.get("User-Agent")
    except AttributeError:
        # st.context only exists on newer Streamlit releases
        return None


def _init_session():
    if "storage" in st.session_state:
        return
    config = get_app_config()
    local_store = get_local_store()
    # Auth and storage share one connector so table calls carry the user's token
    connector = SupabaseConnector(config.supabase_url, config.supabase_anon_key) if config.is_hosted else None
    st.session_state.storage = build_storage_gateway(config, connector=connector, local_store=local_store)
    st.session_state.auth = build_auth_gateway(config, local_store=local_store, connector=connector,
                                               user_agent=_user_agent())
    fallback = LocalStorageGateway(local_store) if config.is_hosted else None
    st.session_state.sales_repo = SalesDataRepository(st.session_state.storage, fallback=fallback)
    logger.info("Session gateways initialized.")


def get_storage():
    _init_session()
    return st.session_state.storage


def get_auth():
    _init_session()
    return st.session_state.auth


def get_sales_repository():
    _init_session()
    return st.session_state.sales_repo


def get_favorites():
    user = get_auth().current_user()
    key = f"{FAVORITES_KEY}:{user.id}" if user else FAVORITES_KEY
    return FavoritesStore(get_local_store(), key=key)


def require_login(admin=False):
    """Stops the page unless someone is signed in (and is an admin when asked)."""
    auth = get_auth()
    # Re-read on every page run so blocking or demoting a user takes effect at once
    user = auth.refresh_user()
    if user is None:
        st.warning("Faça login na página inicial para continuar.")
        st.page_link("Home.py", label="Ir para o login", icon="🔐")
        st.stop()
    if admin and not auth.is_admin(user):
        st.error("Acesso restrito a administradores.")
        st.stop()
    return user
