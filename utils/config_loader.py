# portal_vendas/utils/config_loader.py
import os
import logging
from dataclasses import dataclass

import yaml
import streamlit as st


logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

DEFAULT_SETTINGS_PATH = "settings.yaml"
DEFAULT_LOCAL_STORE_PATH = ".portal_data/local_store.json"
DEFAULT_ITEMS_PER_PAGE = 12


@dataclass(frozen=True)
class AppConfig:
    supabase_url: str = ""
    supabase_anon_key: str = ""
    local_store_path: str = DEFAULT_LOCAL_STORE_PATH
    items_per_page: int = DEFAULT_ITEMS_PER_PAGE

    @property
    def is_hosted(self):
        """Hosted mode needs both Supabase values; anything less runs locally."""
        return bool(self.supabase_url and self.supabase_anon_key)


def _read_yaml(path):
    try:
        with open(path, 'r') as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        logging.warning(f"{path} not found. Using default settings.")
        return {}


def _secrets_supabase():
    # st.secrets raises when no secrets.toml exists, e.g. in standalone scripts and tests
    try:
        section = st.secrets["supabase"]
        logging.info("Loaded Supabase settings from st.secrets.")
        return dict(section)
    except Exception:
        logging.info("st.secrets not available. Falling back to settings file and environment variables.")
        return {}


def load_app_config(path=DEFAULT_SETTINGS_PATH, environ=None, use_secrets=True):
    """Builds the AppConfig from settings.yaml, Streamlit secrets and the environment, in that order."""
    environ = os.environ if environ is None else environ
    settings = _read_yaml(path)

    supabase = dict(settings.get("supabase") or {})
    if use_secrets:
        supabase.update({k: v for k, v in _secrets_supabase().items() if v})

    url = environ.get("SUPABASE_URL") or supabase.get("url") or ""
    anon_key = environ.get("SUPABASE_ANON_KEY") or supabase.get("anon_key") or ""
    if environ.get("SUPABASE_URL") or environ.get("SUPABASE_ANON_KEY"):
        logging.info("Loaded Supabase settings from environment variables.")

    local_store = settings.get("local_store") or {}
    catalog = settings.get("catalog") or {}

    config = AppConfig(
        supabase_url=url.strip(),
        supabase_anon_key=anon_key.strip(),
        local_store_path=environ.get("PORTAL_LOCAL_STORE") or local_store.get("path") or DEFAULT_LOCAL_STORE_PATH,
        items_per_page=int(catalog.get("items_per_page", DEFAULT_ITEMS_PER_PAGE)),
    )
    mode = "hosted (Supabase)" if config.is_hosted else "local store"
    logging.info(f"Storage mode selected: {mode}.")
    return config
