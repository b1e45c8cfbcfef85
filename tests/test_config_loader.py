"""Tests for settings.yaml / environment configuration."""
from utils.config_loader import DEFAULT_LOCAL_STORE_PATH, AppConfig, load_app_config


def write_settings(tmp_path, text):
    path = tmp_path / "settings.yaml"
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_missing_settings_file_gives_local_defaults(tmp_path):
    config = load_app_config(str(tmp_path / "nope.yaml"), environ={}, use_secrets=False)
    assert config == AppConfig()
    assert not config.is_hosted
    assert config.local_store_path == DEFAULT_LOCAL_STORE_PATH


def test_settings_file_values(tmp_path):
    path = write_settings(tmp_path, """
supabase:
  url: https://abc.supabase.co
  anon_key: key-123
local_store:
  path: data/store.json
catalog:
  items_per_page: 8
""")
    config = load_app_config(path, environ={}, use_secrets=False)
    assert config.is_hosted
    assert config.supabase_url == "https://abc.supabase.co"
    assert config.local_store_path == "data/store.json"
    assert config.items_per_page == 8


def test_environment_overrides_file(tmp_path):
    path = write_settings(tmp_path, "supabase:\n  url: https://file.supabase.co\n  anon_key: file-key\n")
    environ = {"SUPABASE_URL": " https://env.supabase.co ", "PORTAL_LOCAL_STORE": "/tmp/x.json"}
    config = load_app_config(path, environ=environ, use_secrets=False)
    assert config.supabase_url == "https://env.supabase.co"
    assert config.supabase_anon_key == "file-key"
    assert config.local_store_path == "/tmp/x.json"


def test_one_supabase_value_is_not_enough(tmp_path):
    config = load_app_config(str(tmp_path / "nope.yaml"), environ={"SUPABASE_URL": "https://x.supabase.co"},
                             use_secrets=False)
    assert not config.is_hosted


def test_empty_settings_file(tmp_path):
    config = load_app_config(write_settings(tmp_path, ""), environ={}, use_secrets=False)
    assert config == AppConfig()
