"""Tests for the favorites store."""
from services.favorites import FavoritesStore


def test_add_is_idempotent(local_store):
    favorites = FavoritesStore(local_store)
    favorites.add_favorite("1")
    assert favorites.add_favorite("1") == ["1"]


def test_toggle(local_store):
    favorites = FavoritesStore(local_store)
    assert favorites.toggle_favorite("7") == (["7"], True)
    assert favorites.is_favorite("7")
    assert favorites.toggle_favorite("7") == ([], False)
    assert not favorites.is_favorite("7")


def test_remove_keeps_others(local_store):
    favorites = FavoritesStore(local_store)
    favorites.add_favorite("1")
    favorites.add_favorite("2")
    assert favorites.remove_favorite("1") == ["2"]


def test_keys_are_independent(local_store):
    FavoritesStore(local_store, key="catalogo_favorites:ana").add_favorite("1")
    assert FavoritesStore(local_store, key="catalogo_favorites:bia").get_favorites() == []
