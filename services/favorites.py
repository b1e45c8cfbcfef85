# portal_vendas/services/favorites.py
from connectors.local_store import LocalStore

FAVORITES_KEY = "catalogo_favorites"


class FavoritesStore:
    """Favorite product ids, always kept in the local store whatever the storage mode."""

    def __init__(self, store: LocalStore, key: str = FAVORITES_KEY):
        self.store = store
        self.key = key

    def get_favorites(self):
        return self.store.get_item(self.key, []) or []

    def add_favorite(self, product_id):
        favorites = self.get_favorites()
        if product_id not in favorites:
            favorites.append(product_id)
            self.store.set_item(self.key, favorites)
        return favorites

    def remove_favorite(self, product_id):
        favorites = [fid for fid in self.get_favorites() if fid != product_id]
        self.store.set_item(self.key, favorites)
        return favorites

    def toggle_favorite(self, product_id):
        """Returns (favorites, is_favorite) after the toggle."""
        if self.is_favorite(product_id):
            return self.remove_favorite(product_id), False
        return self.add_favorite(product_id), True

    def is_favorite(self, product_id):
        return product_id in self.get_favorites()
