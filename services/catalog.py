# portal_vendas/services/catalog.py
import re
import math
import logging
import unicodedata
from dataclasses import dataclass
from typing import Iterable, List, Optional

from services.storage_gateway import GatewayResult, StorageGateway

logger = logging.getLogger(__name__)

PRODUCTS_KIND = "products"
CATEGORIES_KIND = "categories"
PLACEHOLDER_IMAGE = "https://via.placeholder.com/400"
ITEMS_PER_PAGE = 12


@dataclass
class Page:
    items: list
    page: int
    total_pages: int
    total: int

    @property
    def has_previous(self):
        return self.page > 1

    @property
    def has_next(self):
        return self.page < self.total_pages


def generate_slug(name: str) -> str:
    """'Casa e Jardim' -> 'casa-e-jardim'; accents are dropped, runs of other characters become one dash."""
    normalized = unicodedata.normalize("NFD", name.lower())
    without_accents = "".join(ch for ch in normalized if not unicodedata.combining(ch))
    return re.sub(r"[^a-z0-9]+", "-", without_accents).strip("-")


def product_images(product: dict) -> List[str]:
    """Main image first, then the gallery, skipping blanks."""
    return [img for img in [product.get("image"), *(product.get("images") or [])] if img]


def category_name(categories: Iterable[dict], category_id) -> str:
    return next((c["name"] for c in categories if c.get("id") == category_id), "-")


def filter_products(products: List[dict], search: str = "", category_slug: str = "",
                    categories: Optional[List[dict]] = None, favorite_ids: Optional[Iterable[str]] = None,
                    favorites_only: bool = False) -> List[dict]:
    """
    Applies the catalog filters in order: category, text search, favorites.
    :param search: Case-insensitive match on name or description.
    :param category_slug: Empty string means every category.
    """
    result = products
    if category_slug:
        ids = {c["id"] for c in categories or [] if c.get("slug") == category_slug}
        result = [p for p in result if p.get("category_id") in ids]

    term = search.strip().lower()
    if term:
        result = [
            p for p in result
            if term in (p.get("name") or "").lower() or term in (p.get("description") or "").lower()
        ]

    if favorites_only:
        favorites = set(favorite_ids or [])
        result = [p for p in result if p.get("id") in favorites]
    return result


def paginate(items: list, page: int = 1, per_page: int = ITEMS_PER_PAGE) -> Page:
    total = len(items)
    total_pages = max(1, math.ceil(total / per_page))
    page = min(max(1, page), total_pages)
    start = (page - 1) * per_page
    return Page(items=items[start:start + per_page], page=page, total_pages=total_pages, total=total)


def list_products(storage: StorageGateway) -> List[dict]:
    return storage.list_entities(PRODUCTS_KIND, order_by="created_at", descending=True) or []


def list_categories(storage: StorageGateway) -> List[dict]:
    return storage.list_entities(CATEGORIES_KIND, order_by="name") or []


def save_product(storage: StorageGateway, form: dict, images: List[str],
                 product_id: Optional[str] = None) -> GatewayResult:
    """
    Creates or updates a product from the admin form.
    :param form: name, description and category_id.
    :param images: Ordered image URLs; the first becomes the main image.
    """
    images = [img for img in images if img]
    fields = {
        "name": form["name"].strip(),
        "description": form.get("description", "").strip(),
        "category_id": form.get("category_id"),
        "image": images[0] if images else PLACEHOLDER_IMAGE,
        "images": images[1:] or None,
    }
    if not fields["name"]:
        return GatewayResult(success=False, error="Informe o nome do produto.")
    if product_id:
        return storage.update_entity(PRODUCTS_KIND, product_id, fields)
    return storage.create_entity(PRODUCTS_KIND, fields)


def delete_product(storage: StorageGateway, product_id: str) -> GatewayResult:
    return storage.delete_entity(PRODUCTS_KIND, product_id)


def save_category(storage: StorageGateway, name: str, category_id: Optional[str] = None) -> GatewayResult:
    name = name.strip()
    if not name:
        return GatewayResult(success=False, error="Informe o nome da família.")
    fields = {"name": name, "slug": generate_slug(name)}
    if category_id:
        return storage.update_entity(CATEGORIES_KIND, category_id, fields)
    return storage.create_entity(CATEGORIES_KIND, fields)


def delete_category(storage: StorageGateway, category_id: str, products: Optional[List[dict]] = None) -> GatewayResult:
    """Refuses while any product still points at the category."""
    products = list_products(storage) if products is None else products
    in_use = sum(1 for p in products if p.get("category_id") == category_id)
    if in_use:
        logger.info(f"Category {category_id} kept: {in_use} product(s) still reference it.")
        return GatewayResult(
            success=False,
            error=f"Não é possível excluir. Existem {in_use} produto(s) nesta família.",
        )
    return storage.delete_entity(CATEGORIES_KIND, category_id)
