"""Tests for the DataFrame views used on the admin and ledger pages."""
from connectors.local_store import LocalStore
from services.storage_gateway import LocalStorageGateway
from utils.data_loader import categories_dataframe, ledger_dataframe, load_catalog_data, products_dataframe

CATEGORIES = [{"id": "c1", "name": "Bebidas", "slug": "bebidas"}, {"id": "c2", "name": "Doces", "slug": "doces"}]


def test_products_dataframe_resolves_category_names():
    products = [
        {"id": "p1", "name": "Suco", "category_id": "c1", "images": ["a", "b"], "created_at": "2024-03-01T10:00:00+00:00"},
        {"id": "p2", "name": "Sem família", "category_id": "zz", "images": None, "created_at": None},
    ]
    df = products_dataframe(products, CATEGORIES)
    assert list(df["Família"]) == ["Bebidas", "-"]
    assert list(df["Imagens"]) == [2, 0]


def test_empty_frames_keep_their_columns():
    assert list(products_dataframe([], CATEGORIES).columns) == ["id", "Produto", "Família", "Imagens", "Criado em"]
    assert categories_dataframe([], []).empty


def test_categories_dataframe_counts_products():
    products = [{"category_id": "c1"}, {"category_id": "c1"}]
    df = categories_dataframe(CATEGORIES, products)
    assert list(df["Produtos"]) == [2, 0]


def test_ledger_dataframe_adds_amount_to_invoice():
    df = ledger_dataframe([{"entry_date": "2024-03-01", "user_name": "Ana", "client": "ACME",
                            "amount_sold": 100.0, "amount_invoiced": 40.0}])
    assert df.loc[0, "A faturar"] == 60.0
    assert df.loc[0, "Vendedor"] == "Ana"


def test_catalog_cache_is_kept_per_viewer():
    load_catalog_data.clear()
    first = LocalStorageGateway(LocalStore())
    first.create_entity("products", {"name": "Suco"})
    second = LocalStorageGateway(LocalStore())

    products_a, _, _ = load_catalog_data(first, "ana")
    products_b, _, _ = load_catalog_data(second, "bia")

    assert [p["name"] for p in products_a] == ["Suco"]
    assert products_b == []
    load_catalog_data.clear()
