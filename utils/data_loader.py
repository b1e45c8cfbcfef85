# portal_vendas/utils/data_loader.py
import logging
from datetime import datetime

import pandas as pd
import streamlit as st

from services.catalog import category_name, list_categories, list_products, product_images

logger = logging.getLogger(__name__)


@st.cache_data(ttl=300, show_spinner=False)
def load_catalog_data(_storage, viewer_id=None):
    """
    Fetches products and categories in one go and stamps the time of the fetch.
    The storage gateway is not hashed (leading underscore); viewer_id is, so each
    signed-in user gets the rows their own token can see.
    """
    products = list_products(_storage)
    categories = list_categories(_storage)
    logger.info(f"Loaded catalog: {len(products)} products, {len(categories)} categories.")
    return products, categories, datetime.now()


def products_dataframe(products, categories):
    """Admin listing: one row per product with the category resolved to its name."""
    if not products:
        return pd.DataFrame(columns=["id", "Produto", "Família", "Imagens", "Criado em"])
    df = pd.DataFrame([
        {
            "id": p.get("id"),
            "Produto": p.get("name"),
            "Família": category_name(categories, p.get("category_id")),
            "Imagens": len(product_images(p)),
            "Criado em": p.get("created_at"),
        }
        for p in products
    ])
    df["Criado em"] = pd.to_datetime(df["Criado em"], errors="coerce", utc=True)
    return df


def categories_dataframe(categories, products):
    if not categories:
        return pd.DataFrame(columns=["id", "Família", "Slug", "Produtos"])
    counts = pd.Series([p.get("category_id") for p in products], dtype="object").value_counts()
    return pd.DataFrame([
        {
            "id": c.get("id"),
            "Família": c.get("name"),
            "Slug": c.get("slug"),
            "Produtos": int(counts.get(c.get("id"), 0)),
        }
        for c in categories
    ])


def ledger_dataframe(entries):
    columns = {
        "entry_date": "Data",
        "user_name": "Vendedor",
        "client": "Cliente",
        "origin": "Origem",
        "status": "Status",
        "order_number": "Pedido",
        "amount_sold": "Vendido",
        "amount_invoiced": "Faturado",
        "observation": "Observação",
    }
    df = pd.DataFrame(entries, columns=list(columns))
    df["A faturar"] = df["amount_sold"].fillna(0) - df["amount_invoiced"].fillna(0)
    return df.rename(columns=columns)
