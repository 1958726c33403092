"""Unit tests for the table bootstrap script."""

import pytest
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import create_async_engine

from services.marketplace_service import init_db as init_db_module


@pytest.mark.asyncio
@pytest.mark.unit
async def test_init_db_creates_every_table(monkeypatch, tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'marketplace.db'}"
    monkeypatch.setattr(init_db_module, "engine", create_async_engine(url))

    await init_db_module.init_db()

    engine = create_async_engine(url)
    async with engine.connect() as conn:
        tables = await conn.run_sync(lambda c: inspect(c).get_table_names())
    await engine.dispose()
    assert {
        "users",
        "products",
        "reviews",
        "carts",
        "cart_items",
        "orders",
        "order_items",
        "promotions",
        "subscriptions",
    } <= set(tables)
