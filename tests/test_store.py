# tests/test_store.py
import asyncio

import pytest

from app.database import InMemoryProductStore, open_store
from app.errors import NotFound, StoreError, ValidationError
from app.models import ProductFilter
from app.sql_store import SqlProductStore


@pytest.fixture(params=["memory", "sql"])
def store(request, tmp_path):
    if request.param == "memory":
        yield InMemoryProductStore()
        return
    sql = SqlProductStore.connect(f"sqlite:///{tmp_path / 'inventory.db'}")
    yield sql
    sql.engine.dispose()


def run(coro):
    return asyncio.run(coro)


def test_insert_assigns_id_and_defaults(store):
    product = run(store.insert({"name": " Widget "}))
    assert product.id
    assert product.name == "Widget"
    assert product.category == "Uncategorized"
    assert product.stock == 0
    assert product.price == 0
    assert product.created_at == product.updated_at
    assert product.created_at.tzinfo is not None


@pytest.mark.parametrize(
    "fields",
    [
        {"name": "x", "stock": -1},
        {"name": "x", "stock": 1.5},
        {"name": "x", "price": -2},
        {"name": "x" * 201},
        {"name": "x", "category": "c" * 121},
        {"name": "x", "stock": 2**63},
        {"category": "no name"},
    ],
)
def test_insert_rejects_constraint_violations(store, fields):
    with pytest.raises(ValidationError):
        run(store.insert(fields))


def test_get_missing(store):
    with pytest.raises(NotFound):
        run(store.get_by_id("missing"))


def test_query_filters_and_orders(store):
    async def scenario():
        await store.insert({"name": "Hammer", "category": "Tools", "stock": 5})
        await store.insert({"name": "Saw", "category": "Tools", "stock": 12})
        await store.insert({"name": "Toolbox 50%", "category": "Storage", "stock": 8})
        return (
            await store.query(ProductFilter()),
            await store.query(ProductFilter(text="tool")),
            await store.query(ProductFilter(text="50%")),
            await store.query(ProductFilter(category="Tools", min_stock=6)),
            await store.query(ProductFilter(max_stock=8)),
        )

    everything, text, literal, ranged, upper = run(scenario())
    assert [p.name for p in everything] == ["Toolbox 50%", "Saw", "Hammer"]
    assert {p.name for p in text} == {"Hammer", "Saw", "Toolbox 50%"}
    assert [p.name for p in literal] == ["Toolbox 50%"]
    assert [p.name for p in ranged] == ["Saw"]
    assert {p.name for p in upper} == {"Hammer", "Toolbox 50%"}


def test_replace_overwrites_and_keeps_identity(store):
    async def scenario():
        product = await store.insert({"name": "Hammer", "category": "Tools", "stock": 5, "price": 3})
        replaced = await store.replace(product.id, {"name": "Mallet"})
        return product, replaced

    product, replaced = run(scenario())
    assert replaced.id == product.id
    assert replaced.created_at == product.created_at
    assert replaced.updated_at >= product.updated_at
    assert (replaced.name, replaced.category, replaced.stock, replaced.price) == ("Mallet", "Uncategorized", 0, 0)


def test_replace_and_patch_missing(store):
    with pytest.raises(NotFound):
        run(store.replace("missing", {"name": "x"}))
    with pytest.raises(NotFound):
        run(store.patch("missing", {"stock": 1}))


def test_patch_touches_only_given_fields(store):
    async def scenario():
        product = await store.insert({"name": "Hammer", "stock": 5, "price": 3})
        return await store.patch(product.id, {"category": "Tools"})

    patched = run(scenario())
    assert (patched.name, patched.category, patched.stock, patched.price) == ("Hammer", "Tools", 5, 3)


def test_patch_revalidates(store):
    async def scenario():
        product = await store.insert({"name": "Hammer", "stock": 5})
        with pytest.raises(ValidationError):
            await store.patch(product.id, {"stock": -3})
        return await store.get_by_id(product.id)

    assert run(scenario()).stock == 5


def test_apply_stock_delta(store):
    async def scenario():
        product = await store.insert({"name": "Hammer", "stock": 3})
        up = await store.apply_stock_delta(product.id, 5)
        down = await store.apply_stock_delta(product.id, -100)
        return up, down

    up, down = run(scenario())
    assert up.stock == 8
    assert down.stock == 0


def test_apply_stock_delta_missing(store):
    with pytest.raises(NotFound):
        run(store.apply_stock_delta("missing", 1))


def test_concurrent_deltas_are_atomic(store):
    async def scenario():
        product = await store.insert({"name": "Hammer", "stock": 0})
        await asyncio.gather(*(store.apply_stock_delta(product.id, 1) for _ in range(25)))
        return await store.get_by_id(product.id)

    assert run(scenario()).stock == 25


def test_delete(store):
    async def scenario():
        product = await store.insert({"name": "Hammer"})
        return await store.delete(product.id), await store.delete(product.id)

    assert run(scenario()) == (True, False)


def test_open_store_requires_url():
    with pytest.raises(StoreError):
        open_store(None)
    with pytest.raises(StoreError):
        open_store("")


def test_open_store_picks_backend():
    assert isinstance(open_store("memory://"), InMemoryProductStore)
    sql = open_store("sqlite://")
    assert isinstance(sql, SqlProductStore)
    sql.engine.dispose()


def test_open_store_unreachable_backend():
    with pytest.raises(StoreError):
        open_store("sqlite:////nonexistent-dir/inventory.db")


def test_stock_holds_the_full_bigint_range(store):
    async def scenario():
        product = await store.insert({"name": "Bulk", "stock": 3_000_000_000})
        top = await store.apply_stock_delta(product.id, 2**63 - 1 - 3_000_000_000)
        with pytest.raises(ValidationError):
            await store.apply_stock_delta(product.id, 1)
        return top, await store.get_by_id(product.id)

    top, after = run(scenario())
    assert top.stock == 2**63 - 1
    assert after.stock == 2**63 - 1


def test_missing_ids_leave_no_locks():
    memory = InMemoryProductStore()

    async def scenario():
        for i in range(50):
            for call in (
                memory.apply_stock_delta(f"missing-{i}", 1),
                memory.replace(f"missing-{i}", {"name": "x"}),
                memory.patch(f"missing-{i}", {"stock": 1}),
            ):
                with pytest.raises(NotFound):
                    await call
            assert await memory.delete(f"missing-{i}") is False
        product = await memory.insert({"name": "Hammer"})
        await memory.apply_stock_delta(product.id, 1)
        await memory.delete(product.id)

    run(scenario())
    assert memory._locks == {}
