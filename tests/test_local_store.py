import json

import pytest

from careguard.database.local_store import LocalFallbackStore
from careguard.error_handler import RecordNotFoundError
from careguard.integrations.contracts.interfaces import RecordType


@pytest.mark.asyncio
async def test_first_use_seeds_and_persists(local_backend, cache):
    products = await local_backend.list(RecordType.PRODUCT)
    categories = await local_backend.list(RecordType.CATEGORY)
    inquiries = await local_backend.list(RecordType.INQUIRY)

    assert len(products) == 6
    assert {c.payload["name"] for c in categories} == {"Sterile", "Protective", "Consumables", "Custom"}
    assert inquiries == []
    for key in ("careguard_products", "careguard_categories", "careguard_inquiries"):
        assert isinstance(json.loads(cache.load(key)), list)


@pytest.mark.asyncio
async def test_insert_assigns_next_sequence_id(local_backend):
    row = await local_backend.insert(RecordType.CATEGORY, {"name": "Isolation"})
    assert row.id == "11"
    assert row.created_at is not None
    again = await local_backend.insert(RecordType.INQUIRY, {"name": "Ann"})
    assert again.id == "12"


@pytest.mark.asyncio
async def test_persisted_blob_is_reloaded_by_new_instance(seed, cache, local_backend):
    await local_backend.insert(RecordType.CATEGORY, {"name": "Isolation"})

    reopened = LocalFallbackStore(seed, persistence=cache)
    names = [r.payload["name"] for r in await reopened.list(RecordType.CATEGORY)]
    assert "Isolation" in names


@pytest.mark.asyncio
async def test_legacy_string_categories_get_ids(seed, cache):
    cache.save("careguard_categories", json.dumps(["Sterile", "Custom"]))
    store = LocalFallbackStore(seed, persistence=cache)

    rows = await store.list(RecordType.CATEGORY)
    assert [r.payload for r in rows] == [{"name": "Sterile"}, {"name": "Custom"}]
    assert all(r.id for r in rows)
    assert len({r.id for r in rows}) == 2
    # rewritten in the current shape
    assert all(isinstance(e, dict) for e in json.loads(cache.load("careguard_categories")))


@pytest.mark.asyncio
async def test_custom_namespace_changes_keys(seed, cache):
    store = LocalFallbackStore(seed, persistence=cache, namespace="demo")
    await store.list(RecordType.PRODUCT)
    assert cache.load("demo_products") is not None
    assert cache.load("careguard_products") is None


@pytest.mark.asyncio
async def test_update_and_delete_unknown_ids_raise(local_backend):
    with pytest.raises(RecordNotFoundError):
        await local_backend.update("999", {"name": "x"})
    with pytest.raises(RecordNotFoundError):
        await local_backend.delete("999")


@pytest.mark.asyncio
async def test_list_returns_copies(local_backend):
    rows = await local_backend.list(RecordType.PRODUCT)
    rows[0].payload["name"] = "changed"
    fresh = await local_backend.list(RecordType.PRODUCT)
    assert fresh[0].payload["name"] != "changed"


@pytest.mark.asyncio
async def test_reset_restores_seed_but_keeps_inquiries(local_backend):
    await local_backend.delete("1")
    await local_backend.insert(RecordType.INQUIRY, {"name": "Ann"})

    await local_backend.reset()

    products = await local_backend.list(RecordType.PRODUCT)
    assert len(products) == 6
    assert len(await local_backend.list(RecordType.INQUIRY)) == 1


@pytest.mark.asyncio
async def test_runs_without_persistence(seed):
    store = LocalFallbackStore(seed)
    await store.insert(RecordType.PRODUCT, {"name": "Cap", "category": "Custom"})
    assert len(await store.list(RecordType.PRODUCT)) == 7
