import pytest

from careguard.error_handler import ConfigurationError, ConnectivityError
from careguard.integrations.contracts.interfaces import CatalogBackend, Origin, RecordType
from careguard.integrations.policy.reconciliation import CatalogStore, SyncStatus
from careguard.integrations.policy.response_wrappers import IntegrationResponseError


@pytest.mark.asyncio
async def test_empty_remote_substitutes_seed_products_and_categories(remote_store):
    await remote_store.ensure_loaded()

    assert remote_store.configured is True
    assert remote_store.connected is True
    assert len(remote_store.products) == 6
    assert len(remote_store.categories) == 4
    assert all(p.origin == Origin.LOCAL for p in remote_store.products)
    assert remote_store.inquiries == []
    assert remote_store.status_snapshot()["banner"] is None


@pytest.mark.asyncio
async def test_seed_substitution_is_per_type(remote_store, sql_backend):
    await sql_backend.insert(RecordType.CATEGORY, {"name": "Isolation"})

    await remote_store.reload()

    assert [c.name for c in remote_store.categories] == ["Isolation"]
    assert len(remote_store.products) == 6


@pytest.mark.asyncio
async def test_write_goes_remote_then_reloads(seeded_remote_store, flaky_backend):
    created = await seeded_remote_store.add_product({"name": "Nitrile Gloves", "category": "Consumables"})

    assert created.origin == Origin.REMOTE
    assert flaky_backend.writes == ["insert:product:"]
    assert seeded_remote_store.get_product(created.id) is not None
    assert len(seeded_remote_store.products) == 7
    assert seeded_remote_store.status == SyncStatus.IDLE


@pytest.mark.asyncio
async def test_updating_seed_record_promotes_all_seed_products(remote_store, flaky_backend, sql_backend):
    await remote_store.ensure_loaded()

    updated = await remote_store.update_product("2", {"name": "Scrubs Pro", "category": "Custom"})

    assert sorted(flaky_backend.writes[:-1]) == [f"insert:product:{i}" for i in "123456"]
    assert flaky_backend.writes[-1] == "update:2"
    assert updated.id == "2"
    assert updated.name == "Scrubs Pro"
    assert updated.origin == Origin.REMOTE
    rows = await sql_backend.list(RecordType.PRODUCT)
    assert {r.id for r in rows} == {"1", "2", "3", "4", "5", "6"}
    assert len(remote_store.products) == 6
    assert all(c.origin == Origin.LOCAL for c in remote_store.categories)


@pytest.mark.asyncio
async def test_adding_product_to_empty_remote_keeps_seed_products(remote_store):
    await remote_store.ensure_loaded()

    await remote_store.add_product({"name": "Nitrile Gloves", "category": "Consumables"})

    assert len(remote_store.products) == 7
    assert all(p.origin == Origin.REMOTE for p in remote_store.products)


@pytest.mark.asyncio
async def test_sterile_deletion_on_empty_remote(remote_store, sql_backend):
    await remote_store.ensure_loaded()
    sterile = remote_store.find_category("Sterile")

    fallback = await remote_store.delete_category(sterile.id)

    assert fallback == "Consumables"
    assert remote_store.find_category("Sterile") is None
    assert [c.name for c in remote_store.categories] == ["Consumables", "Custom", "Protective"]
    assert len(remote_store.products) == 6
    assert remote_store.get_product("1").category == "Consumables"
    assert remote_store.list_products(category="Sterile") == []
    assert len(await sql_backend.list(RecordType.CATEGORY)) == 3
    assert len(await sql_backend.list(RecordType.PRODUCT)) == 6


@pytest.mark.asyncio
async def test_deleting_seed_product_on_empty_remote_keeps_the_rest(remote_store):
    await remote_store.ensure_loaded()

    await remote_store.delete_product("4")

    assert remote_store.get_product("4") is None
    assert len(remote_store.products) == 5


@pytest.mark.asyncio
async def test_remote_listings_are_in_name_order(seeded_remote_store):
    await seeded_remote_store.add_product({"name": "aardvark apron", "category": "Custom"})

    names = [p.name for p in seeded_remote_store.products]
    assert names[0] == "aardvark apron"
    assert names == sorted(names, key=str.lower)
    assert [c.name for c in seeded_remote_store.categories] == ["Consumables", "Custom", "Protective", "Sterile"]


@pytest.mark.asyncio
async def test_update_of_remote_record_has_no_duplicates(seeded_remote_store, flaky_backend):
    await seeded_remote_store.ensure_loaded()

    await seeded_remote_store.update_product("3", {"name": "Full Isolation PPE Kit", "category": "Sterile"})

    assert flaky_backend.writes == ["update:3"]
    ids = [p.id for p in seeded_remote_store.products]
    assert len(ids) == len(set(ids)) == 6
    assert seeded_remote_store.get_product("3").category == "Sterile"


@pytest.mark.asyncio
async def test_sterile_deletion_in_remote_mode(seeded_remote_store):
    await seeded_remote_store.add_product({"name": "Sterile Drape", "category": "Sterile"})

    fallback = await seeded_remote_store.delete_category("7")

    assert fallback == "Consumables"
    assert seeded_remote_store.list_products(category="Sterile") == []
    assert len(seeded_remote_store.list_products(category="Consumables")) == 3
    assert seeded_remote_store.find_category("Sterile") is None


@pytest.mark.asyncio
async def test_network_failure_on_first_read_falls_back_to_seed(remote_store, flaky_backend):
    flaky_backend.down = True

    await remote_store.ensure_loaded()

    assert len(remote_store.products) == 6
    assert remote_store.offline is True
    assert remote_store.connected is False
    assert remote_store.status_snapshot()["banner"]["prompt"] == "offline"


@pytest.mark.asyncio
async def test_network_failure_keeps_last_known_good(seeded_remote_store, flaky_backend):
    await seeded_remote_store.add_product({"name": "Nitrile Gloves", "category": "Consumables"})
    flaky_backend.down = True

    await seeded_remote_store.reload()

    assert len(seeded_remote_store.products) == 7
    assert any(p.name == "Nitrile Gloves" for p in seeded_remote_store.products)
    assert seeded_remote_store.offline is True


@pytest.mark.asyncio
async def test_mutation_while_unreachable_raises_and_leaves_state(seeded_remote_store, flaky_backend):
    await seeded_remote_store.ensure_loaded()
    before = [p.id for p in seeded_remote_store.products]
    flaky_backend.down = True

    with pytest.raises(ConnectivityError):
        await seeded_remote_store.add_product({"name": "Face Shield", "category": "Protective"})

    assert [p.id for p in seeded_remote_store.products] == before
    assert seeded_remote_store.offline is True
    assert seeded_remote_store.status == SyncStatus.IDLE
    assert seeded_remote_store.last_error.kind == "connectivity"


@pytest.mark.asyncio
async def test_recovery_clears_offline_flag(seeded_remote_store, flaky_backend):
    flaky_backend.down = True
    await seeded_remote_store.ensure_loaded()
    assert seeded_remote_store.offline is True

    flaky_backend.down = False
    await seeded_remote_store.reload()

    assert seeded_remote_store.offline is False
    assert seeded_remote_store.last_error is None


@pytest.mark.asyncio
async def test_next_read_after_outage_resyncs(remote_store, flaky_backend):
    flaky_backend.down = True
    await remote_store.ensure_loaded()
    assert remote_store.offline is True

    flaky_backend.down = False
    await remote_store.ensure_loaded()

    assert remote_store.offline is False
    assert remote_store.connected is True
    assert remote_store.status_snapshot()["banner"] is None
    assert len(remote_store.list_products()) == 6


@pytest.mark.asyncio
async def test_stale_view_picks_up_external_writes(seeded_remote_store, sql_backend):
    await seeded_remote_store.ensure_loaded()
    await sql_backend.insert(RecordType.PRODUCT, {"name": "Face Shield", "category": "Protective"})

    await seeded_remote_store.ensure_loaded()
    assert len(seeded_remote_store.products) == 6

    seeded_remote_store.refresh_seconds = 0
    await seeded_remote_store.ensure_loaded()
    assert [p.name for p in seeded_remote_store.list_products(search="shield")] == ["Face Shield"]


class _RejectSecondUpdate(CatalogBackend):
    origin = Origin.REMOTE

    def __init__(self, inner: CatalogBackend):
        self.inner = inner
        self.updates = 0

    async def list(self, record_type, *, access_token=None):
        return await self.inner.list(record_type, access_token=access_token)

    async def insert(self, record_type, payload, *, record_id=None, access_token=None):
        return await self.inner.insert(record_type, payload, record_id=record_id, access_token=access_token)

    async def update(self, record_id, payload, *, access_token=None):
        self.updates += 1
        if self.updates == 2:
            raise IntegrationResponseError("row rejected")
        return await self.inner.update(record_id, payload, access_token=access_token)

    async def delete(self, record_id, *, access_token=None):
        return await self.inner.delete(record_id, access_token=access_token)


@pytest.mark.asyncio
async def test_partial_category_delete_resyncs_view(seeded_remote_store, sql_backend, seed):
    store = CatalogStore(_RejectSecondUpdate(sql_backend), seed)
    await store.ensure_loaded()
    protective = store.find_category("Protective")

    with pytest.raises(IntegrationResponseError):
        await store.delete_category(protective.id)

    assert store.find_category("Protective") is not None
    assert len(store.list_products(category="Protective")) == 1
    assert len(store.list_products(category="Consumables")) == 2
    assert store.last_error.kind == "bad_response"
    assert store.offline is False
    assert store.status == SyncStatus.IDLE


class _MissingTableBackend(CatalogBackend):
    origin = Origin.REMOTE

    async def list(self, record_type, *, access_token=None):
        raise ConfigurationError("relation careguard does not exist")

    async def insert(self, record_type, payload, *, record_id=None, access_token=None):
        raise ConfigurationError("relation careguard does not exist")

    async def update(self, record_id, payload, *, access_token=None):
        raise ConfigurationError("relation careguard does not exist")

    async def delete(self, record_id, *, access_token=None):
        raise ConfigurationError("relation careguard does not exist")


@pytest.mark.asyncio
async def test_missing_table_shows_setup_prompt(seed):
    store = CatalogStore(_MissingTableBackend(), seed)
    await store.ensure_loaded()

    assert store.offline is False
    assert len(store.products) == 6
    assert store.status_snapshot()["banner"]["prompt"] == "setup"

    with pytest.raises(ConfigurationError):
        await store.add_category("Isolation")


@pytest.mark.asyncio
async def test_remote_inquiry_and_csv_export(seeded_remote_store):
    await seeded_remote_store.add_inquiry(
        {"productId": "1", "name": "Ann", "email": "ann@x.io", "quantity": "500",
         "requirement": "Bulk Case", "message": 'Say "hi"'}
    )

    csv_text = seeded_remote_store.export_inquiries_csv()
    lines = csv_text.splitlines()
    assert len(lines) == 2
    assert lines[1].endswith('"Say ""hi"""')
    assert ",Premium Surgical Gown,Ann,ann@x.io,,500,Bulk Case," in lines[1]


@pytest.mark.asyncio
async def test_reset_in_remote_mode_only_reloads(seeded_remote_store, flaky_backend):
    await seeded_remote_store.ensure_loaded()
    await seeded_remote_store.reset()
    assert flaky_backend.writes == []
    assert len(seeded_remote_store.products) == 6
