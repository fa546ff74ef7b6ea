"""Tests for the category service use cases."""

import pytest
from unittest.mock import AsyncMock
from category_admin.core.exceptions import CategoryValidationError, CategoryDeleteFailed
from category_admin.schemas.category import CategoryCreate, CategoryUpdate
from category_admin.schemas.content import ContentCreate
from category_admin.services.cache import CacheFront, CacheKeys
from category_admin.services.category_service import CategoryService, UNCATEGORIZED_NAME
from test_cache import failing_backend


async def create(service, *names):
    return [await service.create_category(CategoryCreate(name=name)) for name in names]


@pytest.mark.unit
class TestCreate:
    @pytest.mark.asyncio
    async def test_create_assigns_dense_positions(self, service):
        created = await create(service, "A", "B", "C")

        assert [c.position for c in created] == [1, 2, 3]
        assert [c.position for c in await service.list_categories()] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_create_trims_name_and_defaults(self, service):
        category = await service.create_category(CategoryCreate(name="  Music  "))

        assert category.name == "Music"
        assert category.active is True
        assert category.content_count == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", [None, "", "   "])
    async def test_create_rejects_missing_or_blank_name(self, service, events, name):
        with pytest.raises(CategoryValidationError):
            await service.create_category(CategoryCreate(name=name))

        assert service.store.find_all() == []
        assert events == []

    @pytest.mark.asyncio
    async def test_create_rejects_duplicate_name(self, service):
        await create(service, "News")

        with pytest.raises(CategoryValidationError):
            await service.create_category(CategoryCreate(name="News"))

    @pytest.mark.asyncio
    async def test_create_emits_event_and_invalidates_list(self, service, cache, events):
        await service.list_categories()
        await create(service, "A")
        assert await cache.get(CacheKeys.CATEGORY_ALL) is None

        await create(service, "B")

        assert [e.type for e in events] == ["created", "created"]
        assert [c.name for c in await service.list_categories()] == ["A", "B"]


@pytest.mark.unit
class TestReads:
    @pytest.mark.asyncio
    async def test_list_backfills_content_counts(self, service, content_for):
        a, b = await create(service, "A", "B")
        content_for(a.id, 2)

        listed = {c.name: c.content_count for c in await service.list_categories()}

        assert listed == {"A": 2, "B": 0}

    @pytest.mark.asyncio
    async def test_list_twice_returns_identical_counts(self, service, content_for, cache):
        (a,) = await create(service, "A")
        content_for(a.id, 3)

        first = await service.list_categories()
        second = await service.list_categories()

        assert [c.content_count for c in first] == [c.content_count for c in second] == [3]
        assert await cache.get(CacheKeys.CATEGORY_ALL) is not None

    @pytest.mark.asyncio
    async def test_get_reads_through_cache(self, service, cache, content_for):
        (a,) = await create(service, "A")
        content_for(a.id, 1)

        fetched = await service.get_category(a.id)

        assert fetched.content_count == 1
        assert (await cache.get(CacheKeys.category_by_id(a.id)))["name"] == "A"

    @pytest.mark.asyncio
    async def test_get_unknown_returns_none(self, service, cache):
        assert await service.get_category("missing") is None
        assert await cache.get(CacheKeys.category_by_id("missing")) is None

    @pytest.mark.asyncio
    async def test_reads_survive_cache_failures(self, store, ledger, bus):
        service = CategoryService(store, ledger, CacheFront(failing_backend()), bus)
        await create(service, "A", "B")

        assert [c.name for c in await service.list_categories()] == ["A", "B"]

    @pytest.mark.asyncio
    async def test_search_matches_name_and_description(self, service):
        await service.create_category(CategoryCreate(name="Rock", description="Guitars"))
        await service.create_category(CategoryCreate(name="Jazz", description="Saxophone"))

        assert [c.name for c in await service.search_categories("rock")] == ["Rock"]
        assert [c.name for c in await service.search_categories("SAX")] == ["Jazz"]
        assert await service.search_categories("polka") == []

    @pytest.mark.asyncio
    async def test_search_results_refresh_after_update(self, service):
        (rock,) = await create(service, "Rock")
        assert len(await service.search_categories("rock")) == 1

        await service.update_category(rock.id, CategoryUpdate(name="Metal"))

        assert await service.search_categories("rock") == []


@pytest.mark.unit
class TestUpdate:
    @pytest.mark.asyncio
    async def test_update_applies_only_provided_fields(self, service, events):
        category = await service.create_category(
            CategoryCreate(name="A", description="desc", icon_url="/a.png")
        )

        updated = await service.update_category(category.id, CategoryUpdate(description="new"))

        assert updated.name == "A"
        assert updated.description == "new"
        assert updated.icon_url == "/a.png"
        assert events[-1].type == "updated"

    @pytest.mark.asyncio
    async def test_update_invalidates_cached_entries(self, service, cache):
        (a,) = await create(service, "A")
        await service.get_category(a.id)
        await service.list_categories()

        await service.update_category(a.id, CategoryUpdate(name="Renamed"))

        assert (await service.get_category(a.id)).name == "Renamed"
        assert [c.name for c in await service.list_categories()] == ["Renamed"]

    @pytest.mark.asyncio
    async def test_update_unknown_returns_none_without_event(self, service, events):
        assert await service.update_category("missing", CategoryUpdate(name="x")) is None
        assert events == []

    @pytest.mark.asyncio
    async def test_update_rejects_blank_or_taken_name(self, service):
        a, _ = await create(service, "A", "B")

        with pytest.raises(CategoryValidationError):
            await service.update_category(a.id, CategoryUpdate(name="  "))
        with pytest.raises(CategoryValidationError):
            await service.update_category(a.id, CategoryUpdate(name="B"))

        # Renaming to its own name is fine
        assert (await service.update_category(a.id, CategoryUpdate(name="A"))).name == "A"


@pytest.mark.unit
class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_without_target_creates_uncategorized(self, service, events):
        a, b = await create(service, "A", "B")

        result = await service.delete_category(a.id)

        listed = await service.list_categories()
        assert [(c.name, c.position) for c in listed] == [("B", 1), (UNCATEGORIZED_NAME, 2)]
        uncategorized = listed[1]
        assert uncategorized.description == "Auto-created"
        assert result.reassigned_to == uncategorized.id
        assert result.moved == 0
        assert events[-1].type == "deleted"
        assert events[-1].reassigned_to == uncategorized.id

    @pytest.mark.asyncio
    async def test_uncategorized_is_reused(self, service):
        a, b, c = await create(service, "A", "B", "C")

        first = await service.delete_category(a.id)
        second = await service.delete_category(b.id)

        assert first.reassigned_to == second.reassigned_to
        names = [x.name for x in await service.list_categories()]
        assert names.count(UNCATEGORIZED_NAME) == 1
        assert [x.position for x in await service.list_categories()] == [1, 2]

    @pytest.mark.asyncio
    async def test_delete_moves_all_content_to_target(self, service, ledger, content_for):
        a, b = await create(service, "A", "B")
        content_for(a.id, 3)
        content_for(b.id, 1)
        await service.list_categories()

        result = await service.delete_category(a.id, reassign_to=b.id)

        assert result.moved == 3
        assert result.reassigned_to == b.id
        assert ledger.count_by_category(a.id) == 0
        listed = await service.list_categories()
        assert [(c.name, c.content_count) for c in listed] == [("B", 4)]
        assert service.store.find_by_id(b.id).content_count == 4

    @pytest.mark.asyncio
    async def test_delete_unknown_returns_none(self, service, events):
        assert await service.delete_category("missing") is None
        assert events == []

    @pytest.mark.asyncio
    async def test_delete_rejects_bad_targets(self, service):
        (a,) = await create(service, "A")

        with pytest.raises(CategoryValidationError):
            await service.delete_category(a.id, reassign_to=a.id)
        with pytest.raises(CategoryValidationError):
            await service.delete_category(a.id, reassign_to="missing")

        assert service.store.find_by_id(a.id) is not None

    @pytest.mark.asyncio
    async def test_deleting_uncategorized_needs_explicit_target(self, service):
        (a,) = await create(service, "A")
        result = await service.delete_category(a.id)

        with pytest.raises(CategoryValidationError):
            await service.delete_category(result.reassigned_to)

    @pytest.mark.asyncio
    async def test_delete_failure_is_reported(self, service, monkeypatch):
        a, b = await create(service, "A", "B")
        monkeypatch.setattr(service.store, "delete", lambda category_id: False)

        with pytest.raises(CategoryDeleteFailed):
            await service.delete_category(a.id, reassign_to=b.id)

    @pytest.mark.asyncio
    async def test_failed_delete_still_refreshes_cached_list(self, service, monkeypatch):
        (a,) = await create(service, "A")
        await service.list_categories()
        monkeypatch.setattr(service.store, "delete", lambda category_id: False)

        with pytest.raises(CategoryDeleteFailed):
            await service.delete_category(a.id)

        listed = [c.name for c in await service.list_categories()]
        assert listed == [c.name for c in service.store.find_all()]
        assert listed == ["A", UNCATEGORIZED_NAME]

    @pytest.mark.asyncio
    async def test_delete_refreshes_cached_positions_of_later_categories(self, service):
        a, b, c = await create(service, "A", "B", "C")
        assert (await service.get_category(c.id)).position == 3

        await service.delete_category(a.id, reassign_to=b.id)

        listed = {x.id: x.position for x in await service.list_categories()}
        assert (await service.get_category(c.id)).position == listed[c.id] == 2

    @pytest.mark.asyncio
    async def test_delete_invalidates_both_ids(self, service, cache):
        a, b = await create(service, "A", "B")
        await service.get_category(a.id)
        await service.get_category(b.id)

        await service.delete_category(a.id, reassign_to=b.id)

        assert await cache.get(CacheKeys.category_by_id(a.id)) is None
        assert await cache.get(CacheKeys.category_by_id(b.id)) is None


@pytest.mark.unit
class TestToggle:
    @pytest.mark.asyncio
    async def test_enable_and_disable(self, service, events):
        (a,) = await create(service, "A")

        disabled = await service.disable_category(a.id)
        enabled = await service.enable_category(a.id)

        assert disabled.active is False
        assert enabled.active is True
        assert [e.type for e in events] == ["created", "disabled", "enabled"]

    @pytest.mark.asyncio
    async def test_toggle_unknown_emits_nothing(self, service, events):
        service.cache.delete_many = AsyncMock()

        assert await service.enable_category("missing") is None
        assert await service.disable_category("missing") is None

        assert events == []
        service.cache.delete_many.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bulk_toggle_mixed_ids(self, service, events):
        a, b, c = await create(service, "A", "B", "C")

        updated = await service.bulk_toggle([a.id, "missing", c.id], False)

        assert sorted(x.name for x in updated) == ["A", "C"]
        assert service.store.find_by_id(b.id).active is True
        assert events[-1].type == "bulk-toggle"
        assert events[-1].active is False
        assert len(events[-1].categories) == 2

    @pytest.mark.asyncio
    async def test_bulk_toggle_invalidates_every_requested_id(self, service):
        (a,) = await create(service, "A")
        service.cache.delete_many = AsyncMock()

        await service.bulk_toggle([a.id, "ghost"], True)

        keys = service.cache.delete_many.await_args.args[0]
        assert CacheKeys.category_by_id(a.id) in keys
        assert CacheKeys.category_by_id("ghost") in keys


@pytest.mark.unit
class TestReorder:
    @pytest.mark.asyncio
    async def test_reorder_emits_full_list(self, service, events):
        a, b, c = await create(service, "A", "B", "C")

        result = await service.reorder_categories([c.id])

        assert [x.name for x in result] == ["C", "A", "B"]
        assert events[-1].type == "reordered"
        assert events[-1].order == [c.id]
        assert [x.name for x in events[-1].categories] == ["C", "A", "B"]

    @pytest.mark.asyncio
    async def test_reorder_clears_category_namespace(self, service, cache):
        a, b = await create(service, "A", "B")
        await service.list_categories()
        await service.get_category(a.id)

        await service.reorder_categories([b.id, a.id])

        assert await cache.get(CacheKeys.CATEGORY_ALL) is None
        assert await cache.get(CacheKeys.category_by_id(a.id)) is None
        assert [x.name for x in await service.list_categories()] == ["B", "A"]

    @pytest.mark.asyncio
    async def test_empty_reorder_keeps_order(self, service):
        await create(service, "A", "B", "C")

        result = await service.reorder_categories([])

        assert [(x.name, x.position) for x in result] == [("A", 1), ("B", 2), ("C", 3)]


@pytest.mark.unit
class TestContent:
    @pytest.mark.asyncio
    async def test_add_content_updates_count(self, service, events):
        (a,) = await create(service, "A")
        await service.list_categories()

        item = await service.add_content(a.id, ContentCreate(title="Intro"))

        assert item.category_id == a.id
        assert (await service.list_categories())[0].content_count == 1
        assert [c.title for c in await service.list_content(a.id)] == ["Intro"]
        assert events[-1].type == "updated"
        assert events[-1].category.content_count == 1

    @pytest.mark.asyncio
    async def test_content_for_unknown_category(self, service):
        assert await service.list_content("missing") is None
        assert await service.add_content("missing", ContentCreate(title="x")) is None


@pytest.mark.unit
class TestSubscribers:
    @pytest.mark.asyncio
    async def test_throwing_subscriber_does_not_block_others(self, service, bus):
        received = []

        def explode(event):
            raise RuntimeError("boom")

        bus.subscribe(explode)
        bus.subscribe(received.append)

        category = await service.create_category(CategoryCreate(name="A"))

        assert category.name == "A"
        assert [e.type for e in received] == ["created"]
