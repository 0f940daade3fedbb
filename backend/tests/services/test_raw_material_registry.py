"""Raw Material Registry — get-or-create and the conflict retry.

Invariants:
    - Existing raw materials keep their price
    - A losing creator resolves to the winner's row, never a second row
    - An invisible winner ends in ConflictUnresolvedError after one lookup per delay
"""

from decimal import Decimal

import pytest

from fakes import FakeRawMaterialStore
from formulary.core.errors import ConflictUnresolvedError
from formulary.services.raw_material_registry import RawMaterialRegistry


@pytest.fixture
def store():
    return FakeRawMaterialStore()


@pytest.fixture
def registry(store):
    return RawMaterialRegistry(store, retry_delays_ms=(1, 1, 1))


async def test_existing_raw_material_returned_unchanged(store, registry):
    seeded = store.seed("Water", "2.00")

    record, created = await registry.get_or_create("Water", Decimal("9.99"))

    assert record == seeded
    assert created is False
    assert record.price_per_kg == Decimal("2.00")


async def test_new_raw_material_created_with_rounded_price(store, registry):
    record, created = await registry.get_or_create("Glycerin", Decimal("4.995"))

    assert created is True
    assert record.price_per_kg == Decimal("5.00")
    assert store.names() == {"Glycerin"}


async def test_lost_race_resolves_to_winner(store, registry):
    store.race_on_add["Water"] = Decimal("3.00")

    record, created = await registry.get_or_create("Water", Decimal("2.00"))

    assert created is False
    assert record.price_per_kg == Decimal("3.00")
    assert len(store.rows) == 1


async def test_invisible_winner_raises_conflict_unresolved(store, registry):
    store.race_on_add["Water"] = Decimal("3.00")
    store.invisible.add("Water")

    with pytest.raises(ConflictUnresolvedError) as exc_info:
        await registry.get_or_create("Water", Decimal("2.00"))

    assert exc_info.value.attempts == 3
    assert store.lookups == 1 + 3


async def test_retry_count_follows_configured_delays(store):
    registry = RawMaterialRegistry(store, retry_delays_ms=(1,))
    store.race_on_add["Water"] = Decimal("3.00")
    store.invisible.add("Water")

    with pytest.raises(ConflictUnresolvedError):
        await registry.get_or_create("Water", Decimal("2.00"))

    assert store.lookups == 2


async def test_other_store_errors_propagate(store, registry, monkeypatch):
    async def broken_add(*args):
        raise RuntimeError("disk full")

    monkeypatch.setattr(store, "add", broken_add)
    with pytest.raises(RuntimeError):
        await registry.get_or_create("Water", Decimal("2.00"))
