"""Orphan Reaper — only unreferenced candidates are removed."""

from datetime import datetime, timezone
from decimal import Decimal

from fakes import FakeFormulaStore, FakeRawMaterialStore
from formulary.core.costing import ResolvedLine, build_new_formula
from formulary.services.orphan_reaper import OrphanReaper

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


async def _setup():
    formulas, raw_materials = FakeFormulaStore(), FakeRawMaterialStore()
    water = raw_materials.seed("Water", "2.00")
    aloe = raw_materials.seed("Aloe", "8.00")
    stray = raw_materials.seed("Stray", "1.00")
    await formulas.add(build_new_formula(
        "Toner", [ResolvedLine(water.id, Decimal(100), water.price_per_kg)], NOW,
    ))
    return formulas, raw_materials, OrphanReaper(formulas, raw_materials), (water, aloe, stray)


async def test_referenced_candidates_survive():
    _, raw_materials, reaper, (water, aloe, _) = await _setup()

    removed = await reaper.reap([water.id, aloe.id])

    assert removed == {aloe.id}
    assert raw_materials.names() == {"Water", "Stray"}


async def test_unreferenced_non_candidates_are_left_alone():
    _, raw_materials, reaper, _ = await _setup()

    assert await reaper.reap([]) == set()
    assert "Stray" in raw_materials.names()


async def test_one_failed_delete_does_not_stop_cleanup():
    _, raw_materials, reaper, (_, aloe, stray) = await _setup()
    raw_materials.fail_delete.add(aloe.id)

    removed = await reaper.reap([aloe.id, stray.id])

    assert removed == {stray.id}
    assert raw_materials.names() == {"Water", "Aloe"}


async def test_already_deleted_candidate_is_not_reported():
    _, raw_materials, reaper, (_, aloe, _) = await _setup()
    await raw_materials.delete(aloe.id)

    assert await reaper.reap([aloe.id]) == set()
