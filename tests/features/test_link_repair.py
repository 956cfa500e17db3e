import pytest

from ark_backend.features.references.index_builder import ReferenceIndexBuilder
from ark_backend.features.references.rewriter import ReferenceRewriter
from ark_backend.features.repair.service import LinkRepairer, PathShiftRule, PathShiftRules


def _repairer(documents, asset_store, rules=None):
    builder = ReferenceIndexBuilder(documents, asset_store)
    return LinkRepairer(builder, asset_store, ReferenceRewriter(documents), rules)


def test_path_shift_rules():
    rules = PathShiftRules({"deadlands/": "assets/deadlands/"})

    assert rules.shift("deadlands/maps/town.jpg") == "assets/deadlands/maps/town.jpg"
    assert rules.shift("foo/bar.png") == "assets/foo/bar.png"
    assert rules.shift("assets/foo/bar.png") is None
    assert rules.shift("modules/x/icon.png") is None
    assert rules.shift("systems/y/icon.png") is None


def test_path_shift_rules_first_match_wins():
    rules = PathShiftRules(
        [PathShiftRule("old/", "assets/new/"), PathShiftRule("old/maps/", "assets/maps/")],
        asset_root="",
    )

    assert rules.shift("old/maps/a.png") == "assets/new/maps/a.png"
    assert rules.shift("other/a.png") is None


@pytest.mark.asyncio
async def test_prefix_shift_is_repaired(documents, asset_store):
    actor = documents.add("Actor", "X", {"img": "foo/bar.png"})
    asset_store.files["assets/foo/bar.png"] = b"png"

    repaired = await _repairer(documents, asset_store).repair_broken_links()

    assert repaired == 1
    assert actor.data["img"] == "assets/foo/bar.png"


@pytest.mark.asyncio
async def test_legacy_rule_is_repaired(documents, asset_store):
    scene = documents.add("Scene", "Fort", {"background": {"src": "deadlands/fort.jpg"}})
    asset_store.files["assets/deadlands/fort.jpg"] = b"jpg"

    repaired = await _repairer(documents, asset_store).repair_broken_links()

    assert repaired == 1
    assert scene.data["background"]["src"] == "assets/deadlands/fort.jpg"


@pytest.mark.asyncio
async def test_transcoded_sibling_is_used_when_original_is_gone(documents, asset_store):
    actor = documents.add("Actor", "Hero", {"img": "assets/hero.png"})
    asset_store.files["assets/hero.webp"] = b"webp"

    repaired = await _repairer(documents, asset_store).repair_broken_links()

    assert repaired == 1
    assert actor.data["img"] == "assets/hero.webp"


@pytest.mark.asyncio
async def test_transcoded_sibling_of_shifted_path(documents, asset_store):
    actor = documents.add("Actor", "Hero", {"img": "foo/hero.jpg"})
    asset_store.files["assets/foo/hero.webp"] = b"webp"

    repaired = await _repairer(documents, asset_store).repair_broken_links()

    assert repaired == 1
    assert actor.data["img"] == "assets/foo/hero.webp"
    assert asset_store.probed[:4] == [
        "foo/hero.jpg",
        "assets/foo/hero.jpg",
        "foo/hero.webp",
        "assets/foo/hero.webp",
    ]


@pytest.mark.asyncio
async def test_existing_files_are_left_alone(documents, asset_store):
    actor = documents.add("Actor", "Hero", {"img": "assets/hero.png"})
    asset_store.files["assets/hero.png"] = b"png"
    asset_store.files["assets/hero.webp"] = b"webp"

    repaired = await _repairer(documents, asset_store).repair_broken_links()

    assert repaired == 0
    assert actor.data["img"] == "assets/hero.png"
    assert documents.writes == []


@pytest.mark.asyncio
async def test_missing_file_without_fallback_is_skipped(documents, asset_store):
    actor = documents.add("Actor", "Ghost", {"img": "assets/ghost.png"})

    repaired = await _repairer(documents, asset_store).repair_broken_links()

    assert repaired == 0
    assert actor.data["img"] == "assets/ghost.png"


@pytest.mark.asyncio
async def test_optimal_formats_are_not_checked(documents, asset_store):
    documents.add("Actor", "A", {"img": "assets/a.webp"})
    documents.add("Item", "B", {"img": "icons/b.svg"})

    repaired = await _repairer(documents, asset_store).repair_broken_links()

    assert repaired == 0
    assert asset_store.probed == []


@pytest.mark.asyncio
async def test_probe_error_does_not_stop_the_batch(documents, asset_store):
    documents.add("Actor", "Broken", {"img": "assets/broken.png"})
    fixed = documents.add("Actor", "Fixed", {"img": "assets/fixed.png"})
    asset_store.fail_probe.add("assets/broken.png")
    asset_store.files["assets/fixed.webp"] = b"webp"

    repaired = await _repairer(documents, asset_store).repair_broken_links()

    assert repaired == 1
    assert fixed.data["img"] == "assets/fixed.webp"


@pytest.mark.asyncio
async def test_progress_is_reported_per_path(documents, asset_store):
    documents.add("Actor", "A", {"img": "assets/a.png"})
    documents.add("Actor", "B", {"img": "assets/b.png"})
    seen = []

    await _repairer(documents, asset_store).repair_broken_links(seen.append)

    assert seen == [50, 100]


@pytest.mark.asyncio
async def test_empty_index_is_a_noop(documents, asset_store):
    assert await _repairer(documents, asset_store).repair_broken_links() == 0


@pytest.mark.asyncio
async def test_partial_rewrite_is_not_counted_as_repaired(documents, asset_store):
    stuck = documents.add("Actor", "Stuck", {"img": "foo/bar.png"})
    moved = documents.add("Actor", "Moved", {"img": "foo/bar.png"})
    asset_store.files["assets/foo/bar.png"] = b"png"

    original_update = documents.update

    async def _update(doc, data):
        if doc is stuck:
            raise RuntimeError("store write rejected")
        await original_update(doc, data)

    documents.update = _update

    repaired = await _repairer(documents, asset_store).repair_broken_links()

    assert repaired == 0
    assert stuck.data["img"] == "foo/bar.png"
    assert moved.data["img"] == "assets/foo/bar.png"
