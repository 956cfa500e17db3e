import pytest

from ark_backend.features.references.index_builder import ReferenceIndexBuilder
from ark_backend.features.references.rewriter import ReferenceRewriter, substitute_path
from ark_shared.errors import RewriteIncompleteError


def test_substitute_path_replaces_quoted_and_markup_occurrences():
    text = '{"img": "foo/bar.png", "bio": "<img src=\\"foo/bar.png\\">"}'

    out = substitute_path(text, "foo/bar.png", "foo/bar.webp")

    assert "foo/bar.png" not in out
    assert out.count("foo/bar.webp") == 2
    assert '"img": "foo/bar.webp"' in out


def test_substitute_path_prefix_shift_is_applied_once():
    text = '{"img": "foo/bar.png", "alt": "assets/foo/bar.png"}'

    out = substitute_path(text, "foo/bar.png", "assets/foo/bar.png")

    assert out == '{"img": "assets/foo/bar.png", "alt": "assets/foo/bar.png"}'


def test_substitute_path_reverse_shift():
    text = '{"img": "assets/foo/bar.png"}'

    out = substitute_path(text, "assets/foo/bar.png", "foo/bar.png")

    assert out == '{"img": "foo/bar.png"}'


@pytest.mark.asyncio
async def test_rewrite_only_touches_documents_that_mention_the_path(documents):
    bob = documents.add("Actor", "Bob", {"img": "foo/bar.png"})
    documents.add("Actor", "Alice", {"img": "foo/other.png"})
    table = documents.add("RollTable", "Loot", {"results": [{"img": "foo/bar.png"}]})
    deck = documents.add("Cards", "Deck", {"cards": [{"face": "foo/bar.png"}]})

    count = await ReferenceRewriter(documents).rewrite_references("foo/bar.png", "foo/bar.webp")

    assert count == 3
    assert bob.data["img"] == "foo/bar.webp"
    assert table.data["results"][0]["img"] == "foo/bar.webp"
    assert deck.data["cards"][0]["face"] == "foo/bar.webp"
    assert sorted(documents.writes) == sorted([bob.id, table.id, deck.id])


@pytest.mark.asyncio
async def test_rewrite_preserves_other_fields(documents):
    journal = documents.add(
        "JournalEntry",
        "Lore",
        {"pages": [{"name": "P", "type": "text", "text": {"content": '<p>x</p><img src="foo/bar.png">'}}], "sort": 5},
    )

    await ReferenceRewriter(documents).rewrite_references("foo/bar.png", "foo/bar.webp")

    assert journal.data["sort"] == 5
    assert journal.data["pages"][0]["text"]["content"] == '<p>x</p><img src="foo/bar.webp">'


@pytest.mark.asyncio
async def test_one_failing_document_does_not_stop_the_batch(documents):
    first = documents.add("Actor", "First", {"img": "foo/bar.png"})
    second = documents.add("Actor", "Second", {"img": "foo/bar.png"})

    original_update = documents.update

    async def _update(doc, data):
        if doc is first:
            raise RuntimeError("store write rejected")
        await original_update(doc, data)

    documents.update = _update

    with pytest.raises(RewriteIncompleteError) as excinfo:
        await ReferenceRewriter(documents).rewrite_references("foo/bar.png", "foo/bar.webp")

    assert excinfo.value.rewritten == 1
    assert excinfo.value.failed == [first.identity]
    assert first.data["img"] == "foo/bar.png"
    assert second.data["img"] == "foo/bar.webp"


@pytest.mark.asyncio
async def test_unlocked_compendium_documents_are_rewritten(documents):
    documents.add_pack("Open", "Actor", [("Goblin", {"img": "foo/bar.png"})])
    documents.add_pack("Locked", "Actor", [("Orc", {"img": "foo/bar.png"})], locked=True)

    count = await ReferenceRewriter(documents).rewrite_references("foo/bar.png", "foo/bar.webp")
    assert count == 1

    without_packs = await ReferenceRewriter(documents, include_compendiums=False).rewrite_references(
        "foo/bar.webp", "foo/final.webp"
    )
    assert without_packs == 0


@pytest.mark.asyncio
async def test_noop_rewrites(documents):
    documents.add("Actor", "Bob", {"img": "foo/bar.png"})
    rewriter = ReferenceRewriter(documents)

    assert await rewriter.rewrite_references("foo/bar.png", "foo/bar.png") == 0
    assert await rewriter.rewrite_references("", "foo/bar.webp") == 0
    assert documents.writes == []


@pytest.mark.asyncio
async def test_rewrite_then_rebuild_moves_contexts_to_new_path(documents, asset_store):
    documents.add("Actor", "Bob", {"img": "foo/bar.png"})
    documents.add("Scene", "Town", {"tiles": [{"img": "foo/bar.png"}]})
    documents.add("JournalEntry", "Lore", {"pages": [{"name": "P", "type": "image", "src": "foo/bar.png"}]})
    builder = ReferenceIndexBuilder(documents, asset_store)

    before = await builder.build_index()
    await ReferenceRewriter(documents).rewrite_references("foo/bar.png", "foo/bar.webp")
    after = await builder.build_index()

    assert "foo/bar.png" not in after
    assert after.files["foo/bar.webp"] == before.files["foo/bar.png"]
