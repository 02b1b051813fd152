"""Tests for LinkStore persistence and its cache."""

import pytest

from zettelrag.domain.link import Link, LinkType
from zettelrag.storage.link_cache import LinkCache
from zettelrag.storage.link_store import (
    LinkStore,
    MalformedLinkRecord,
    link_from_record,
    link_record_id,
    link_to_record,
)
from tests.fakes import FailingSearchIndex


def _link(source: str, target: str, link_type: LinkType = LinkType.RELATED_ENTITY, **kwargs) -> Link:
    return Link(source_note_id=source, target_note_id=target, type=link_type, **kwargs)


def test_record_layout():
    link = _link("a", "b", strength=0.42, description="Shares entities: X", metadata={"shared_entities": "X"})

    content, metadata = link_to_record(link)

    assert link_record_id(link) == "link_a|b|related_entity"
    assert content == "Link from a to b: RELATED_ENTITY [Shares entities: X] (strength: 0.42)"
    assert metadata["type"] == "zettel_link"
    assert metadata["source_id"] == "a"
    assert metadata["target_id"] == "b"
    assert metadata["link_type"] == "RELATED_ENTITY"
    assert float(metadata["strength"]) == pytest.approx(0.42)
    assert metadata["created_at"].isdigit(), "created_at is stored as epoch milliseconds"
    assert metadata["meta.shared_entities"] == "X"


def test_record_conversion_keeps_link_fields():
    link = _link("a", "b", LinkType.SUPPORTS, strength=0.7, description="why", metadata={"detected_by": "llm"})

    restored = link_from_record(link_to_record(link)[1])

    assert restored.id == link.id
    assert restored.type == LinkType.SUPPORTS
    assert restored.strength == pytest.approx(0.7)
    assert restored.description == "why"
    assert restored.metadata == {"detected_by": "llm"}
    assert abs((restored.created_at - link.created_at).total_seconds()) < 0.002


@pytest.mark.parametrize(
    "changes",
    [
        {"type": "zettel_note"},
        {"source_id": ""},
        {"link_type": "FRIEND_OF"},
        {"strength": "strong"},
        {"strength": "1.5"},
        {"target_id": "a"},
    ],
)
def test_malformed_records_are_rejected(changes):
    metadata = {**link_to_record(_link("a", "b"))[1], **changes}

    with pytest.raises(MalformedLinkRecord):
        link_from_record(metadata)


def test_links_are_found_from_both_endpoints(link_store):
    link = _link("a", "b", LinkType.EXTENDS)
    link_store.store(link)

    assert link_store.links_for("a") == [link]
    assert link_store.links_for("b") == [link]
    assert link_store.outgoing_links("a") == [link]
    assert link_store.incoming_links("b") == [link]
    assert link_store.outgoing_links("b") == []
    assert link_store.links_for("b")[0].type == LinkType.EXTENDS, "Direction and type survive"


def test_links_between_is_directed(link_store):
    link_store.store(_link("a", "b"))

    assert link_store.exists("a", "b")
    assert not link_store.exists("b", "a")
    assert len(link_store.links_between("a", "b")) == 1


def test_links_of_different_types_do_not_overwrite_each_other(link_store):
    link_store.store(_link("a", "b", LinkType.RELATED_ENTITY))
    link_store.store(_link("a", "b", LinkType.SAME_SOURCE))

    assert {link.type for link in link_store.links_between("a", "b")} == {
        LinkType.RELATED_ENTITY,
        LinkType.SAME_SOURCE,
    }


def test_store_updates_loaded_cache_entries(link_store):
    assert link_store.links_for("a") == []
    assert "a" in link_store.cache
    assert "b" not in link_store.cache

    link = _link("a", "b")
    link_store.store(link)

    assert link_store.cache.get("a") == [link], "Loaded entry should be updated on write"
    assert link_store.cache.get("b") is None, "Unloaded entry should stay lazy"
    assert link_store.links_for("b") == [link]


def test_delete_removes_record_and_cache_entries(link_store, local_index):
    link = _link("a", "b")
    link_store.store(link)
    link_store.links_for("a")
    link_store.links_for("b")

    link_store.delete(link)

    assert local_index.get(link_record_id(link)) is None
    assert link_store.cache.get("a") == []
    assert link_store.cache.get("b") == []


def test_invalidate_rereads_the_index(link_store, local_index):
    link = _link("a", "b")
    link_store.links_for("a")
    content, metadata = link_to_record(link)
    local_index.upsert(link_record_id(link), content, metadata)

    assert link_store.links_for("a") == [], "Writes behind the store's back are not seen"
    link_store.invalidate("a")
    assert link_store.links_for("a") == [link]


def test_malformed_records_are_skipped(link_store, local_index):
    good = _link("a", "b")
    link_store.store(good)
    _, metadata = link_to_record(_link("a", "c"))
    local_index.upsert("link_broken", "broken", {**metadata, "link_type": "FRIEND_OF"})

    assert link_store.outgoing_links("a") == [good]


def test_links_by_type_and_strong_links(link_store):
    weak = _link("a", "b", LinkType.SIMILAR_TOPIC, strength=0.3)
    strong = _link("b", "c", LinkType.SUPPORTS, strength=0.9)
    link_store.store_links([weak, strong])

    assert link_store.links_by_type(LinkType.SUPPORTS) == [strong]
    assert link_store.strong_links(0.5) == [strong]


def test_statistics(link_store):
    assert link_store.statistics().total_links == 0
    assert link_store.statistics().average_strength == 0.0

    link_store.store_links(
        [
            _link("a", "b", LinkType.SUPPORTS, strength=0.4),
            _link("b", "c", LinkType.SUPPORTS, strength=0.6),
            _link("a", "c", LinkType.EXTENDS, strength=0.8),
        ]
    )
    stats = link_store.statistics()

    assert stats.total_links == 3
    assert stats.average_strength == pytest.approx(0.6)
    assert stats.link_type_counts == {LinkType.SUPPORTS: 2, LinkType.EXTENDS: 1}


def test_lookups_read_past_the_page_size(local_index):
    store = LinkStore(local_index, page_size=2)
    links = [_link("hub", f"n{i}", strength=0.5) for i in range(7)]
    links.append(_link("n0", "hub", LinkType.SUPPORTS))
    store.store_links(links)

    assert store.statistics().total_links == 8
    assert len(store.all_links()) == 8
    assert len(store.outgoing_links("hub")) == 7
    assert set(store.links_for("hub")) == set(links)


def test_note_ids_with_spaces_and_parentheses(link_store):
    link = _link("note 1", "note (2)", LinkType.EXTENDS)
    link_store.store(link)
    other = _link("note", "1")
    link_store.store(other)

    assert link_store.links_for("note 1") == [link]
    assert link_store.links_for("note (2)") == [link]
    assert link_store.exists("note 1", "note (2)")
    assert link_store.links_for("note") == [other]


def test_index_errors_propagate():
    store = LinkStore(FailingSearchIndex())

    with pytest.raises(IOError):
        store.store(_link("a", "b"))
    with pytest.raises(IOError):
        store.links_for("a")


def test_cache_contract():
    cache = LinkCache()
    link = _link("a", "b")

    cache.add(link)
    assert cache.get("a") is None, "add never creates entries"

    cache.load("a", [])
    cache.add(link)
    assert cache.get("a") == [link]
    assert cache.cached_links() == [link]

    cache.discard(link)
    assert cache.get("a") == []

    cache.invalidate("a")
    assert "a" not in cache
