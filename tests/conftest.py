import tempfile
from pathlib import Path
from typing import Callable, Generator

import pytest

from zettelrag.domain.link import Link, LinkType
from zettelrag.domain.note import ZettelNote
from zettelrag.graph.zettelkasten_graph import ZettelkastenGraph
from zettelrag.search_index.local_index import LocalSearchIndex
from zettelrag.storage.link_store import LinkStore
from tests.fakes import FakeEmbedder

MakeNote = Callable[..., ZettelNote]


@pytest.fixture
def make_note() -> MakeNote:
    """Factory for notes with sensible defaults."""

    def _make_note(note_id: str, content: str | None = None, **kwargs) -> ZettelNote:
        return ZettelNote(id=note_id, content=content or f"Content of {note_id}.", **kwargs)

    return _make_note


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def local_index(fake_embedder: FakeEmbedder) -> LocalSearchIndex:
    return LocalSearchIndex(embedder=fake_embedder)


@pytest.fixture
def link_store(local_index: LocalSearchIndex) -> LinkStore:
    return LinkStore(local_index)


@pytest.fixture
def graph_factory(make_note: MakeNote) -> Callable[..., ZettelkastenGraph]:
    """Build a graph from note IDs and (source, target) pairs.

    Links are RELATED_ENTITY with strength 0.5 and are not persisted.
    """

    def _build(note_ids: list[str], edges: list[tuple[str, str]]) -> ZettelkastenGraph:
        graph = ZettelkastenGraph()
        for note_id in note_ids:
            graph.add_note(make_note(note_id))
        for source, target in edges:
            graph.add_link(
                Link(source_note_id=source, target_note_id=target, type=LinkType.RELATED_ENTITY)
            )
        return graph

    return _build


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)
