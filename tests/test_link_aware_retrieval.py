"""Tests for link-aware retrieval."""

from zettelrag.domain.search import SearchResult
from zettelrag.retrieval.link_aware import LinkAwareRetriever
from tests.fakes import FakeRankedSearch


def _result(note_id: str, score: float, **metadata: str) -> SearchResult:
    return SearchResult(id=note_id, content=f"Content of {note_id}.", score=score, metadata=metadata)


def test_depth_zero_gives_formatted_search_results(graph_factory):
    graph = graph_factory(["a", "b", "c"], [("a", "c")])
    search = FakeRankedSearch([_result("a", 0.9), _result("b", 0.456)])
    retriever = LinkAwareRetriever(search=search, graph=graph)

    context = retriever.retrieve_expanded("query", top_k=5, link_depth=0)

    assert context == (
        "[ID: a] (Score: 0.90)\nContent of a."
        "\n\n---\n\n"
        "[ID: b] (Score: 0.46)\nContent of b."
    )


def test_expansion_follows_each_direct_match(graph_factory):
    graph = graph_factory(["a", "b", "c", "d"], [("a", "c"), ("c", "d")])
    search = FakeRankedSearch([_result("a", 0.9), _result("b", 0.8)])
    retriever = LinkAwareRetriever(search=search, graph=graph)

    units = retriever.retrieve_expanded("query", top_k=5, link_depth=2).split("\n\n---\n\n")

    assert [unit.splitlines()[0] for unit in units] == [
        "[ID: a] (Score: 0.90)",
        "[Zettel: c]",
        "[Zettel: d]",
        "[ID: b] (Score: 0.80)",
    ]
    assert units[1] == graph.get_note("c").format_for_context()


def test_notes_are_emitted_once(graph_factory):
    graph = graph_factory(["a", "b", "c"], [("a", "b"), ("b", "c"), ("a", "c")])
    search = FakeRankedSearch([_result("a", 0.9), _result("b", 0.8), _result("a", 0.7)])
    retriever = LinkAwareRetriever(search=search, graph=graph)

    units = retriever.retrieve_expanded("query", top_k=5, link_depth=1).split("\n\n---\n\n")

    assert [unit.splitlines()[0] for unit in units] == [
        "[ID: a] (Score: 0.90)",
        "[Zettel: b]",
        "[Zettel: c]",
    ], "b was already reached through a, so its direct match is skipped"


def test_link_records_are_skipped(graph_factory):
    graph = graph_factory(["a"], [])
    search = FakeRankedSearch([_result("link_x", 0.99, type="zettel_link"), _result("a", 0.5)])
    retriever = LinkAwareRetriever(search=search, graph=graph)

    assert retriever.retrieve_expanded("query", top_k=5) == "[ID: a] (Score: 0.50)\nContent of a."


def test_top_k_limits_direct_matches(graph_factory):
    graph = graph_factory(["a", "b"], [])
    search = FakeRankedSearch([_result("a", 0.9), _result("b", 0.8)])
    retriever = LinkAwareRetriever(search=search, graph=graph)

    assert retriever.retrieve_expanded("query", top_k=1, link_depth=0) == (
        "[ID: a] (Score: 0.90)\nContent of a."
    )


def test_no_results_give_empty_context(graph_factory):
    retriever = LinkAwareRetriever(search=FakeRankedSearch([]), graph=graph_factory([], []))
    assert retriever.retrieve_expanded("query", top_k=5) == ""
