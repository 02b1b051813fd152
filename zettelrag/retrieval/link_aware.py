from zettelrag.graph.zettelkasten_graph import ZettelkastenGraph
from zettelrag.search_index.base import RankedSearch
from zettelrag.storage.link_store import LINK_DOCUMENT_TYPE

CONTEXT_SEPARATOR = "\n\n---\n\n"


class LinkAwareRetriever:
    """Ranked search followed by a bounded expansion through the note graph."""

    def __init__(
        self,
        *,
        search: RankedSearch,
        graph: ZettelkastenGraph,
        separator: str = CONTEXT_SEPARATOR,
    ) -> None:
        self.search = search
        self.graph = graph
        self.separator = separator

    def retrieve_expanded(self, query: str, top_k: int, link_depth: int = 2) -> str:
        """Retrieve context for a query, expanded through linked notes.

        Each direct match is emitted in ranking order and is immediately followed
        by the notes reachable from it within `link_depth` hops. A note is emitted
        at most once per call.

        Args:
            query: Text to search for
            top_k: Number of direct matches to request
            link_depth: Hops to follow from each direct match, 0 disables expansion

        Returns:
            Formatted context units joined by the separator
        """
        units: list[str] = []
        visited: set[str] = set()

        for result in self.search.search(query, top_k):
            if result.metadata.get("type") == LINK_DOCUMENT_TYPE:
                continue
            if result.id in visited:
                continue
            visited.add(result.id)
            units.append(f"[ID: {result.id}] (Score: {result.score:.2f})\n{result.content}")

            if link_depth <= 0:
                continue
            for note in self.graph.traverse(result.id, link_depth):
                if note.id in visited:
                    continue
                visited.add(note.id)
                units.append(note.format_for_context())

        return self.separator.join(units)
