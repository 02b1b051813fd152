from typing import List

from zettelrag.domain.search import SearchResult
from zettelrag.search_index.base import RankedSearch, SearchIndex


class FakeRankedSearch(RankedSearch):
    """Fake ranked search returning predefined results, best first."""

    def __init__(self, results: List[SearchResult]) -> None:
        self.results = results
        self.queries: List[str] = []

    def search(self, text: str, top_k: int) -> List[SearchResult]:
        self.queries.append(text)
        return self.results[:top_k]


class FailingSearchIndex(SearchIndex):
    """Fake search index whose storage is unreachable."""

    def search(self, text: str, top_k: int) -> List[SearchResult]:
        raise IOError("index unavailable")

    def keyword_search(self, expression: str, top_k: int) -> List[SearchResult]:
        raise IOError("index unavailable")

    def upsert(self, document_id: str, content: str, metadata: dict[str, str]) -> None:
        raise IOError("index unavailable")

    def delete(self, document_id: str) -> None:
        raise IOError("index unavailable")

    def get(self, document_id: str) -> SearchResult | None:
        raise IOError("index unavailable")

    def save(self, filepath: str | None = None) -> None:
        raise IOError("index unavailable")
