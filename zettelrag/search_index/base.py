from typing import List, Protocol

from zettelrag.domain.search import SearchResult


class RankedSearch(Protocol):
    def search(self, text: str, top_k: int) -> List[SearchResult]:
        """Get the documents most relevant to `text`, best first."""
        ...


class KeywordSearch(Protocol):
    def keyword_search(self, expression: str, top_k: int) -> List[SearchResult]:
        """Get documents matching a keyword expression such as `source_id:abc`."""
        ...


class DocumentStore(Protocol):
    def upsert(self, document_id: str, content: str, metadata: dict[str, str]) -> None:
        """Add a document or replace an existing one."""
        ...

    def delete(self, document_id: str) -> None:
        """Delete a document. Unknown IDs are ignored."""
        ...


class SearchIndex(RankedSearch, KeywordSearch, DocumentStore, Protocol):
    def get(self, document_id: str) -> SearchResult | None:
        """Get a stored document by its ID."""
        ...

    def save(self, filepath: str | None = None) -> None:
        """Save the index to disk."""
        ...
