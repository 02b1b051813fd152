import json
import re
from pathlib import Path
from typing import Dict, List

import numpy as np
from loguru import logger

from zettelrag.domain.search import IndexedDocument, SearchResult
from zettelrag.embedders.base import Embedder
from zettelrag.search_index.base import SearchIndex
from zettelrag.search_index.keywords import split_values, unquote_term

_QUOTED = r'"(?:[^"\\]|\\.)*"'
# quoted value or a plain word without quotes or parentheses
_TERM = rf'{_QUOTED}|[^\s()"]+'
_TERM_PATTERN = re.compile(_TERM)
# field:(a OR b) | field:value | bare word
_CLAUSE_PATTERN = re.compile(rf'([\w.]+):\(((?:{_QUOTED}|[^)"])*)\)|([\w.]+):({_TERM})|({_TERM})')


def _parse_clauses(expression: str) -> list[tuple[str | None, list[str]]]:
    """Split a keyword expression into (field, alternatives) clauses.

    Values containing spaces, parentheses or quotes must be double-quoted, with
    backslash escapes. Bare words get a `None` field and match document content.
    """
    clauses = []
    for match in _CLAUSE_PATTERN.finditer(expression):
        if match.group(1):
            alternatives = [
                unquote_term(term)
                for term in _TERM_PATTERN.findall(match.group(2))
                if term != "OR"
            ]
            clauses.append((match.group(1), [alt for alt in alternatives if alt]))
        elif match.group(3):
            clauses.append((match.group(3), [unquote_term(match.group(4))]))
        else:
            clauses.append((None, [unquote_term(match.group(5))]))
    return clauses


def _clause_matches(document: IndexedDocument, field: str | None, alternatives: list[str]) -> bool:
    if field is None:
        content = document.content.lower()
        return any(alt.lower() in content for alt in alternatives)

    value = document.metadata.get(field)
    if value is None:
        return False
    members = {member.strip() for member in split_values(value)}
    return any(alt == value or alt in members for alt in alternatives)


class LocalSearchIndex(SearchIndex):
    """Local search index that stores documents and their embeddings in a JSON file."""

    def __init__(self, embedder: Embedder, filepath: str | Path | None = None) -> None:
        """Initialize LocalSearchIndex.

        Args:
            embedder: Embedder used for documents on upsert and for queries on search.
            filepath: Path to index file. If provided and exists, will auto-load.
                     If provided and doesn't exist, will save to this path when save() is called.
                     If not provided, creates empty index in memory only.
        """
        self._embedder = embedder
        self._filepath = str(filepath) if filepath else None

        if self._filepath and Path(self._filepath).exists():
            with open(self._filepath, "r") as f:
                data = json.load(f)
            self._documents = {
                document_id: IndexedDocument(**document_data)
                for document_id, document_data in data["documents"].items()
            }
            logger.info(f"Loaded {len(self._documents)} documents from {self._filepath}")
        else:
            self._documents = {}

    @classmethod
    def from_documents(
        cls, embedder: Embedder, documents: Dict[str, IndexedDocument] | None = None
    ) -> "LocalSearchIndex":
        """Create LocalSearchIndex from provided documents (useful for testing)."""
        instance = cls(embedder=embedder, filepath=None)
        instance._documents = dict(documents or {})
        return instance

    def upsert(self, document_id: str, content: str, metadata: dict[str, str]) -> None:
        """Embed a document and add it, replacing any document with the same ID."""
        self._documents[document_id] = IndexedDocument(
            id=document_id,
            content=content,
            metadata=metadata,
            vector=self._embedder.embed(content),
        )

    def delete(self, document_id: str) -> None:
        """Delete a document. Unknown IDs are ignored."""
        self._documents.pop(document_id, None)

    def get(self, document_id: str) -> SearchResult | None:
        """Get a stored document by its ID."""
        document = self._documents.get(document_id)
        if document is None:
            return None
        return self._to_result(document, score=1.0)

    def search(self, text: str, top_k: int) -> List[SearchResult]:
        """Get the documents closest to the text by cosine similarity."""
        if top_k <= 0 or not self._documents:
            return []

        query_vector = np.array(self._embedder.embed(text), dtype=np.float32)
        query_norm = np.linalg.norm(query_vector)

        similarities = []
        for document in self._documents.values():
            vector_norm = np.linalg.norm(document.vector)
            if query_norm == 0 or vector_norm == 0:
                similarity = 0.0
            else:
                similarity = float(np.dot(query_vector, document.vector) / (query_norm * vector_norm))
            similarities.append((similarity, document))

        # sort is stable, so equal scores keep insertion order
        similarities.sort(key=lambda x: x[0], reverse=True)
        return [self._to_result(document, score) for score, document in similarities[:top_k]]

    def keyword_search(self, expression: str, top_k: int) -> List[SearchResult]:
        """Get documents matching every clause of a keyword expression.

        Supported clauses: `field:value`, `field:"quoted value"`, `field:(a OR "b c")`
        and bare words matched against the content. Comma-separated metadata values
        match by membership.
        """
        clauses = _parse_clauses(expression)
        if not clauses or top_k <= 0:
            return []

        results = []
        for document in self._documents.values():
            if all(_clause_matches(document, field, alts) for field, alts in clauses):
                results.append(self._to_result(document, score=1.0))
                if len(results) >= top_k:
                    break
        return results

    def save(self, filepath: str | None = None) -> None:
        """Save the index to a JSON file.

        Args:
            filepath: Path to save to. If not provided, uses the filepath from initialization.
        """
        save_path = filepath or self._filepath
        if not save_path:
            raise ValueError(
                "No filepath provided and no default filepath set during initialization"
            )

        save_path = str(save_path)
        Path(save_path).parent.mkdir(parents=True, exist_ok=True)
        data = {
            "documents": {
                document_id: document.model_dump()
                for document_id, document in self._documents.items()
            }
        }
        with open(save_path, "w") as f:
            json.dump(data, f)

    def document_count(self) -> int:
        return len(self._documents)

    def clear(self) -> None:
        """Clear all documents from the index."""
        self._documents.clear()

    @staticmethod
    def _to_result(document: IndexedDocument, score: float) -> SearchResult:
        return SearchResult(
            id=document.id,
            content=document.content,
            score=score,
            metadata=dict(document.metadata),
        )
