"""Zettelkasten service: atomic note creation, automatic linking and link-aware retrieval."""

import uuid
from typing import Any

from loguru import logger

from zettelrag.domain.link import Link, LinkStatistics
from zettelrag.domain.note import ZettelNote, estimate_importance, summarize_first_sentence
from zettelrag.domain.search import SearchResult
from zettelrag.extraction.entity_extractor import EntityExtractor, PatternEntityExtractor
from zettelrag.graph.zettelkasten_graph import GraphStatistics, ZettelkastenGraph
from zettelrag.linking.generator import LinkGenerator
from zettelrag.llms.base import LLMChat
from zettelrag.llms.schemas import LLMMessage
from zettelrag.prompt import get_prompt, get_summary_prompt
from zettelrag.retrieval.link_aware import LinkAwareRetriever
from zettelrag.search_index.base import SearchIndex
from zettelrag.search_index.keywords import join_values, keyword_search_all, quote_term, split_values
from zettelrag.storage.link_store import LinkStore

NOTE_DOCUMENT_TYPE = "zettel_note"
NOTE_ID_PREFIX = "zettel_"


def new_note_id() -> str:
    return f"{NOTE_ID_PREFIX}{uuid.uuid4()}"


def note_to_record(note: ZettelNote) -> dict[str, str]:
    """Metadata stored with a note in the search index."""
    metadata = {key: str(value) for key, value in note.metadata.items()}
    metadata.update(
        {
            "type": NOTE_DOCUMENT_TYPE,
            "note_id": note.id,
            "tags": join_values(note.tags),
            "entities": join_values(note.entities),
            "summary": note.summary or "",
            "source_document_ids": join_values(note.source_document_ids),
            "importance_score": str(note.importance_score),
        }
    )
    return metadata


def note_from_record(record: SearchResult) -> ZettelNote:
    """Rebuild a note from its index record. Link lists are left empty."""
    reserved = {"type", "note_id", "tags", "entities", "summary", "source_document_ids", "importance_score"}
    metadata = record.metadata
    return ZettelNote(
        id=metadata.get("note_id") or record.id,
        content=record.content,
        summary=metadata.get("summary") or None,
        tags=split_values(metadata.get("tags", "")),
        entities=split_values(metadata.get("entities", "")),
        source_document_ids=split_values(metadata.get("source_document_ids", "")),
        metadata={key: value for key, value in metadata.items() if key not in reserved},
        importance_score=float(metadata.get("importance_score") or 0.5),
    )


class ZettelkastenService:
    """Entry point tying the index, the link store, the graph and the linker together."""

    def __init__(
        self,
        *,
        index: SearchIndex,
        link_generator: LinkGenerator | None = None,
        entity_extractor: EntityExtractor | None = None,
        chat: LLMChat | None = None,
        summarizer: LLMChat | None = None,
        system_message: str | None = None,
        candidate_pool_size: int = 20,
        top_k: int = 5,
        link_depth: int = 2,
    ):
        """Initialize the service.

        Args:
            index: Search index holding both notes and link records
            link_generator: Link generator, defaults to the rule-based classifier only
            entity_extractor: Entity extractor, defaults to the pattern-based one
            chat: LLM used to answer questions in `ask`
            summarizer: LLM used to summarize new notes, the first sentence is used if not set
            system_message: System message prepended to questions
            candidate_pool_size: Number of results per candidate query when linking a new note
            top_k: Default number of direct matches for retrieval
            link_depth: Default number of hops for retrieval expansion
        """
        self.index = index
        self.link_store = LinkStore(index)
        self.graph = ZettelkastenGraph(self.link_store)
        self.link_generator = link_generator or LinkGenerator()
        self.entity_extractor = entity_extractor or PatternEntityExtractor()
        self.retriever = LinkAwareRetriever(search=index, graph=self.graph)
        self.chat = chat
        self.summarizer = summarizer
        self.system_message = system_message
        self.candidate_pool_size = candidate_pool_size
        self.top_k = top_k
        self.link_depth = link_depth

    # Notes

    def create_note(
        self,
        content: str,
        tags: list[str] | None = None,
        metadata: dict[str, Any] | None = None,
        source_document_ids: list[str] | None = None,
        importance_score: float | None = None,
    ) -> ZettelNote:
        """Create an atomic note, index it and link it to existing notes.

        Args:
            content: Text of the note
            tags: Topical labels
            metadata: Additional metadata, stored as strings in the index
            source_document_ids: Documents the note was derived from
            importance_score: Importance in [0, 1], estimated from the content if not given

        Returns:
            The new note, with its generated links attached
        """
        tags = tags or []
        entities = self._extract_entities(content)
        if importance_score is None:
            importance_score = estimate_importance(content, entities, tags)

        note = ZettelNote(
            id=new_note_id(),
            content=content,
            summary=self._summarize(content),
            tags=tags,
            entities=entities,
            source_document_ids=source_document_ids or [],
            metadata=metadata or {},
            importance_score=importance_score,
        )
        return self.add_note(note)

    def add_note(self, note: ZettelNote) -> ZettelNote:
        """Index a pre-built note, add it to the graph and link it to existing notes."""
        self.index.upsert(note.id, note.content, note_to_record(note))
        self.graph.add_note(note)

        links = self.link_generator.generate_links(note, self._find_candidates(note))
        for link in links:
            self.graph.add_link(link)

        logger.info(f"Added note {note.id} with {len(links)} links")
        return note

    def add_link(self, link: Link) -> None:
        """Add a link between two existing notes, e.g. one created by hand."""
        self.graph.add_link(link)

    def delete_note(self, note_id: str) -> None:
        """Delete a note, its links and its index record."""
        self.graph.remove_note(note_id)
        self.index.delete(note_id)

    def get_note(self, note_id: str) -> ZettelNote | None:
        return self.graph.get_note(note_id)

    def all_notes(self) -> list[ZettelNote]:
        return self.graph.all_notes()

    def find_by_entities(self, entities: list[str], top_k: int) -> list[SearchResult]:
        if not entities:
            return []
        return self.index.search(" ".join(entities), top_k)

    def find_by_tags(self, tags: list[str], top_k: int) -> list[SearchResult]:
        if not tags:
            return []
        expression = f"tags:({' OR '.join(quote_term(tag) for tag in tags)})"
        return self.index.keyword_search(expression, top_k)

    # Retrieval

    def retrieve_context_with_links(
        self, query: str, top_k: int | None = None, link_depth: int | None = None
    ) -> str:
        return self.retriever.retrieve_expanded(
            query,
            top_k=self.top_k if top_k is None else top_k,
            link_depth=self.link_depth if link_depth is None else link_depth,
        )

    def ask(self, question: str) -> str:
        """Answer a question using link-expanded context from the notes.

        Raises:
            RuntimeError: If no chat model is configured
        """
        if self.chat is None:
            raise RuntimeError("No chat model configured")

        prompt = get_prompt(
            question=question,
            retriever=self.retriever,
            top_k=self.top_k,
            link_depth=self.link_depth,
        )
        messages = [LLMMessage(role="user", content=prompt)]
        if self.system_message:
            messages.insert(0, LLMMessage(role="system", content=self.system_message))
        return self.chat.chat(messages).content

    # Graph

    def traverse_from_note(self, note_id: str, max_depth: int) -> list[ZettelNote]:
        return self.graph.traverse(note_id, max_depth)

    def find_path_between_notes(self, start_id: str, end_id: str) -> list[ZettelNote]:
        return self.graph.shortest_path(start_id, end_id)

    def graph_statistics(self) -> GraphStatistics:
        return self.graph.statistics()

    def link_statistics(self) -> LinkStatistics:
        return self.link_store.statistics()

    def most_connected_notes(self, top_n: int) -> list[ZettelNote]:
        return self.graph.most_connected(top_n)

    def save(self) -> None:
        self.index.save()

    def load(self, page_size: int = 1000) -> int:
        """Rebuild the graph from the notes and links already in the index.

        Returns:
            Number of notes loaded
        """
        records = keyword_search_all(self.index, f"type:{NOTE_DOCUMENT_TYPE}", page_size)
        for record in records:
            self.graph.add_note(note_from_record(record))
        link_count = self.graph.rebuild_from_store()
        logger.info(f"Loaded {len(records)} notes and {link_count} links from the index")
        return len(records)

    # Internals

    def _extract_entities(self, content: str) -> list[str]:
        try:
            return self.entity_extractor.extract(content)
        except Exception as e:
            logger.warning(f"Entity extraction failed, continuing without entities: {e}")
            return []

    def _summarize(self, content: str) -> str:
        if self.summarizer is None:
            return summarize_first_sentence(content)
        response = self.summarizer.chat([LLMMessage(role="user", content=get_summary_prompt(content))])
        return response.content.strip()

    def _find_candidates(self, note: ZettelNote) -> list[tuple[ZettelNote, float]]:
        """Find existing notes worth linking to, paired with their semantic similarity.

        Candidates come from an entity query, a content query and a tag query, in that
        order. The similarity is the candidate's score in the content query.
        """
        entity_matches = self.find_by_entities(note.entities, self.candidate_pool_size)
        semantic_matches = self.index.search(note.content, self.candidate_pool_size)
        tag_matches = self.find_by_tags(note.tags, self.candidate_pool_size)

        similarities = {result.id: result.score for result in semantic_matches}
        candidates: dict[str, ZettelNote] = {}
        for result in entity_matches + semantic_matches + tag_matches:
            if result.id == note.id or result.id in candidates:
                continue
            candidate = self.graph.get_note(result.id)
            if candidate is not None:
                candidates[result.id] = candidate

        return [
            (candidate, max(0.0, min(1.0, similarities.get(note_id, 0.0))))
            for note_id, candidate in candidates.items()
        ]
