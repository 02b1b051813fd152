"""Generation of all links between a new note and its candidate neighbours."""

from typing import Iterable

from loguru import logger

from zettelrag.domain.link import Link, LinkType
from zettelrag.domain.note import ZettelNote
from zettelrag.search_index.keywords import join_values
from zettelrag.linking.classifier import LinkClassifier, shared_values
from zettelrag.linking.detectors import (
    NullRelationshipDetector,
    RelationshipDetector,
    should_consult_llm,
)

SAME_SOURCE_STRENGTH = 0.8


class LinkGenerator:
    """Combines the rule-based classifier, shared-source links and an optional detector."""

    def __init__(
        self,
        *,
        classifier: LinkClassifier | None = None,
        detector: RelationshipDetector | None = None,
        importance_threshold: float = 0.7,
    ):
        """Initialize the generator.

        Args:
            classifier: Rule-based classifier, defaults to the standard thresholds
            detector: Relationship detector consulted for promising pairs,
                      defaults to one that never detects anything
            importance_threshold: Importance both notes must exceed to justify a detector
                                  call when they share no entity or tag
        """
        self.classifier = classifier or LinkClassifier()
        self.detector = detector or NullRelationshipDetector()
        self.importance_threshold = importance_threshold

    def generate_links(
        self, note: ZettelNote, candidates: Iterable[tuple[ZettelNote, float]]
    ) -> list[Link]:
        """Generate links from `note` to each candidate.

        Args:
            note: The new note
            candidates: Pairs of (existing note, semantic similarity to the new note)

        Returns:
            Links in candidate order, without duplicate IDs
        """
        links: dict[str, Link] = {}

        for candidate, similarity in candidates:
            if candidate.id == note.id:
                continue

            found = [
                self.classifier.classify(note, candidate, similarity),
                self._same_source_link(note, candidate),
            ]
            if should_consult_llm(note, candidate, self.importance_threshold):
                found.append(self.detector.detect(note, candidate))

            for link in found:
                if link is not None:
                    links.setdefault(link.id, link)

        logger.debug(f"Generated {len(links)} links for note {note.id}")
        return list(links.values())

    @staticmethod
    def _same_source_link(note: ZettelNote, other: ZettelNote) -> Link | None:
        sources = shared_values(note.source_document_ids, other.source_document_ids)
        if not sources:
            return None
        return Link(
            source_note_id=note.id,
            target_note_id=other.id,
            type=LinkType.SAME_SOURCE,
            strength=SAME_SOURCE_STRENGTH,
            description="Derived from same source document(s)",
            metadata={"shared_sources": join_values(sources)},
        )
