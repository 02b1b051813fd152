"""Rule-based classification of the link between two notes."""

from zettelrag.domain.link import Link, LinkType
from zettelrag.domain.note import ZettelNote
from zettelrag.search_index.keywords import join_values


def shared_values(first: list[str], second: list[str]) -> list[str]:
    """Values present in both lists, in the order of the first list."""
    other = set(second)
    return [value for value in first if value in other]


class LinkClassifier:
    """Decides whether two notes should be linked, and how.

    Rules are checked in order and the first one that applies wins:

    1. Shared entities give a RELATED_ENTITY link.
    2. Shared tags give a SIMILAR_TOPIC link.
    3. A semantic similarity above the threshold gives a REFERENCES link.

    Whatever rule fired, links weaker than `min_strength` are dropped.
    """

    def __init__(
        self,
        *,
        min_strength: float = 0.3,
        similarity_threshold: float = 0.7,
        entity_weight: float = 0.3,
        tag_weight: float = 0.25,
        similarity_weight: float = 0.4,
    ):
        """Initialize the classifier.

        Args:
            min_strength: Links weaker than this are discarded
            similarity_threshold: Similarity a pair must exceed to link on similarity alone
            entity_weight: Strength contributed by each shared entity
            tag_weight: Strength contributed by each shared tag
            similarity_weight: Factor applied to the semantic similarity for rules 1 and 2
        """
        self.min_strength = min_strength
        self.similarity_threshold = similarity_threshold
        self.entity_weight = entity_weight
        self.tag_weight = tag_weight
        self.similarity_weight = similarity_weight

    def classify(
        self, source: ZettelNote, target: ZettelNote, semantic_similarity: float
    ) -> Link | None:
        """Classify the relation from `source` to `target`.

        Args:
            source: Note the link would start at
            target: Note the link would point to
            semantic_similarity: Similarity of the two notes as scored by the search index

        Returns:
            The link to create, or None if the notes are not related enough
        """
        if source.id == target.id:
            return None

        proposal = self._propose(source, target, semantic_similarity)
        if proposal is None:
            return None

        link_type, strength, description, metadata = proposal
        if strength < self.min_strength:
            return None

        return Link(
            source_note_id=source.id,
            target_note_id=target.id,
            type=link_type,
            strength=strength,
            description=description,
            metadata=metadata,
        )

    def _propose(
        self, source: ZettelNote, target: ZettelNote, similarity: float
    ) -> tuple[LinkType, float, str, dict[str, str]] | None:
        common_entities = shared_values(source.entities, target.entities)
        if common_entities:
            strength = min(
                1.0, len(common_entities) * self.entity_weight + similarity * self.similarity_weight
            )
            return (
                LinkType.RELATED_ENTITY,
                strength,
                f"Shares entities: {', '.join(common_entities)}",
                {"shared_entities": join_values(common_entities)},
            )

        common_tags = shared_values(source.tags, target.tags)
        if common_tags:
            strength = min(
                1.0, len(common_tags) * self.tag_weight + similarity * self.similarity_weight
            )
            return (
                LinkType.SIMILAR_TOPIC,
                strength,
                f"Similar topics: {', '.join(common_tags)}",
                {"shared_tags": join_values(common_tags)},
            )

        if similarity > self.similarity_threshold:
            return (
                LinkType.REFERENCES,
                min(1.0, similarity),
                f"Semantically related (similarity: {similarity:.2f})",
                {},
            )

        return None
