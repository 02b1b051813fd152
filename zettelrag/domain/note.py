"""Note domain models."""

import re
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator

from zettelrag.domain.link import Link, LinkType

SUMMARY_MAX_CHARS = 200


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _unique(values: list[str]) -> list[str]:
    seen: dict[str, None] = {}
    for value in values:
        value = value.strip()
        if value:
            seen.setdefault(value, None)
    return list(seen)


def summarize_first_sentence(content: str) -> str:
    """Derive a summary locally: the first sentence, truncated to 200 characters."""
    sentences = [s.strip() for s in re.split(r"[.!?]+", content) if s.strip()]
    text = sentences[0] if sentences else content.strip()
    if len(text) > SUMMARY_MAX_CHARS:
        return text[: SUMMARY_MAX_CHARS - 3] + "..."
    return text


def estimate_importance(content: str, entities: list[str], tags: list[str]) -> float:
    """Heuristic importance score based on length, entity richness and topic diversity."""
    score = 0.5
    word_count = len(content.split())
    if word_count > 500:
        score += 0.1
    if word_count > 1000:
        score += 0.1
    if len(entities) > 3:
        score += 0.1
    if len(entities) > 6:
        score += 0.1
    if len(tags) > 3:
        score += 0.1
    return min(score, 1.0)


class ZettelNote(BaseModel):
    """Represents an atomic Zettelkasten note.

    Attributes:
        id: Unique identifier, never reused or reassigned
        content: The raw text of the idea, fixed once the note is built
        summary: Short paraphrase, from a summarizer or the first sentence
        tags: Caller-supplied topical labels, duplicates dropped, order kept
        entities: Named concepts found in the content, duplicates dropped
        source_document_ids: Documents the note was derived from
        metadata: Free-form string metadata
        importance_score: Value in [0.0, 1.0], clamped on set
        created_at: Creation timestamp (UTC)
        last_modified: Updated by every mutating method
        outgoing_links: Links starting at this note (convenience copy)
        incoming_links: Links ending at this note (convenience copy)
    """

    model_config = {"validate_assignment": True}

    id: str = Field(min_length=1, frozen=True)
    content: str = Field(frozen=True)
    summary: str | None = None
    tags: list[str] = []
    entities: list[str] = []
    source_document_ids: list[str] = []
    metadata: dict[str, Any] = {}
    importance_score: float = 0.5
    created_at: datetime = Field(default_factory=_now)
    last_modified: datetime = Field(default_factory=_now)
    outgoing_links: list[Link] = []
    incoming_links: list[Link] = []

    @field_validator("content")
    @classmethod
    def _content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Note content cannot be empty")
        return value

    @field_validator("tags", "entities", "source_document_ids")
    @classmethod
    def _deduplicate(cls, values: list[str]) -> list[str]:
        return _unique(values)

    @field_validator("importance_score")
    @classmethod
    def _clamp_importance(cls, value: float) -> float:
        return max(0.0, min(1.0, value))

    def _touch(self) -> None:
        self.last_modified = _now()

    def set_summary(self, summary: str) -> None:
        self.summary = summary
        self._touch()

    def add_tag(self, tag: str) -> None:
        tag = tag.strip()
        if tag and tag not in self.tags:
            self.tags.append(tag)
            self._touch()

    def add_entity(self, entity: str) -> None:
        entity = entity.strip()
        if entity and entity not in self.entities:
            self.entities.append(entity)
            self._touch()

    def set_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = value
        self._touch()

    def update_importance(self, score: float) -> None:
        self.importance_score = score
        self._touch()

    def add_outgoing_link(self, link: Link) -> None:
        if link not in self.outgoing_links:
            self.outgoing_links.append(link)
            self._touch()

    def add_incoming_link(self, link: Link) -> None:
        if link not in self.incoming_links:
            self.incoming_links.append(link)
            self._touch()

    def remove_link(self, link_id: str) -> None:
        """Drop a link from both convenience lists."""
        self.outgoing_links = [link for link in self.outgoing_links if link.id != link_id]
        self.incoming_links = [link for link in self.incoming_links if link.id != link_id]
        self._touch()

    @property
    def all_links(self) -> list[Link]:
        return self.outgoing_links + self.incoming_links

    @property
    def connectivity_score(self) -> float:
        """Number of links times their average strength."""
        links = self.all_links
        if not links:
            return 0.0
        return len(links) * (sum(link.strength for link in links) / len(links))

    @property
    def is_atomic(self) -> bool:
        """Atomic notes are concise: at most 500 words and 5 sentences."""
        word_count = len(self.content.split())
        sentence_count = len([s for s in re.split(r"[.!?]+", self.content) if s.strip()])
        return word_count <= 500 and sentence_count <= 5

    def related_note_ids(self, link_type: LinkType) -> list[str]:
        """Targets of outgoing links of the given type."""
        return [link.target_note_id for link in self.outgoing_links if link.type == link_type]

    def format_for_context(self) -> str:
        return (
            f"[Zettel: {self.id}]\n"
            f"Summary: {self.summary or ''}\n"
            f"Tags: {', '.join(self.tags)}\n"
            f"Entities: {', '.join(self.entities)}\n\n"
            f"{self.content}"
        )

    def __str__(self) -> str:
        return (
            f"ZettelNote[id={self.id}, summary={self.summary}, tags={self.tags}, "
            f"links={len(self.all_links)}]"
        )
