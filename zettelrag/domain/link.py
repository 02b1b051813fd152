"""Link domain models."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from urllib.parse import quote

from pydantic import BaseModel, Field, model_validator


class LinkType(str, Enum):
    """Closed vocabulary of relations between notes.

    The value is the name, which is also what gets persisted.
    """

    RELATED_ENTITY = "RELATED_ENTITY"
    SIMILAR_TOPIC = "SIMILAR_TOPIC"
    REFERENCES = "REFERENCES"
    SUPPORTS = "SUPPORTS"
    CONTRADICTS = "CONTRADICTS"
    EXTENDS = "EXTENDS"
    TEMPORAL = "TEMPORAL"
    CAUSAL = "CAUSAL"
    HIERARCHICAL = "HIERARCHICAL"
    SAME_SOURCE = "SAME_SOURCE"
    CUSTOM = "CUSTOM"

    @property
    def label(self) -> str:
        """Human-readable description of the relation."""
        return LINK_TYPE_LABELS[self]

    @classmethod
    def parse(cls, text: str | None) -> "LinkType | None":
        """Return the member named by `text` (case-insensitive) or None."""
        if not text:
            return None
        try:
            return cls[text.strip().upper()]
        except KeyError:
            return None


LINK_TYPE_LABELS: dict[LinkType, str] = {
    LinkType.RELATED_ENTITY: "shares entities with",
    LinkType.SIMILAR_TOPIC: "is on a similar topic to",
    LinkType.REFERENCES: "references",
    LinkType.SUPPORTS: "supports",
    LinkType.CONTRADICTS: "contradicts",
    LinkType.EXTENDS: "extends",
    LinkType.TEMPORAL: "is temporally related to",
    LinkType.CAUSAL: "is a cause of",
    LinkType.HIERARCHICAL: "is a parent of",
    LinkType.SAME_SOURCE: "comes from the same source as",
    LinkType.CUSTOM: "is related to",
}


def generate_link_id(source_note_id: str, target_note_id: str, link_type: LinkType) -> str:
    """Deterministic link id, so duplicate detection is a plain lookup.

    Note ids are percent-encoded before joining with `|`, so distinct
    (source, target, type) triples never share an id.
    """
    source, target = quote(source_note_id, safe=""), quote(target_note_id, safe="")
    return f"{source}|{target}|{link_type.value.lower()}"


class Link(BaseModel):
    """A directed, typed, weighted relation between two notes.

    Attributes:
        id: Derived from (source, target, type) unless given explicitly
        source_note_id: ID of the note the link starts at
        target_note_id: ID of the note the link points to
        type: Kind of relation
        strength: Weight in [0.0, 1.0], out-of-range values are rejected
        description: Why the link exists, e.g. "Shares entities: X, Y"
        metadata: Provenance such as `detected_by` or shared entity lists
        created_at: Creation timestamp (UTC)
    """

    model_config = {"frozen": True}

    id: str = ""
    source_note_id: str = Field(min_length=1)
    target_note_id: str = Field(min_length=1)
    type: LinkType
    strength: float = Field(default=0.5, ge=0.0, le=1.0)
    description: str = ""
    metadata: dict[str, str] = {}
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="before")
    @classmethod
    def _fill_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("id"):
            link_type = LinkType(data.get("type")) if data.get("type") else None
            source, target = data.get("source_note_id"), data.get("target_note_id")
            if link_type and source and target:
                data = {**data, "id": generate_link_id(source, target, link_type)}
        return data

    @model_validator(mode="after")
    def _reject_self_link(self) -> "Link":
        if self.source_note_id == self.target_note_id:
            raise ValueError(f"Link cannot point from note {self.source_note_id} to itself")
        return self

    def other_note_id(self, note_id: str) -> str:
        """Get the other end of the link given one end."""
        if note_id == self.source_note_id:
            return self.target_note_id
        if note_id == self.target_note_id:
            return self.source_note_id
        raise ValueError(f"Note ID {note_id} is not part of link {self.id}")

    def connects(self, note_id_1: str, note_id_2: str) -> bool:
        """Check whether the link joins the two notes, in either direction."""
        return {self.source_note_id, self.target_note_id} == {note_id_1, note_id_2}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Link):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __str__(self) -> str:
        return (
            f"Link[{self.source_note_id} -{self.type.value}({self.strength:.2f})-> "
            f"{self.target_note_id}]"
        )


class LinkStatistics(BaseModel):
    """Aggregate figures over stored links."""

    total_links: int = 0
    average_strength: float = 0.0
    link_type_counts: dict[LinkType, int] = {}
