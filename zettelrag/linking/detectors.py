"""Optional detection of qualitative relations (supports, contradicts, extends) between notes."""

from typing import Protocol

from loguru import logger

from zettelrag.domain.link import Link, LinkType
from zettelrag.domain.note import ZettelNote
from zettelrag.linking.classifier import shared_values
from zettelrag.llms.base import LLMChat
from zettelrag.llms.schemas import LLMMessage

RELATIONSHIP_PROMPT_TEMPLATE = """Analyze the relationship between these two notes:

Note 1: {first}

Note 2: {second}

Determine if there is a semantic relationship. Respond with one of: SUPPORTS, CONTRADICTS, EXTENDS, REFERENCES, or NONE. If NONE, just respond with 'NONE'. Otherwise, respond with the relationship type and a brief explanation separated by '|'."""

PROMPT_EXCERPT_CHARS = 200
LLM_LINK_STRENGTH = 0.75


class RelationshipDetector(Protocol):
    def detect(self, source: ZettelNote, target: ZettelNote) -> Link | None:
        """Detect a qualitative relation from `source` to `target`, if there is one."""
        ...


class NullRelationshipDetector(RelationshipDetector):
    """Detector used when no language model is configured. Never finds anything."""

    def detect(self, source: ZettelNote, target: ZettelNote) -> Link | None:
        return None


def should_consult_llm(
    first: ZettelNote, second: ZettelNote, importance_threshold: float = 0.7
) -> bool:
    """Only spend an LLM call on pairs that already show some signal.

    That is a shared entity, a shared tag, or both notes being important.
    """
    if shared_values(first.entities, second.entities):
        return True
    if shared_values(first.tags, second.tags):
        return True
    return (
        first.importance_score > importance_threshold
        and second.importance_score > importance_threshold
    )


def parse_relationship_answer(answer: str | None) -> tuple[LinkType, str] | None:
    """Parse a `TYPE|explanation` answer.

    Returns None for `NONE`, empty answers and anything that is not a known link type.
    """
    if answer is None or not answer.strip():
        return None

    label, _, explanation = answer.strip().partition("|")
    if label.strip().upper() == "NONE":
        return None

    link_type = LinkType.parse(label)
    if link_type is None:
        logger.debug(f"Ignoring unrecognised relationship label: {label!r}")
        return None
    return link_type, explanation.strip()


def _excerpt(note: ZettelNote) -> str:
    return note.summary or note.content[:PROMPT_EXCERPT_CHARS]


class LLMRelationshipDetector(RelationshipDetector):
    """Asks a language model how two notes relate."""

    def __init__(self, chat: LLMChat, strength: float = LLM_LINK_STRENGTH) -> None:
        self.chat = chat
        self.strength = strength

    def detect(self, source: ZettelNote, target: ZettelNote) -> Link | None:
        if source.id == target.id:
            return None

        prompt = RELATIONSHIP_PROMPT_TEMPLATE.format(first=_excerpt(source), second=_excerpt(target))
        response = self.chat.chat([LLMMessage(role="user", content=prompt)])

        parsed = parse_relationship_answer(response.content)
        if parsed is None:
            return None

        link_type, explanation = parsed
        return Link(
            source_note_id=source.id,
            target_note_id=target.id,
            type=link_type,
            strength=self.strength,
            description=explanation,
            metadata={"detected_by": "llm"},
        )
