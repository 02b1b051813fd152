"""Entity extraction for notes."""

import logging
import re
from collections import Counter
from typing import List, Protocol

logger = logging.getLogger(__name__)

STOP_WORDS = frozenset(
    {
        "the", "and", "for", "are", "but", "not", "you", "all", "can", "had", "her", "was",
        "one", "our", "out", "day", "get", "has", "him", "his", "how", "its", "may", "new",
        "now", "old", "see", "two", "who", "boy", "did", "let", "put", "say", "she", "too",
        "use", "this", "that", "with", "from", "have", "they", "will", "what", "when", "your",
        "been", "call", "each", "find", "into", "long", "look", "make", "many", "more", "than",
        "then", "them", "were",
    }
)  # fmt: skip


class EntityExtractor(Protocol):
    def extract(self, text: str) -> List[str]:
        """Extract named concepts from text. Returns an empty list when nothing is found."""
        ...


class PatternEntityExtractor(EntityExtractor):
    """Extracts entities with regular expressions and phrase frequencies.

    Identifies technical terms (CamelCase words and acronyms), double-quoted
    phrases and recurring or capitalised key phrases of two or three words.
    """

    TECHNICAL_TERM_PATTERN = re.compile(r"\b([A-Z][a-z]+(?:[A-Z][a-z]+)+|[A-Z]{2,})\b")
    QUOTED_PATTERN = re.compile(r"\"([^\"]+)\"")

    def __init__(self, max_key_phrases: int = 10):
        """Initialize the extractor.

        Args:
            max_key_phrases: Maximum number of frequency-based key phrases to keep
        """
        self.max_key_phrases = max_key_phrases

    def extract(self, text: str) -> List[str]:
        """Extract all entities from text, de-duplicated in order of discovery.

        Args:
            text: Text to extract entities from

        Returns:
            List of entity strings
        """
        if not text or not text.strip():
            return []

        entities: dict[str, None] = {}
        for entity in (
            self.extract_technical_terms(text)
            + self.extract_quoted_phrases(text)
            + self.extract_key_phrases(text)
        ):
            entities.setdefault(entity, None)

        logger.debug(f"Extracted {len(entities)} entities")
        return list(entities)

    def extract_by_category(self, text: str) -> dict[str, List[str]]:
        """Extract entities grouped by the heuristic that found them."""
        return {
            "technical_terms": self.extract_technical_terms(text),
            "quoted_phrases": self.extract_quoted_phrases(text),
            "key_phrases": self.extract_key_phrases(text),
        }

    def extract_technical_terms(self, text: str) -> List[str]:
        """Extract CamelCase terms and acronyms of at least three characters."""
        return [term for term in self.TECHNICAL_TERM_PATTERN.findall(text) if len(term) >= 3]

    def extract_quoted_phrases(self, text: str) -> List[str]:
        """Extract phrases in double quotes."""
        return [
            phrase.strip() for phrase in self.QUOTED_PATTERN.findall(text) if phrase.strip()
        ]

    def extract_key_phrases(self, text: str) -> List[str]:
        """Extract bigrams and trigrams that repeat or appear capitalised in the text."""
        words = re.sub(r"[^a-z0-9\s]", " ", text.lower()).split()

        phrase_counts: Counter[str] = Counter()
        for size in (2, 3):
            for i in range(len(words) - size + 1):
                window = words[i : i + size]
                if all(self._is_significant(word) for word in window):
                    phrase_counts[" ".join(window)] += 1

        candidates = [
            (phrase, count)
            for phrase, count in phrase_counts.items()
            if count > 1 or self._is_capitalized_in_text(phrase, text)
        ]
        candidates.sort(key=lambda item: item[1], reverse=True)
        return [phrase for phrase, _ in candidates[: self.max_key_phrases]]

    @staticmethod
    def _is_significant(word: str) -> bool:
        return len(word) >= 3 and word not in STOP_WORDS

    @staticmethod
    def _is_capitalized_in_text(phrase: str, text: str) -> bool:
        return phrase[:1].upper() + phrase[1:] in text
