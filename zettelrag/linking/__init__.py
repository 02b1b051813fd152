"""Automatic linking of notes."""

from zettelrag.linking.classifier import LinkClassifier
from zettelrag.linking.detectors import (
    LLMRelationshipDetector,
    NullRelationshipDetector,
    RelationshipDetector,
)
from zettelrag.linking.generator import LinkGenerator

__all__ = [
    "LLMRelationshipDetector",
    "LinkClassifier",
    "LinkGenerator",
    "NullRelationshipDetector",
    "RelationshipDetector",
]
