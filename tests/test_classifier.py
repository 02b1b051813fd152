"""Tests for the rule-based link classifier."""

import pytest

from zettelrag.domain.link import LinkType
from zettelrag.linking.classifier import LinkClassifier, shared_values


@pytest.fixture
def classifier() -> LinkClassifier:
    return LinkClassifier()


def test_shared_entity_gives_related_entity_link(classifier, make_note):
    """Two notes sharing one entity at similarity 0.5 link with strength 0.3 + 0.2."""
    source = make_note("a", entities=["Einstein"])
    target = make_note("b", entities=["Einstein", "Bohr"])

    link = classifier.classify(source, target, 0.5)

    assert link is not None
    assert link.type == LinkType.RELATED_ENTITY
    assert link.strength == pytest.approx(0.5)
    assert link.source_note_id == "a" and link.target_note_id == "b"
    assert link.description == "Shares entities: Einstein"
    assert link.metadata == {"shared_entities": "Einstein"}


def test_high_similarity_alone_gives_references_link(classifier, make_note):
    link = classifier.classify(make_note("a"), make_note("b"), 0.9)

    assert link is not None
    assert link.type == LinkType.REFERENCES
    assert link.strength == pytest.approx(0.9)
    assert link.description == "Semantically related (similarity: 0.90)"


def test_low_similarity_alone_gives_no_link(classifier, make_note):
    assert classifier.classify(make_note("a"), make_note("b"), 0.4) is None


def test_similarity_at_threshold_gives_no_link(classifier, make_note):
    """The similarity rule needs strictly more than the threshold."""
    assert classifier.classify(make_note("a"), make_note("b"), 0.7) is None


def test_shared_tags_give_similar_topic_link(classifier, make_note):
    source = make_note("a", tags=["physics", "history", "math"])
    target = make_note("b", tags=["math", "physics"])

    link = classifier.classify(source, target, 0.0)

    assert link is not None
    assert link.type == LinkType.SIMILAR_TOPIC
    assert link.strength == pytest.approx(0.5)
    assert link.description == "Similar topics: physics, math", "Shared tags keep source order"


def test_entities_take_precedence_over_tags(classifier, make_note):
    source = make_note("a", entities=["Einstein"], tags=["physics"])
    target = make_note("b", entities=["Einstein"], tags=["physics"])

    link = classifier.classify(source, target, 0.0)

    assert link is not None
    assert link.type == LinkType.RELATED_ENTITY


def test_weak_rule_match_is_dropped(make_note):
    classifier = LinkClassifier(min_strength=0.3)
    source = make_note("a", tags=["physics"])
    target = make_note("b", tags=["physics"])

    assert classifier.classify(source, target, 0.0) is None, "0.25 is below the 0.3 floor"


def test_strength_is_capped_at_one(classifier, make_note):
    entities = ["A", "B", "C", "D"]
    link = classifier.classify(make_note("a", entities=entities), make_note("b", entities=entities), 1.0)

    assert link is not None
    assert link.strength == 1.0


def test_note_is_never_linked_to_itself(classifier, make_note):
    note = make_note("a", entities=["Einstein"])
    assert classifier.classify(note, note, 1.0) is None


def test_classification_is_deterministic(classifier, make_note):
    source = make_note("a", entities=["X", "Y"], tags=["t"])
    target = make_note("b", entities=["Y", "X"], tags=["t"])

    first = classifier.classify(source, target, 0.6)
    second = classifier.classify(source, target, 0.6)

    assert first is not None and second is not None
    assert (first.id, first.type, first.strength, first.description, first.metadata) == (
        second.id,
        second.type,
        second.strength,
        second.description,
        second.metadata,
    )


def test_custom_weights(make_note):
    classifier = LinkClassifier(entity_weight=0.5, similarity_weight=0.0, min_strength=0.0)
    link = classifier.classify(make_note("a", entities=["X"]), make_note("b", entities=["X"]), 0.9)

    assert link is not None
    assert link.strength == pytest.approx(0.5)


def test_shared_values_keeps_first_list_order():
    assert shared_values(["c", "a", "b"], ["b", "c"]) == ["c", "b"]
    assert shared_values([], ["a"]) == []
