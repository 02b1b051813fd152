from typing import List

from zettelrag.extraction.entity_extractor import EntityExtractor


class FakeEntityExtractor(EntityExtractor):
    """Fake entity extractor that looks up entities by exact text.

    Unknown texts give no entities. With `fail=True` every call raises.
    """

    def __init__(self, entities: dict[str, List[str]] | None = None, fail: bool = False) -> None:
        self.entities = entities or {}
        self.fail = fail

    def extract(self, text: str) -> List[str]:
        if self.fail:
            raise RuntimeError("extractor crashed")
        return list(self.entities.get(text, []))
