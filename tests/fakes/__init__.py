from tests.fakes.fake_embedder import FakeEmbedder
from tests.fakes.fake_entity_extractor import FakeEntityExtractor
from tests.fakes.fake_llm import FailingLLMChat, FakeLLMChat
from tests.fakes.fake_search import FailingSearchIndex, FakeRankedSearch

__all__ = [
    "FakeEmbedder",
    "FakeEntityExtractor",
    "FakeLLMChat",
    "FailingLLMChat",
    "FakeRankedSearch",
    "FailingSearchIndex",
]
