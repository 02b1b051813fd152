"""Composition of the service from settings."""

import sys

import instructor
from anthropic import Anthropic
from loguru import logger

from zettelrag.config import Settings
from zettelrag.embedders.base import Embedder
from zettelrag.embedders.openai_embedder import OpenAIEmbedder
from zettelrag.embedders.voyage_embedder import VoyageEmbedder
from zettelrag.linking.classifier import LinkClassifier
from zettelrag.linking.detectors import LLMRelationshipDetector
from zettelrag.linking.generator import LinkGenerator
from zettelrag.llms.instructor_llm_chat import InstructorLLMChat
from zettelrag.search_index.local_index import LocalSearchIndex
from zettelrag.service import ZettelkastenService


def configure_logging(level: str) -> None:
    logger.configure(handlers=[{"sink": sys.stderr, "level": level}])


def build_embedder(settings: Settings) -> Embedder:
    if settings.embedding_provider == "openai":
        return OpenAIEmbedder(api_key=settings.openai_api_key)
    return VoyageEmbedder(api_key=settings.voyage_ai_api_key)


def build_service(settings: Settings, with_chat: bool = True) -> ZettelkastenService:
    """Build a service backed by the local index, loading any notes already saved there.

    Args:
        settings: Application settings
        with_chat: Whether to create the Anthropic chat client used by `ask` and LLM linking
    """
    index = LocalSearchIndex(embedder=build_embedder(settings), filepath=settings.local_index_path)

    chat = None
    if with_chat:
        logger.info("Initializing Claude chat with Instructor")
        anthropic_client = Anthropic(api_key=settings.anthropic_api_key)
        instructor_client = instructor.from_anthropic(
            anthropic_client, mode=instructor.Mode.ANTHROPIC_TOOLS
        )
        chat = InstructorLLMChat(instructor_client, model=settings.llm_model)

    detector = None
    if settings.enable_llm_linking and chat is not None:
        detector = LLMRelationshipDetector(chat=chat)

    link_generator = LinkGenerator(
        classifier=LinkClassifier(
            min_strength=settings.link_min_strength,
            similarity_threshold=settings.link_similarity_threshold,
        ),
        detector=detector,
        importance_threshold=settings.llm_importance_threshold,
    )

    service = ZettelkastenService(
        index=index,
        link_generator=link_generator,
        chat=chat,
        system_message=settings.system_message,
        candidate_pool_size=settings.candidate_pool_size,
        top_k=settings.rag_top_k,
        link_depth=settings.default_link_depth,
    )
    service.load()
    return service
