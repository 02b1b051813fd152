from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # LLM settings
    anthropic_api_key: str | None = None
    voyage_ai_api_key: str | None = None
    openai_api_key: str | None = None
    embedding_provider: Literal["voyage", "openai"] = "voyage"
    llm_model: str = "claude-3-5-sonnet-20241022"
    system_message: str = """You are a helpful assistant that answers questions using the user's linked notes.

Use proper Markdown formatting and keep answers grounded in the notes you are given.
When a note is only reachable through a link, say how it relates to the direct matches.
"""

    # Storage settings
    local_index_path: str = "data/index.json"

    # Linking settings
    link_min_strength: float = 0.3
    link_similarity_threshold: float = 0.7
    llm_importance_threshold: float = 0.7
    enable_llm_linking: bool = False
    candidate_pool_size: int = 20

    # Retrieval settings
    rag_top_k: int = 5
    default_link_depth: int = 2

    log_level: str = "INFO"  # Can be DEBUG, INFO, WARNING, ERROR, CRITICAL


settings = Settings()
