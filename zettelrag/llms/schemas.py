from typing import Literal

from pydantic import BaseModel, Field


class LLMMessage(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


class ChatAnswer(BaseModel):
    """Plain answer returned by the assistant"""

    answer: str = Field(
        ...,
        description=(
            "The answer to the last user message. Follow any output format the user asks for "
            "exactly, without extra commentary."
        ),
    )
