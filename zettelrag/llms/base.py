from typing import List, Protocol

from zettelrag.llms.schemas import LLMMessage


class LLMChat(Protocol):
    def chat(self, messages: List[LLMMessage]) -> LLMMessage: ...
