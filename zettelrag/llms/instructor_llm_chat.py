from typing import List

from instructor import Instructor

from zettelrag.llms.schemas import ChatAnswer, LLMMessage


class InstructorLLMChat:
    def __init__(
        self,
        instructor: Instructor,
        model: str = "claude-3-5-sonnet-20241022",
        max_tokens: int = 1024,
    ) -> None:
        self.instructor = instructor
        self.model = model
        self.max_tokens = max_tokens

    def chat(self, messages: List[LLMMessage]) -> LLMMessage:
        response = self.instructor.chat.completions.create(
            model=self.model,
            max_tokens=self.max_tokens,
            messages=[m.model_dump() for m in messages],  # type: ignore
            response_model=ChatAnswer,
        )
        return LLMMessage(role="assistant", content=response.answer)
