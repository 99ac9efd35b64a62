from typing import Literal

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class SymptomContext(BaseModel):
    original_symptoms: str | None = None


class SymptomQuery(BaseModel):
    query: str = ""
    history: list[ChatMessage] = Field(default_factory=list)
    level: str = "initial"
    context: SymptomContext | None = None
