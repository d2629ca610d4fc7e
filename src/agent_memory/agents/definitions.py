from typing import Dict, Optional
from pydantic import BaseModel, Field, field_validator

DEFAULT_PURPOSE = "general"

MODEL_BY_PURPOSE: Dict[str, str] = {
    "general": "llama3.2:latest",
    "code": "qwen2.5-coder:7b",
    "analysis": "llama3.1:8b",
    "creative": "mistral:7b",
    "summarization": "llama3.2:3b",
}


def select_model(purpose: str, overrides: Optional[Dict[str, str]] = None) -> str:
    """Model id for a purpose; configured overrides win, unknown purposes use the general model"""
    table = dict(MODEL_BY_PURPOSE)
    table.update(overrides or {})
    return table.get(purpose, table[DEFAULT_PURPOSE])


class AgentDefinition(BaseModel):
    """Named agent: what it is for, how it is prompted and what it answers with"""
    name: str = Field(min_length=1)
    purpose: str = DEFAULT_PURPOSE
    prompt: str = ""
    response_format: str = "text"  # text | json
    response_schema: Dict[str, str] = Field(default_factory=dict)  # field -> description
    model: Optional[str] = None

    @field_validator("response_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        if value not in ("text", "json"):
            raise ValueError("response_format must be 'text' or 'json'")
        return value

    def resolve_model(self, overrides: Optional[Dict[str, str]] = None) -> str:
        return self.model or select_model(self.purpose, overrides)
