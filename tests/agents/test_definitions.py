import pytest
from pydantic import ValidationError

from agent_memory.agents.definitions import MODEL_BY_PURPOSE, AgentDefinition, select_model


def test_select_model_by_purpose():
    assert select_model("code") == MODEL_BY_PURPOSE["code"]
    assert select_model("summarization") == MODEL_BY_PURPOSE["summarization"]


def test_unknown_purpose_falls_back_to_general():
    assert select_model("poetry-slam") == MODEL_BY_PURPOSE["general"]


def test_overrides_win():
    overrides = {"code": "deepseek-coder:6.7b", "general": "phi3:mini"}

    assert select_model("code", overrides) == "deepseek-coder:6.7b"
    assert select_model("unknown", overrides) == "phi3:mini"


def test_explicit_model_beats_purpose():
    definition = AgentDefinition(name="reviewer", purpose="code", model="codellama:13b")

    assert definition.resolve_model({"code": "other"}) == "codellama:13b"


def test_definition_validation():
    with pytest.raises(ValidationError):
        AgentDefinition(name="")

    with pytest.raises(ValidationError):
        AgentDefinition(name="writer", response_format="xml")

    definition = AgentDefinition(name="writer")
    assert definition.purpose == "general"
    assert definition.response_format == "text"
