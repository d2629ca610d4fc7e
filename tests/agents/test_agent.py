import pytest
from unittest.mock import AsyncMock, MagicMock

from agent_memory.agents.actions import CommandResult, FileActions
from agent_memory.agents.agent import Agent
from agent_memory.agents.definitions import MODEL_BY_PURPOSE, AgentDefinition
from agent_memory.errors import ActionError


@pytest.fixture
def llm():
    client = MagicMock()
    client.generate = AsyncMock(return_value="Sure, noted.")
    return client


@pytest.fixture
def assistant(llm, engine):
    definition = AgentDefinition(name="assistant", purpose="general", prompt="You are a helpful assistant.")
    return Agent(definition, llm, engine.for_agent("assistant"))


@pytest.mark.asyncio
async def test_ask_uses_definition_model_and_system_prompt(assistant, llm):
    response = await assistant.ask("Hello")

    assert response.text == "Sure, noted."
    assert response.model == MODEL_BY_PURPOSE["general"]
    assert response.agent == "assistant"
    assert response.parsed is None
    kwargs = llm.generate.call_args.kwargs
    assert kwargs["model"] == MODEL_BY_PURPOSE["general"]
    assert kwargs["system"] == "You are a helpful assistant."
    assert kwargs["json_mode"] is False


@pytest.mark.asyncio
async def test_ask_includes_relevant_memories_in_prompt(assistant, llm):
    await assistant.remember("The deploy window is Friday at noon", metadata={"topic": "deploys"})

    response = await assistant.ask("When is the deploy window?", remember=False)

    prompt = llm.generate.call_args.args[0]
    assert "RELEVANT MEMORIES:" in prompt
    assert "- The deploy window is Friday at noon" in prompt
    assert prompt.endswith("MESSAGE:\nWhen is the deploy window?")
    assert response.memories[0].metadata["topic"] == "deploys"


@pytest.mark.asyncio
async def test_ask_without_memory_skips_search(assistant, llm, embedding_provider):
    await assistant.ask("Hello", use_memory=False, remember=False)

    assert embedding_provider.calls == []
    assert "RELEVANT MEMORIES:" not in llm.generate.call_args.args[0]


@pytest.mark.asyncio
async def test_ask_remembers_exchange(assistant):
    await assistant.ask("My favourite colour is teal")

    results = await assistant.recall("favourite colour", filter={"contentType": "conversation"})

    assert results[0].text == "User: My favourite colour is teal\nAgent: Sure, noted."
    assert results[0].metadata["agent"] == "assistant"


@pytest.mark.asyncio
async def test_json_agent_parses_reply(llm, engine):
    llm.generate.return_value = 'Here you go: {"summary": "all good", "risk": "low"} thanks'
    definition = AgentDefinition(
        name="analyst",
        purpose="analysis",
        response_format="json",
        response_schema={"summary": "one sentence", "risk": "low|medium|high"}
    )
    agent = Agent(definition, llm, engine.for_agent("analyst"), model_overrides={"analysis": "custom:1b"})

    response = await agent.ask("Assess the release", remember=False)

    assert response.parsed == {"summary": "all good", "risk": "low"}
    assert response.model == "custom:1b"
    prompt = llm.generate.call_args.args[0]
    assert '"summary": "one sentence"' in prompt
    assert llm.generate.call_args.kwargs["json_mode"] is True


def test_parse_json_handles_bad_replies():
    assert Agent._parse_json("no json here") is None
    assert Agent._parse_json("{broken: json}") is None
    assert Agent._parse_json('{"a": 1}') == {"a": 1}


@pytest.mark.asyncio
async def test_agents_do_not_share_memory(llm, engine):
    first = Agent(AgentDefinition(name="first"), llm, engine.for_agent("first"))
    second = Agent(AgentDefinition(name="second"), llm, engine.for_agent("second"))

    await first.remember("launch codes are in the blue folder")

    assert await second.recall("launch codes") == []
    assert await first.forget() == 1
    assert await first.recall("launch codes") == []


@pytest.mark.asyncio
async def test_file_actions(llm, engine, tmp_path):
    agent = Agent(AgentDefinition(name="writer"), llm, engine.for_agent("writer"), files=FileActions(tmp_path))

    await agent.write_file("draft.md", "# Title\n")
    await agent.append_file("draft.md", "Body\n")

    assert await agent.read_file("draft.md") == "# Title\nBody\n"


@pytest.mark.asyncio
async def test_run_command_delegates_to_runner(llm, engine):
    runner = MagicMock()
    runner.run = AsyncMock(return_value=CommandResult(command="ls", exit_code=0, stdout="a\n"))
    agent = Agent(AgentDefinition(name="ops"), llm, engine.for_agent("ops"), commands=runner)

    result = await agent.run_command("ls")

    assert result.stdout == "a\n"
    runner.run.assert_awaited_once_with("ls")


@pytest.mark.asyncio
async def test_actions_require_helpers(assistant):
    with pytest.raises(ActionError):
        await assistant.read_file("anything.txt")

    with pytest.raises(ActionError):
        await assistant.run_command("ls")
