import json
from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog
from pydantic import BaseModel, Field

from ..errors import ActionError
from ..memory_engine import AgentMemory
from ..models import MemorySearchResult, MetadataValue
from .actions import CommandResult, CommandRunner, FileActions
from .definitions import AgentDefinition
from .llm_client import OllamaClient

logger = structlog.get_logger()


class AgentResponse(BaseModel):
    agent: str
    model: str
    text: str
    parsed: Optional[Dict[str, Any]] = None
    memories: List[MemorySearchResult] = Field(default_factory=list)
    generation_time_ms: int = 0


class Agent:
    """A defined agent wired to a language model, its own memory and optional actions."""

    def __init__(
        self,
        definition: AgentDefinition,
        llm: OllamaClient,
        memory: AgentMemory,
        files: Optional[FileActions] = None,
        commands: Optional[CommandRunner] = None,
        model_overrides: Optional[Dict[str, str]] = None
    ):
        self.definition = definition
        self.llm = llm
        self.memory = memory
        self.files = files
        self.commands = commands
        self.model = definition.resolve_model(model_overrides)

    @property
    def name(self) -> str:
        return self.definition.name

    async def ask(
        self,
        message: str,
        use_memory: bool = True,
        top_k: Optional[int] = None,
        remember: bool = True
    ) -> AgentResponse:
        """Answer a message, grounding the prompt in related memories"""
        start_time = datetime.now()
        memories = await self.memory.search(message, top_k=top_k) if use_memory else []

        prompt = self._build_prompt(message, memories)
        json_mode = self.definition.response_format == "json"
        reply = await self.llm.generate(
            prompt,
            model=self.model,
            system=self.definition.prompt or None,
            json_mode=json_mode
        )

        response = AgentResponse(
            agent=self.name,
            model=self.model,
            text=reply,
            parsed=self._parse_json(reply) if json_mode else None,
            memories=memories,
            generation_time_ms=int((datetime.now() - start_time).total_seconds() * 1000)
        )

        if remember:
            await self.memory.save(
                f"User: {message}\nAgent: {reply}",
                content_type="conversation",
                metadata={"agent": self.name}
            )

        logger.info("Agent answered",
                    agent=self.name,
                    model=self.model,
                    memories_used=len(memories),
                    generation_time_ms=response.generation_time_ms)
        return response

    def _build_prompt(self, message: str, memories: List[MemorySearchResult]) -> str:
        sections = []
        if memories:
            context = "\n".join(f"- {memory.text.strip()}" for memory in memories)
            sections.append(f"RELEVANT MEMORIES:\n{context}")

        if self.definition.response_format == "json":
            if self.definition.response_schema:
                fields = ",\n".join(
                    f'  "{field}": "{description}"'
                    for field, description in self.definition.response_schema.items()
                )
                sections.append(f"Respond with ONLY valid JSON in this exact format:\n{{\n{fields}\n}}")
            else:
                sections.append("Respond with ONLY a valid JSON object.")

        sections.append(f"MESSAGE:\n{message}")
        return "\n\n".join(sections)

    @staticmethod
    def _parse_json(reply: str) -> Optional[Dict[str, Any]]:
        """Decode the outermost JSON object in the reply, ignoring surrounding text"""
        text = reply.strip()
        start_idx = text.find('{')
        end_idx = text.rfind('}') + 1
        if start_idx == -1 or end_idx == 0:
            logger.warning("No JSON found in model reply", reply=text[:200])
            return None
        try:
            parsed = json.loads(text[start_idx:end_idx])
        except json.JSONDecodeError as e:
            logger.warning("Failed to parse model JSON reply", reply=text[:200], error=str(e))
            return None
        return parsed if isinstance(parsed, dict) else None

    # ==== Memory ====

    async def remember(
        self,
        content: str,
        content_type: str = "text",
        metadata: Optional[Dict[str, MetadataValue]] = None
    ) -> List[str]:
        return await self.memory.save(content, content_type, metadata)

    async def recall(
        self,
        query: str,
        top_k: Optional[int] = None,
        filter: Optional[Dict[str, MetadataValue]] = None
    ) -> List[MemorySearchResult]:
        return await self.memory.search(query, top_k, filter)

    async def forget(self) -> int:
        return await self.memory.clear()

    # ==== Actions ====

    def _require_files(self) -> FileActions:
        if self.files is None:
            raise ActionError("Agent has no file actions configured", details={"agent": self.name})
        return self.files

    async def read_file(self, path: str) -> str:
        return await self._require_files().read(path)

    async def write_file(self, path: str, content: str):
        return await self._require_files().write(path, content)

    async def append_file(self, path: str, content: str):
        return await self._require_files().append(path, content)

    async def run_command(self, command: str) -> CommandResult:
        if self.commands is None:
            raise ActionError("Agent has no command runner configured", details={"agent": self.name})
        return await self.commands.run(command)
