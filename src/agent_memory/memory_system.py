import logging
from typing import Any, Dict, Optional

from .agents.actions import CommandRunner, FileActions
from .agents.agent import Agent
from .agents.definitions import AgentDefinition
from .agents.llm_client import OllamaClient
from .config_loader import AppConfig
from .embedding_client import EmbeddingClient
from .memory_engine import AgentMemory, MemoryEngine
from .vector_store import InMemoryVectorStore, PgVectorStore, VectorStoreClient

logger = logging.getLogger(__name__)


def build_vector_store(config: AppConfig) -> VectorStoreClient:
    store_config = config.vector_store
    if store_config.backend == "memory":
        return InMemoryVectorStore()
    if store_config.backend == "pgvector":
        return PgVectorStore(
            connection_string=store_config.connection_string,
            table_name=store_config.table_name,
            dimensions=store_config.dimensions,
            min_connections=store_config.min_connections,
            max_connections=store_config.max_connections,
            command_timeout=store_config.command_timeout
        )
    raise ValueError(f"Unknown vector store backend: {store_config.backend!r}")


class AgentMemorySystem:
    """Owns the provider clients and the memory engine built on top of them"""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        embedding_client: Optional[EmbeddingClient] = None,
        vector_store: Optional[VectorStoreClient] = None,
        llm_client: Optional[OllamaClient] = None
    ):
        self.config = config or AppConfig()
        self.embedding_client = embedding_client or EmbeddingClient(
            base_url=self.config.embedding.base_url,
            model=self.config.embedding.model,
            timeout=self.config.embedding.timeout
        )
        self.vector_store = vector_store or build_vector_store(self.config)

        memory_config = self.config.memory
        self.engine = MemoryEngine(
            embedding_provider=self.embedding_client,
            vector_store=self.vector_store,
            max_chunk_size=memory_config.max_chunk_size,
            embedding_batch_size=memory_config.embedding_batch_size,
            boundary_window_ratio=memory_config.boundary_window_ratio,
            namespace_prefix=memory_config.namespace_prefix,
            default_top_k=memory_config.default_top_k
        )
        self._llm_client = llm_client
        self._initialized = False

    async def initialize(self):
        """Initialize all memory system components"""
        try:
            await self.vector_store.initialize()
            self._initialized = True
            logger.info("AgentMemorySystem initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize AgentMemorySystem: {e}")
            raise

    async def close(self):
        """Close all memory system components"""
        await self.vector_store.close()
        await self.embedding_client.close()
        if self._llm_client is not None:
            await self._llm_client.close()
            self._llm_client = None
        self._initialized = False
        logger.info("AgentMemorySystem closed successfully")

    async def health_check(self) -> Dict[str, Any]:
        if not self._initialized:
            return {"initialized": False}

        health_status = {
            "embedding_client": await self.embedding_client.health_check(),
            "vector_store": await self.vector_store.health_check(),
        }
        if self._llm_client is not None:
            health_status["llm"] = await self._llm_client.health_check()
        health_status["overall"] = all(
            component.get("status") == "ok" for component in health_status.values()
        )
        return health_status

    def for_agent(self, agent_id: str) -> AgentMemory:
        if not self._initialized:
            raise RuntimeError("AgentMemorySystem not initialized")
        return self.engine.for_agent(agent_id)

    def llm_client(self) -> OllamaClient:
        """Ollama client built from the ``llm`` section, shared by every agent of this system"""
        if self._llm_client is None:
            self._llm_client = OllamaClient(
                service_url=self.config.llm.service_url,
                timeout=self.config.llm.timeout
            )
        return self._llm_client

    def create_agent(
        self,
        definition: AgentDefinition,
        files: Optional[FileActions] = None,
        commands: Optional[CommandRunner] = None,
        agent_id: Optional[str] = None
    ) -> Agent:
        """Agent wired to this system's LLM client, configured model overrides and its own memory.

        The memory namespace is keyed by ``agent_id``, defaulting to the definition name.
        """
        return Agent(
            definition,
            self.llm_client(),
            self.for_agent(agent_id or definition.name),
            files=files,
            commands=commands,
            model_overrides=self.config.llm.models
        )

    async def __aenter__(self) -> "AgentMemorySystem":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
