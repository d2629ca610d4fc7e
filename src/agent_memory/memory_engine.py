"""
Memory engine: per-agent save, search and clear over a vector store.

save:   content -> chunker -> embedding batcher -> records -> one store upsert
search: query -> single embedding -> store query -> {text, metadata, score}

Each agent owns exactly one namespace in the store, derived from its id. The
engine keeps no per-call state, so agents can use it concurrently.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import uuid4

import structlog

from . import chunker
from .embedding_batcher import EmbeddingBatcher, EmbeddingProvider
from .errors import InvalidMetadataError
from .metrics import MEMORY_RECORDS_SAVED_TOTAL, MEMORY_SEARCHES_TOTAL
from .models import Chunk, MemoryRecord, MemorySearchResult, MetadataValue
from .vector_store import VectorStoreClient

logger = structlog.get_logger()

SYSTEM_METADATA_KEYS = ("contentType", "chunkIndex", "totalChunks", "createdAt")


class MemoryEngine:
    """Chunks, embeds and stores agent memories, and answers similarity searches."""

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStoreClient,
        max_chunk_size: int = 1000,
        embedding_batch_size: int = 100,
        boundary_window_ratio: float = chunker.DEFAULT_BOUNDARY_WINDOW_RATIO,
        namespace_prefix: str = "agent-",
        default_top_k: int = 5
    ):
        self.batcher = EmbeddingBatcher(embedding_provider, embedding_batch_size)
        self.vector_store = vector_store
        self.max_chunk_size = max_chunk_size
        self.embedding_batch_size = embedding_batch_size
        self.boundary_window_ratio = boundary_window_ratio
        self.namespace_prefix = namespace_prefix
        self.default_top_k = default_top_k

    def namespace_for(self, agent_id: str) -> str:
        """Stable namespace owned by a single agent"""
        if not agent_id or not str(agent_id).strip():
            raise ValueError("agent_id must be a non-empty string")
        return f"{self.namespace_prefix}{agent_id}"

    def chunk(self, content: str) -> List[Chunk]:
        return chunker.chunk(content, self.max_chunk_size, self.boundary_window_ratio)

    async def save(
        self,
        agent_id: str,
        content: str,
        content_type: str = "text",
        metadata: Optional[Dict[str, MetadataValue]] = None
    ) -> List[str]:
        """Store content in the agent's memory and return the new record ids.

        Nothing is written unless every chunk was embedded and the upsert
        succeeded as a whole. Empty content is a no-op.
        """
        namespace = self.namespace_for(agent_id)
        caller_metadata = self._validate_metadata(metadata or {})

        chunks = self.chunk(content)
        if not chunks:
            logger.debug("Skipping save of empty content", agent_id=agent_id)
            return []

        embedded = await self.batcher.embed_all(chunks, self.embedding_batch_size)

        overridden = sorted(set(caller_metadata) & set(SYSTEM_METADATA_KEYS))
        if overridden:
            logger.warning("Caller metadata keys overridden by system fields",
                           agent_id=agent_id, keys=overridden)

        created_at = datetime.now(timezone.utc)
        total_chunks = len(chunks)
        records = []
        for chunk_item, embedding in zip(chunks, embedded):
            record_metadata = dict(caller_metadata)
            record_metadata.update({
                "contentType": content_type,
                "chunkIndex": chunk_item.index,
                "totalChunks": total_chunks,
                "createdAt": created_at.isoformat(),
            })
            records.append(MemoryRecord(
                id=uuid4().hex,
                namespace=namespace,
                vector=embedding.vector,
                text=chunk_item.text,
                content_type=content_type,
                metadata=record_metadata,
                chunk_index=chunk_item.index,
                total_chunks=total_chunks,
                created_at=created_at,
            ))

        await self.vector_store.upsert(namespace, records)
        MEMORY_RECORDS_SAVED_TOTAL.inc(len(records))

        logger.info("Saved memory", agent_id=agent_id, namespace=namespace,
                    content_type=content_type, chunks=total_chunks)
        return [record.id for record in records]

    async def search(
        self,
        agent_id: str,
        query_text: str,
        top_k: Optional[int] = None,
        filter: Optional[Dict[str, MetadataValue]] = None
    ) -> List[MemorySearchResult]:
        """Rank the agent's memories by similarity to query_text"""
        namespace = self.namespace_for(agent_id)
        top_k = top_k if top_k is not None else self.default_top_k
        if top_k <= 0:
            raise ValueError(f"top_k must be positive, got {top_k}")

        query_chunk = Chunk(text=query_text, index=0)
        embedded = await self.batcher.embed_all([query_chunk], batch_size=1)

        matches = await self.vector_store.query(
            namespace,
            embedded[0].vector,
            top_k,
            filter=filter or {},
            include_values=False
        )
        MEMORY_SEARCHES_TOTAL.labels(result="hit" if matches else "miss").inc()

        logger.debug("Searched memory", agent_id=agent_id, namespace=namespace,
                     top_k=top_k, matches=len(matches))
        return [
            MemorySearchResult(text=record.text, metadata=record.metadata, score=score)
            for record, score in matches
        ]

    async def clear(self, agent_id: str) -> int:
        """Irreversibly delete every memory of the agent"""
        namespace = self.namespace_for(agent_id)
        deleted = await self.vector_store.delete_namespace(namespace)
        logger.warning("Cleared agent memory", agent_id=agent_id, namespace=namespace, deleted=deleted)
        return deleted

    async def count(self, agent_id: str) -> int:
        return await self.vector_store.count(self.namespace_for(agent_id))

    def for_agent(self, agent_id: str) -> "AgentMemory":
        self.namespace_for(agent_id)
        return AgentMemory(self, agent_id)

    @staticmethod
    def _validate_metadata(metadata: Dict[str, MetadataValue]) -> Dict[str, MetadataValue]:
        for key, value in metadata.items():
            if not isinstance(key, str):
                raise InvalidMetadataError("Metadata keys must be strings", details={"key": repr(key)})
            if not isinstance(value, (str, int, float, bool)):
                raise InvalidMetadataError(
                    "Metadata values must be str, int, float or bool",
                    details={"key": key, "type": type(value).__name__}
                )
        return dict(metadata)


class AgentMemory:
    """Memory API bound to one agent"""

    def __init__(self, engine: MemoryEngine, agent_id: str):
        self.engine = engine
        self.agent_id = agent_id

    @property
    def namespace(self) -> str:
        return self.engine.namespace_for(self.agent_id)

    async def save(
        self,
        content: str,
        content_type: str = "text",
        metadata: Optional[Dict[str, MetadataValue]] = None
    ) -> List[str]:
        return await self.engine.save(self.agent_id, content, content_type, metadata)

    async def search(
        self,
        query: str,
        top_k: Optional[int] = None,
        filter: Optional[Dict[str, MetadataValue]] = None
    ) -> List[MemorySearchResult]:
        return await self.engine.search(self.agent_id, query, top_k, filter)

    async def clear(self) -> int:
        return await self.engine.clear(self.agent_id)

    async def count(self) -> int:
        return await self.engine.count(self.agent_id)
