"""
Agent Memory

Per-agent semantic memory over a vector store: content is chunked, embedded in
ordered batches and upserted into the agent's own namespace, then recalled with
similarity search and exact-match metadata filters.
"""

from .chunker import chunk
from .embedding_batcher import EmbeddingBatcher, embed_all
from .embedding_client import EmbeddingClient
from .errors import (
    ActionError,
    AgentMemoryError,
    ChunkingError,
    EmbeddingProviderError,
    InvalidMetadataError,
    LLMError,
    StoreQueryError,
    StoreWriteError
)
from .memory_engine import AgentMemory, MemoryEngine
from .memory_system import AgentMemorySystem
from .models import Chunk, EmbeddedChunk, MemoryRecord, MemorySearchResult
from .vector_store import InMemoryVectorStore, PgVectorStore, VectorStoreClient

__all__ = [
    "chunk",
    "EmbeddingBatcher",
    "embed_all",
    "EmbeddingClient",
    "ActionError",
    "AgentMemoryError",
    "ChunkingError",
    "EmbeddingProviderError",
    "InvalidMetadataError",
    "LLMError",
    "StoreQueryError",
    "StoreWriteError",
    "AgentMemory",
    "MemoryEngine",
    "AgentMemorySystem",
    "Chunk",
    "EmbeddedChunk",
    "MemoryRecord",
    "MemorySearchResult",
    "InMemoryVectorStore",
    "PgVectorStore",
    "VectorStoreClient"
]
