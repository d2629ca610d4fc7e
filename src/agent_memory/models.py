from pydantic import BaseModel, Field
from typing import Optional, Dict, List, Union
from datetime import datetime, timezone

MetadataValue = Union[str, int, float, bool]


class Chunk(BaseModel):
    """A bounded slice of source text, produced for independent embedding"""
    text: str
    index: int


class EmbeddedChunk(BaseModel):
    """Embedding vector aligned to the chunk it was computed from"""
    chunk_index: int
    vector: List[float]


class MemoryRecord(BaseModel):
    """A single embedded chunk as persisted in an agent's namespace"""
    id: str
    namespace: str
    vector: Optional[List[float]] = None  # None on query results unless values were requested
    text: str
    content_type: str
    metadata: Dict[str, MetadataValue] = Field(default_factory=dict)
    chunk_index: int = 0
    total_chunks: int = 1
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class MemorySearchResult(BaseModel):
    """Projection of a matched record returned to callers"""
    text: str
    metadata: Dict[str, MetadataValue]
    score: float
