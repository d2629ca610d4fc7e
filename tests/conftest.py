import string
from typing import List

import pytest

from agent_memory.errors import StoreQueryError, StoreWriteError
from agent_memory.memory_engine import MemoryEngine
from agent_memory.vector_store import InMemoryVectorStore


class FakeEmbeddingProvider:
    """Letter-frequency embeddings: similar texts land close together"""

    dimensions = len(string.ascii_lowercase) + 1

    def __init__(self, fail_on_call: int = None, drop_last: bool = False):
        self.calls: List[List[str]] = []
        self.fail_on_call = fail_on_call
        self.drop_last = drop_last

    @classmethod
    def vector_for(cls, text: str) -> List[float]:
        vector = [0.0] * cls.dimensions
        for char in text.lower():
            if char in string.ascii_lowercase:
                vector[string.ascii_lowercase.index(char)] += 1.0
        vector[-1] = 0.01
        return vector

    async def embed(self, texts: List[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise ConnectionError("embedding service unreachable")
        vectors = [self.vector_for(text) for text in texts]
        return vectors[:-1] if self.drop_last else vectors


class RecordingVectorStore(InMemoryVectorStore):
    """In-memory store that counts calls and can be told to reject writes or queries"""

    def __init__(self):
        super().__init__()
        self.upsert_calls = 0
        self.query_calls = 0
        self.fail_upserts = False
        self.fail_queries = False

    async def upsert(self, namespace, records):
        self.upsert_calls += 1
        if self.fail_upserts:
            raise StoreWriteError("upsert rejected", details={"namespace": namespace})
        await super().upsert(namespace, records)

    async def query(self, namespace, vector, top_k, filter=None, include_values=False):
        self.query_calls += 1
        if self.fail_queries:
            raise StoreQueryError("query rejected", details={"namespace": namespace})
        return await super().query(namespace, vector, top_k, filter, include_values)


@pytest.fixture
def provider_factory():
    return FakeEmbeddingProvider


@pytest.fixture
def embedding_provider():
    return FakeEmbeddingProvider()


@pytest.fixture
def vector_store():
    return RecordingVectorStore()


@pytest.fixture
def engine(embedding_provider, vector_store):
    return MemoryEngine(
        embedding_provider=embedding_provider,
        vector_store=vector_store,
        max_chunk_size=100,
        embedding_batch_size=4
    )
