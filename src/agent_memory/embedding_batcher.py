import logging
from typing import List, Optional, Protocol, Sequence

from .errors import EmbeddingProviderError
from .metrics import EMBEDDING_BATCHES_TOTAL
from .models import Chunk, EmbeddedChunk

logger = logging.getLogger(__name__)


class EmbeddingProvider(Protocol):
    async def embed(self, texts: List[str]) -> List[List[float]]:
        ...


class EmbeddingBatcher:
    """Drives an embedding provider over chunks in size-bounded, ordered batches.

    One provider request is issued per batch and batches are sent strictly one
    after another. The returned vectors line up with the input chunks whatever
    the batch size.
    """

    def __init__(self, provider: EmbeddingProvider, batch_size: int = 100):
        self.provider = provider
        self.batch_size = batch_size

    async def embed_all(
        self,
        chunks: Sequence[Chunk],
        batch_size: Optional[int] = None
    ) -> List[EmbeddedChunk]:
        """Embed every chunk, preserving input order"""
        batch_size = batch_size if batch_size is not None else self.batch_size
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")

        embedded: List[EmbeddedChunk] = []
        for offset in range(0, len(chunks), batch_size):
            batch = chunks[offset:offset + batch_size]
            start_index, end_index = batch[0].index, batch[-1].index

            try:
                vectors = await self.provider.embed([c.text for c in batch])
            except Exception as e:
                logger.error(f"Embedding batch {start_index}-{end_index} failed: {e}")
                raise EmbeddingProviderError(
                    "Embedding provider call failed",
                    start_index=start_index,
                    end_index=end_index,
                    details={"error": str(e), "batch_size": len(batch)}
                ) from e
            EMBEDDING_BATCHES_TOTAL.inc()

            if vectors is None or len(vectors) != len(batch):
                raise EmbeddingProviderError(
                    "Embedding provider returned a mismatched number of vectors",
                    start_index=start_index,
                    end_index=end_index,
                    details={"expected": len(batch), "received": len(vectors or [])}
                )

            embedded.extend(
                EmbeddedChunk(chunk_index=c.index, vector=list(v))
                for c, v in zip(batch, vectors)
            )
            logger.debug(f"Embedded batch {start_index}-{end_index} ({len(batch)} chunks)")

        return embedded


async def embed_all(
    chunks: Sequence[Chunk],
    batch_size: int,
    provider: EmbeddingProvider
) -> List[EmbeddedChunk]:
    """Functional form of EmbeddingBatcher.embed_all"""
    return await EmbeddingBatcher(provider, batch_size).embed_all(chunks)
