import pytest

from agent_memory.chunker import chunk
from agent_memory.embedding_batcher import EmbeddingBatcher, embed_all
from agent_memory.errors import EmbeddingProviderError
from agent_memory.models import Chunk


@pytest.fixture
def chunks():
    return chunk("Memories are chunked, embedded and stored per agent. " * 4, 17)


@pytest.mark.asyncio
async def test_order_preserved_for_every_batch_size(chunks, provider_factory):
    expected = [provider_factory.vector_for(c.text) for c in chunks]

    for batch_size in range(1, len(chunks) + 1):
        provider = provider_factory()
        result = await embed_all(chunks, batch_size, provider)

        assert [e.chunk_index for e in result] == [c.index for c in chunks]
        assert [e.vector for e in result] == expected


@pytest.mark.asyncio
async def test_one_provider_call_per_batch(chunks, embedding_provider):
    batcher = EmbeddingBatcher(embedding_provider, batch_size=5)

    await batcher.embed_all(chunks)

    expected_calls = -(-len(chunks) // 5)
    assert len(embedding_provider.calls) == expected_calls
    assert all(len(call) <= 5 for call in embedding_provider.calls)
    flattened = [text for call in embedding_provider.calls for text in call]
    assert flattened == [c.text for c in chunks]


@pytest.mark.asyncio
async def test_empty_input_makes_no_calls(embedding_provider):
    result = await embed_all([], 10, embedding_provider)

    assert result == []
    assert embedding_provider.calls == []


@pytest.mark.asyncio
async def test_provider_failure_reports_batch_range(provider_factory):
    chunks = [Chunk(text=f"chunk {i}", index=i) for i in range(7)]
    provider = provider_factory(fail_on_call=2)

    with pytest.raises(EmbeddingProviderError) as exc_info:
        await embed_all(chunks, 3, provider)

    assert exc_info.value.start_index == 3
    assert exc_info.value.end_index == 5
    assert isinstance(exc_info.value.__cause__, ConnectionError)
    # No further batches attempted after the failure
    assert len(provider.calls) == 2


@pytest.mark.asyncio
async def test_mismatched_vector_count_is_provider_error(provider_factory):
    chunks = [Chunk(text=f"chunk {i}", index=i) for i in range(4)]
    provider = provider_factory(drop_last=True)

    with pytest.raises(EmbeddingProviderError) as exc_info:
        await embed_all(chunks, 4, provider)

    assert exc_info.value.start_index == 0
    assert exc_info.value.end_index == 3
    assert exc_info.value.details["received"] == 3


@pytest.mark.asyncio
async def test_invalid_batch_size_rejected(embedding_provider):
    with pytest.raises(ValueError):
        await embed_all([Chunk(text="x", index=0)], 0, embedding_provider)
