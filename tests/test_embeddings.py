from types import SimpleNamespace

import pytest

from app.core.config import Settings
from app.core.embeddings import EmbeddingProvider
from app.core.models import SchemaEmbedding


class FakeEmbeddingsAPI:
    def __init__(self, size):
        self.size = size
        self.requests = []

    async def create(self, model, input, dimensions):
        self.requests.append({"model": model, "input": input, "dimensions": dimensions})
        return SimpleNamespace(data=[SimpleNamespace(embedding=[0.5] * self.size)])


class FakeOpenAI:
    def __init__(self, size):
        self.embeddings = FakeEmbeddingsAPI(size)
        self.closed = False

    async def close(self):
        self.closed = True


@pytest.mark.asyncio
async def test_vector_size_matches_stored_column():
    """Embeddings built from settings always fit the embedding column"""
    provider = EmbeddingProvider.from_settings(Settings(_env_file=None))

    assert provider.dimensions == SchemaEmbedding.__table__.c.embedding.type.dim
    await provider.close()


@pytest.mark.asyncio
async def test_embed_sends_model_and_dimensions():
    client = FakeOpenAI(size=1536)
    provider = EmbeddingProvider(model="text-embedding-3-small", client=client)

    vector = await provider.embed("Table: orders")

    assert len(vector) == 1536
    assert client.embeddings.requests == [
        {"model": "text-embedding-3-small", "input": "Table: orders", "dimensions": 1536}
    ]


@pytest.mark.asyncio
async def test_wrong_size_embedding_rejected():
    provider = EmbeddingProvider(client=FakeOpenAI(size=768))

    with pytest.raises(ValueError, match="1536"):
        await provider.embed("Table: orders")
