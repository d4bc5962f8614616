import logging
from typing import List, Optional

from openai import AsyncOpenAI

from app.core.config import Settings
from app.core.models import EMBEDDING_DIMENSIONS

logger = logging.getLogger(__name__)


class EmbeddingProvider:
    """Maps text to a fixed-length vector using the OpenAI embeddings API."""

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        dimensions: int = EMBEDDING_DIMENSIONS,
        api_key: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model
        self.dimensions = dimensions
        self._client = client or AsyncOpenAI(api_key=api_key)

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmbeddingProvider":
        # Vectors must fit the stored column, so the size comes from the model
        return cls(
            model=settings.EMBEDDING_MODEL,
            dimensions=EMBEDDING_DIMENSIONS,
            api_key=settings.OPENAI_API_KEY,
        )

    async def embed(self, text: str) -> List[float]:
        response = await self._client.embeddings.create(
            model=self.model,
            input=text,
            dimensions=self.dimensions,
        )
        embedding = response.data[0].embedding

        if len(embedding) != self.dimensions:
            raise ValueError(
                f"Expected {self.dimensions}-dimensional embedding, got {len(embedding)}"
            )
        return embedding

    async def close(self) -> None:
        await self._client.close()
