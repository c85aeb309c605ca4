import logging
from typing import List, Optional

import httpx

from app.settings import settings
from domain.errors import ProviderHTTPError

logger = logging.getLogger(__name__)

EMBEDDINGS_URL = "https://api.openai.com/v1/embeddings"
BATCH_SIZE = 96


class OpenAIEmbedder:
    """Batched calls to the OpenAI embeddings endpoint; vectors come back in input order."""

    def __init__(self, api_key: Optional[str], model: str, *, batch_size: int = BATCH_SIZE,
                 timeout: float = 60.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        if not api_key:
            raise RuntimeError("OPENAI_API_KEY is required for embeddings")
        self.api_key = api_key
        self.model = model
        self.batch_size = batch_size
        self.timeout = timeout
        self._transport = transport

    async def embed(self, texts: List[str]) -> List[List[float]]:
        vectors: List[List[float]] = []
        if not texts:
            return vectors
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            for start in range(0, len(texts), self.batch_size):
                batch = texts[start:start + self.batch_size]
                r = await client.post(
                    EMBEDDINGS_URL,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json={"model": self.model, "input": batch},
                )
                if r.status_code >= 400:
                    raise ProviderHTTPError(r.status_code, f"embeddings returned HTTP {r.status_code}: {r.text[:200]}")
                data = sorted(r.json()["data"], key=lambda item: item.get("index", 0))
                vectors.extend(item["embedding"] for item in data)
        logger.debug("Embedded %d texts with %s", len(vectors), self.model)
        return vectors

    async def embed_query(self, text: str) -> List[float]:
        [vector] = await self.embed([text])
        return vector


def embedder_from_settings() -> OpenAIEmbedder:
    return OpenAIEmbedder(settings.OPENAI_API_KEY, settings.OPENAI_EMBEDDING_MODEL)
