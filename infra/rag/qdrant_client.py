from typing import List, Optional
from qdrant_client import AsyncQdrantClient, QdrantClient
from qdrant_client.models import Distance, VectorParams, PointStruct, Filter, FieldCondition, MatchValue
from app.settings import settings
import hashlib
import uuid


def get_client() -> QdrantClient:
    return QdrantClient(url=settings.QDRANT_URL, api_key=settings.QDRANT_API_KEY or None)


def get_async_client() -> AsyncQdrantClient:
    return AsyncQdrantClient(url=settings.QDRANT_URL, api_key=settings.QDRANT_API_KEY or None)


PAYLOAD_INDEXES = (
    ("doc_type", "keyword"),
    ("source", "keyword"),
    ("chunk_index", "integer"),
)


def _ensure_payload_indexes(c: QdrantClient, collection: str):
    existing = set((c.get_collection(collection).payload_schema or {}).keys())
    for field, schema in PAYLOAD_INDEXES:
        if field in existing:
            continue
        c.create_payload_index(
            collection_name=collection,
            field_name=field,
            field_schema=schema
        )


def ensure_collection(name: str, vector_size: int = 1536):
    c = get_client()
    names = {x.name for x in c.get_collections().collections}
    if name not in names:
        c.create_collection(collection_name=name, vectors_config=VectorParams(
            size=vector_size, distance=Distance.COSINE))
    # collections created before an index field existed pick it up here
    _ensure_payload_indexes(c, name)


def _stable_id(doc_type: str, text: str, source: str = "", chunk_index: int = -1) -> str:
    raw = f"{doc_type}|{source}|{chunk_index}|{text}"
    return str(uuid.UUID(hashlib.md5(raw.encode("utf-8")).hexdigest()))


def upsert_texts_with_ids(collection: str, vectors: list[list[float]], payloads: list[dict]):
    points = [
        PointStruct(
            id=_stable_id(
                p["doc_type"], p["text"], p.get("source", ""), p.get("chunk_index", -1)
            ),
            vector=v,
            payload=p
        )
        for v, p in zip(vectors, payloads)
    ]
    get_client().upsert(collection_name=collection, points=points)


async def search_top_k_filtered(
    client: AsyncQdrantClient,
    collection: str,
    query_vector: list[float],
    k: int,
    doc_type: Optional[str] = None,
) -> List[dict]:
    q_filter = None
    if doc_type:
        q_filter = Filter(must=[FieldCondition(key="doc_type", match=MatchValue(value=doc_type))])

    res = await client.query_points(
        collection_name=collection,
        query=query_vector,
        limit=k,
        query_filter=q_filter,
        with_payload=True,
    )
    return [{"payload": h.payload or {}, "score": float(h.score)} for h in res.points]
