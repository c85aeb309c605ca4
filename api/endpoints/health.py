from fastapi import APIRouter, Depends, HTTPException
from app.container import get_llm_client, get_retriever
from app.settings import settings
from infra.llm.client import LLMClient
from infra.rag.qdrant_client import get_client
from infra.rag.retriever import ContextRetriever

router = APIRouter()


@router.get("/health")
def health(llm: LLMClient = Depends(get_llm_client),
           retriever: ContextRetriever = Depends(get_retriever)):
    return {
        "status": "ok",
        "llm_providers": llm.available_providers(),
        "retrieval_available": retriever.is_available(),
    }


@router.get("/vector-db/health")
def vector_db_health():
    if not settings.QDRANT_URL:
        raise HTTPException(status_code=503, detail="QDRANT_URL is not configured")
    client = get_client()
    try:
        collections = client.get_collections()
    except Exception as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return {
        "status": "ok",
        "collections": [col.name for col in collections.collections],
        "collection_count": len(collections.collections),
    }
