"""Index reference PDFs (job description, case study brief, scoring rubric)
into the Qdrant collection the evaluator retrieves from.

    python -m ingest.ingest_documents --jd jd.pdf --brief brief.pdf --rubric rubric.pdf
"""
import os
import re
import asyncio
import logging
from typing import List, Optional

from app.settings import settings
from domain.models import DocumentType
from infra.pdf.parser import parse_pdf
from infra.rag.embeddings import embedder_from_settings
from infra.rag.qdrant_client import ensure_collection, upsert_texts_with_ids

log = logging.getLogger("ingest_documents")

CHUNK_SIZE = 1000
CHUNK_OVERLAP = 150


def chunk_text(text: str, size=CHUNK_SIZE, overlap=CHUNK_OVERLAP) -> List[str]:
    out, i = [], 0
    n = len(text)
    while i < n:
        piece = text[i:i+size].strip()
        if piece:
            out.append(piece)
        i += max(1, size - overlap)
    return out


def build_payloads(chunks: List[str], doc_type: DocumentType, source: str) -> List[dict]:
    return [{
        "text": t,
        "doc_type": DocumentType(doc_type).value,
        "source": source,
        "chunk_index": i,
    } for i, t in enumerate(chunks)]


async def ingest_document(path: str, doc_type: DocumentType, collection: Optional[str] = None) -> int:
    collection = collection or settings.QDRANT_COLLECTION
    ensure_collection(collection, vector_size=settings.EMBEDDING_VECTOR_SIZE)
    raw, _ = parse_pdf(path)
    chunks = chunk_text(re.sub(r"\s+\n", "\n", raw))
    if not chunks:
        log.warning("No text extracted from %s, skipping", path)
        return 0
    vecs = await embedder_from_settings().embed(chunks)
    upsert_texts_with_ids(collection, vecs, build_payloads(chunks, doc_type, os.path.basename(path)))
    log.info("Ingested %d %s chunks from %s", len(chunks), DocumentType(doc_type).value, path)
    return len(chunks)


async def main(jd_pdf: Optional[str], brief_pdf: Optional[str], rubric_pdf: Optional[str]):
    jobs = [
        (p, t) for p, t in (
            (jd_pdf, DocumentType.JOB_DESCRIPTION),
            (brief_pdf, DocumentType.CASE_STUDY_BRIEF),
            (rubric_pdf, DocumentType.SCORING_RUBRIC),
        ) if p
    ]
    if not jobs:
        raise SystemExit("Nothing to ingest: pass at least one of --jd, --brief, --rubric")
    for p, _ in jobs:
        if not (os.path.isfile(p) and p.lower().endswith(".pdf")):
            raise FileNotFoundError(f"Missing/invalid PDF: {p}")

    total = 0
    for path, doc_type in jobs:
        total += await ingest_document(path, doc_type)
    log.info("Ingestion completed: %d chunks into %s", total, settings.QDRANT_COLLECTION)


if __name__ == "__main__":
    import argparse
    from app.logging import configure_logging

    configure_logging()
    parser = argparse.ArgumentParser(
        description="Ingest reference documents for RAG-grounded evaluation")
    parser.add_argument("--jd", help="Path to Job Description PDF")
    parser.add_argument("--brief", help="Path to Case Study Brief PDF")
    parser.add_argument("--rubric", help="Path to Scoring Rubric PDF")
    args = parser.parse_args()
    asyncio.run(main(args.jd, args.brief, args.rubric))
