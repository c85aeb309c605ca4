"""Shared fixtures: in-memory database and stored input files."""

import os

# keep the suite offline and away from any local .env
os.environ["SQLITE_PATH"] = ":memory:"
for _key in ("OPENAI_API_KEY", "OPENROUTER_API_KEY", "GEMINI_API_KEY", "QDRANT_URL", "LOG_FILE"):
    os.environ[_key] = ""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from infra.db.session import init_db
from infra.rag.retriever import ContextRetriever
from infra.repositories.files_repository import FilesRepository
from infra.repositories.jobs_repository import JobsRepository


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    init_db(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    engine.dispose()


@pytest.fixture
def files_repo(session_factory):
    return FilesRepository(session_factory)


@pytest.fixture
def jobs_repo(session_factory):
    return JobsRepository(session_factory)


@pytest.fixture
def stored_files(files_repo):
    cv_id = files_repo.save("CV", "/tmp/cv.pdf", "cv.pdf",
                            text="Jane Doe. Backend engineer, Python, PostgreSQL, AWS, 5 years.")
    report_id = files_repo.save("PROJECT_REPORT", "/tmp/report.pdf", "report.pdf",
                                text="Built an async evaluation pipeline with retries and RAG.")
    return cv_id, report_id


@pytest.fixture
def empty_retriever():
    return ContextRetriever(None)
