from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from app.settings import settings


def sqlite_url(path: str) -> str:
    return "sqlite://" if path in ("", ":memory:") else f"sqlite:///{path}"


# the job queue and FastAPI's threadpool share this engine
engine = create_engine(
    sqlite_url(settings.SQLITE_PATH),
    connect_args={"check_same_thread": False},
    echo=False,
    future=True,
)
SessionLocal = sessionmaker(
    bind=engine, autoflush=False, autocommit=False, future=True)


class Base(DeclarativeBase):
    pass


def init_db(bind=None):
    # models must be imported so their tables are registered on Base.metadata
    from infra.db import models  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
