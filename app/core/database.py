# app/core/database.py

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from app.core.config import settings


def make_engine(url: str) -> Engine:
    if not url.startswith("sqlite"):
        return create_engine(url, echo=False, future=True)

    # SQLite: a sessão roda no threadpool do FastAPI
    kwargs = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # banco em memória precisa de uma conexão única compartilhada
        kwargs["poolclass"] = StaticPool
    return create_engine(url, echo=False, future=True, **kwargs)


engine = make_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


# Dependência para usar em endpoints
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
