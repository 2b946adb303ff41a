# postgresql.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from recruitment.config import settings

SQLALCHEMY_DATABASE_URI = settings.SQLALCHEMY_DATABASE_URI


def build_engine(uri: str):
    """DB URI에 맞는 엔진을 생성합니다. SQLite(로컬/테스트)는 스레드 검사를 끕니다."""
    if uri.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in uri or uri in ("sqlite://", "sqlite:///"):
            options["poolclass"] = StaticPool
        return create_engine(uri, echo=False, **options)
    return create_engine(uri, echo=False, pool_pre_ping=True)


engine = build_engine(SQLALCHEMY_DATABASE_URI)

Base = declarative_base()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
