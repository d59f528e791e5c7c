import uuid
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .errors import RepositoryNotFound
from .models import RepositoryMetadata, RepositoryRecord

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Repository(Base):
    __tablename__ = "repositories"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    owner = Column(String(255), nullable=False)
    url = Column(String(1024), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    stars = Column(Integer, default=0, nullable=False)
    language = Column(String(255), nullable=True)
    status = Column(String(255), nullable=False)
    chunks_indexed = Column(Integer, default=0, nullable=False)
    indexed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)


class RepositoryStore:
    """Repository records keyed by URL. Each call runs in its own session."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._sessions = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

    def init_db(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def upsert_by_url(self, metadata: RepositoryMetadata, status: str) -> RepositoryRecord:
        with self._sessions() as session:
            row = session.scalars(select(Repository).where(Repository.url == metadata.url)).first()
            if row is None:
                row = Repository(
                    id=str(uuid.uuid4()),
                    url=metadata.url,
                    chunks_indexed=0,
                    created_at=_utcnow(),
                )
                session.add(row)
            row.name = metadata.name
            row.owner = metadata.owner
            row.description = metadata.description
            row.stars = metadata.stars
            row.language = metadata.language
            row.status = status
            session.commit()
            return RepositoryRecord.model_validate(row)

    def update(self, repository_id: str, **fields) -> RepositoryRecord:
        with self._sessions() as session:
            row = session.get(Repository, repository_id)
            if row is None:
                raise RepositoryNotFound(repository_id)
            for key, value in fields.items():
                setattr(row, key, value)
            session.commit()
            return RepositoryRecord.model_validate(row)

    def get(self, repository_id: str) -> RepositoryRecord | None:
        with self._sessions() as session:
            row = session.get(Repository, repository_id)
            return RepositoryRecord.model_validate(row) if row else None

    def get_by_url(self, url: str) -> RepositoryRecord | None:
        with self._sessions() as session:
            row = session.scalars(select(Repository).where(Repository.url == url)).first()
            return RepositoryRecord.model_validate(row) if row else None

    def list_all(self) -> list[RepositoryRecord]:
        with self._sessions() as session:
            rows = session.scalars(select(Repository).order_by(Repository.created_at)).all()
            return [RepositoryRecord.model_validate(row) for row in rows]


def create_repository_store(database_url: str) -> RepositoryStore:
    kwargs: dict = {"echo": False}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}  # Required for SQLite across threads
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        else:
            _ensure_sqlite_dir(database_url)

    store = RepositoryStore(create_engine(database_url, **kwargs))
    store.init_db()
    return store


def _ensure_sqlite_dir(database_url: str) -> None:
    path = database_url.split("///", 1)[-1]
    Path(path).parent.mkdir(parents=True, exist_ok=True)
