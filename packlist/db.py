import json
import logging
from typing import Optional, List, Dict, Any

from sqlalchemy import (
    create_engine,
    Column,
    Integer,
    Text,
    DateTime,
    func,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from . import config

logger = logging.getLogger(__name__)

Base = declarative_base()
engine = None
SessionLocal: Optional[sessionmaker] = None


def init_db(database_url: Optional[str] = None) -> None:
    """
    Initialise the DB engine + session factory and create any missing tables.

    Calling it again with a different URL rebinds the module to that
    database (tests point it at a throwaway SQLite file).
    """
    global engine, SessionLocal
    url = database_url or config.DATABASE_URL
    if not url:
        msg = "DATABASE_URL is not set; SQL document store unavailable"
        logger.error(msg)
        raise RuntimeError(msg)
    if engine is not None and str(engine.url) == url:
        return
    if engine is not None:
        engine.dispose()
    engine = create_engine(url)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    logger.info("Database initialised (%s)", engine.url.get_backend_name())


def get_session() -> Session:
    if SessionLocal is None:
        raise RuntimeError("DB not initialised")
    return SessionLocal()


# --- Models ---


class Document(Base):
    """
    One JSON document of a collection (`products`, `hsCodes`,
    `packingLists`). The payload is the full document as the API returns it;
    writes replace it wholesale.
    """
    __tablename__ = "documents"
    __table_args__ = (UniqueConstraint("collection", "doc_id", name="uq_documents_collection_doc"),)

    id = Column(Integer, primary_key=True, index=True)
    collection = Column(Text, nullable=False, index=True)
    doc_id = Column(Text, nullable=False, index=True)
    payload = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class UsageEvent(Base):
    __tablename__ = "usage_events"
    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    category = Column(Text, nullable=False)
    detail = Column(Text, nullable=True)


# --- Document helpers ---


def list_documents(collection: str) -> List[Dict[str, Any]]:
    session = get_session()
    try:
        q = (
            session.query(Document)
            .filter(Document.collection == collection)
            .order_by(Document.id.asc())
        )
        return [json.loads(row.payload) for row in q]
    finally:
        session.close()


def load_document(collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
    session = get_session()
    try:
        row = (
            session.query(Document)
            .filter(Document.collection == collection, Document.doc_id == doc_id)
            .first()
        )
        return json.loads(row.payload) if row else None
    finally:
        session.close()


def save_document(collection: str, doc_id: str, payload: Dict[str, Any]) -> None:
    session = get_session()
    try:
        row = (
            session.query(Document)
            .filter(Document.collection == collection, Document.doc_id == doc_id)
            .first()
        )
        if not row:
            session.add(Document(collection=collection, doc_id=doc_id, payload=json.dumps(payload)))
        else:
            row.payload = json.dumps(payload)
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def delete_document(collection: str, doc_id: str) -> bool:
    session = get_session()
    try:
        deleted = (
            session.query(Document)
            .filter(Document.collection == collection, Document.doc_id == doc_id)
            .delete()
        )
        session.commit()
        return deleted > 0
    finally:
        session.close()


# --- Usage events ---


def log_usage_event(category: str, detail: Optional[Dict[str, Any]] = None) -> None:
    if engine is None:
        return
    session = get_session()
    try:
        session.add(UsageEvent(category=category, detail=json.dumps(detail or {})))
        session.commit()
    finally:
        session.close()


def get_recent_usage(limit: int = 100, category: Optional[str] = None) -> List[Dict[str, Any]]:
    """Newest-first audit trail of writes, optionally for one event category."""
    if engine is None:
        return []
    session = get_session()
    try:
        q = session.query(UsageEvent)
        if category:
            q = q.filter(UsageEvent.category == category)
        q = q.order_by(UsageEvent.id.desc()).limit(limit)
        return [
            {
                "id": event.id,
                "category": event.category,
                "detail": json.loads(event.detail) if event.detail else {},
                "createdAt": None if event.created_at is None else event.created_at.isoformat(),
            }
            for event in q
        ]
    finally:
        session.close()
