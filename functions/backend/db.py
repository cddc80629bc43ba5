"""
Document storage for the Wally backend: Postgres (SQLAlchemy) and an
in-memory test implementation.

Data is kept as camelCase documents grouped in collections, mirroring the
Firestore layout the mobile client was written against.
"""

from __future__ import annotations

import copy
import time
from typing import Any, Dict, Iterable, Optional, Protocol

from sqlalchemy import JSON, Column, Float, String, create_engine, select
from sqlalchemy.orm import Session, declarative_base, sessionmaker


class DbClient(Protocol):
    """Interface for database access."""

    def set_document(self, collection: str, doc_id: str, data: dict) -> None:
        ...

    def get_document(self, collection: str, doc_id: str) -> Optional[dict]:
        ...

    def update_document(self, collection: str, doc_id: str, fields: dict) -> bool:
        ...

    def delete_document(self, collection: str, doc_id: str) -> bool:
        ...

    def query_documents(
        self,
        collection: str,
        filters: Optional[dict] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict]:
        ...


def apply_query(
    documents: Iterable[dict],
    filters: Optional[dict] = None,
    order_by: Optional[str] = None,
    descending: bool = False,
    limit: Optional[int] = None,
) -> list[dict]:
    """
    Filters documents by field equality, then sorts and truncates them.

    A filter value that is a list or tuple matches any of its members.
    Documents missing the order_by field sort first.
    """
    filters = filters or {}

    def matches(doc: dict) -> bool:
        for field_name, expected in filters.items():
            value = doc.get(field_name)
            if isinstance(expected, (list, tuple, set)):
                if value not in expected:
                    return False
            elif value != expected:
                return False
        return True

    results = [doc for doc in documents if matches(doc)]
    if order_by:
        results.sort(
            key=lambda doc: (doc.get(order_by) is not None, doc.get(order_by) or ""),
            reverse=descending,
        )
    if limit is not None:
        results = results[:limit]
    return results


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.collections: Dict[str, Dict[str, dict]] = {}

    def set_document(self, collection: str, doc_id: str, data: dict) -> None:
        self.collections.setdefault(collection, {})[doc_id] = copy.deepcopy(data)

    def get_document(self, collection: str, doc_id: str) -> Optional[dict]:
        doc = self.collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    def update_document(self, collection: str, doc_id: str, fields: dict) -> bool:
        doc = self.collections.get(collection, {}).get(doc_id)
        if doc is None:
            return False
        doc.update(copy.deepcopy(fields))
        return True

    def delete_document(self, collection: str, doc_id: str) -> bool:
        return self.collections.get(collection, {}).pop(doc_id, None) is not None

    def query_documents(
        self,
        collection: str,
        filters: Optional[dict] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict]:
        docs = self.collections.get(collection, {}).values()
        return copy.deepcopy(
            apply_query(docs, filters, order_by, descending, limit)
        )

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.collections.clear()


class PostgresDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for PostgresDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def set_document(self, collection: str, doc_id: str, data: dict) -> None:
        with self.Session() as session:
            row = session.get(DocumentRow, (collection, doc_id))
            if row:
                row.data = data
                row.updated_at = time.time()
            else:
                session.add(
                    DocumentRow(
                        collection=collection,
                        doc_id=doc_id,
                        data=data,
                        updated_at=time.time(),
                    )
                )
            session.commit()

    def get_document(self, collection: str, doc_id: str) -> Optional[dict]:
        with self.Session() as session:
            row = session.get(DocumentRow, (collection, doc_id))
            return dict(row.data) if row else None

    def update_document(self, collection: str, doc_id: str, fields: dict) -> bool:
        with self.Session() as session:
            row = session.get(DocumentRow, (collection, doc_id))
            if not row:
                return False
            # Reassign so SQLAlchemy notices the JSON change.
            row.data = {**row.data, **fields}
            row.updated_at = time.time()
            session.commit()
            return True

    def delete_document(self, collection: str, doc_id: str) -> bool:
        with self.Session() as session:
            row = session.get(DocumentRow, (collection, doc_id))
            if not row:
                return False
            session.delete(row)
            session.commit()
            return True

    def query_documents(
        self,
        collection: str,
        filters: Optional[dict] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict]:
        with self.Session() as session:
            stmt = select(DocumentRow).where(DocumentRow.collection == collection)
            rows = session.execute(stmt).scalars().all()
            docs: list[dict[str, Any]] = [dict(row.data) for row in rows]
        return apply_query(docs, filters, order_by, descending, limit)


Base = declarative_base()


class DocumentRow(Base):
    __tablename__ = "documents"

    collection = Column(String, primary_key=True)
    doc_id = Column(String, primary_key=True)
    data = Column(JSON, nullable=False)
    updated_at = Column(Float, nullable=False)
