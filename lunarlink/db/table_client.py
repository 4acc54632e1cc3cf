"""
Table Client

Thin generic CRUD layer over the SQLAlchemy models. Every call works with
plain dictionaries keyed by the stored column names, so the repository above
it never builds queries itself and the mapping to internal field names stays
in one place (see ``lunarlink.db.mappers``).

Database faults are logged and re-raised as ``RepositoryError`` so callers can
tell "nothing matched" apart from "the store could not be reached".
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Raised when the backing store fails to execute an operation."""


OrderBy = Sequence[Tuple[str, bool]]


def _row_to_dict(model, obj) -> Dict[str, Any]:
    return {column.name: getattr(obj, column.name) for column in model.__table__.columns}


class TableClient:
    """
    Generic filter/insert/update/delete interface for a single session.

    Operations do not commit on their own; wrap them in ``transaction()`` so
    that a multi-step write either lands completely or not at all.
    """

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def transaction(self, operation: str):
        try:
            yield self
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"{operation} failed: {str(e)}")
            raise RepositoryError(f"{operation} failed") from e
        except Exception:
            self.db.rollback()
            raise

    def _query(self, model, filters: Optional[Dict[str, Any]]):
        query = self.db.query(model)
        if filters:
            query = query.filter_by(**filters)
        return query

    def select(
        self,
        model,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        query = self._query(model, filters)
        for column, descending in order_by or ():
            attr = getattr(model, column)
            query = query.order_by(attr.desc() if descending else attr.asc())
        if limit is not None:
            query = query.limit(limit)
        return [_row_to_dict(model, obj) for obj in query.all()]

    def count(self, model, filters: Optional[Dict[str, Any]] = None) -> int:
        return self._query(model, filters).count()

    def insert(self, model, rows: Iterable[Dict[str, Any]]) -> int:
        objects = [model(**row) for row in rows]
        self.db.add_all(objects)
        self.db.flush()
        return len(objects)

    def update(self, model, values: Dict[str, Any], filters: Optional[Dict[str, Any]] = None) -> int:
        return self._query(model, filters).update(values, synchronize_session=False)

    def increment(self, model, column: str, delta: int, filters: Dict[str, Any], extra: Optional[Dict[str, Any]] = None) -> int:
        values = {column: getattr(model, column) + delta}
        if extra:
            values.update(extra)
        return self.update(model, values, filters)

    def delete(self, model, filters: Optional[Dict[str, Any]] = None) -> int:
        return self._query(model, filters).delete(synchronize_session=False)
