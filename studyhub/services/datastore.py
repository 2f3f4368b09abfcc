import logging
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError

from studyhub.core.database import SessionLocal
from studyhub.core.errors import DataStoreError
from studyhub.models import Document, Question

logger = logging.getLogger(__name__)

COLLECTIONS = {
    "documents": Document,
    "questions": Question,
}


def _to_record(row) -> Dict[str, Any]:
    return {column.name: getattr(row, column.name) for column in row.__table__.columns}


class SqlDataStore:
    """Ordered select / insert over the named collections"""

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    @staticmethod
    def _model(collection: str):
        try:
            return COLLECTIONS[collection]
        except KeyError:
            raise DataStoreError(f"Unknown collection: {collection}")

    def select_all(
        self,
        collection: str,
        order_by: str = "created_at",
        descending: bool = True
    ) -> List[Dict[str, Any]]:
        model = self._model(collection)
        column = getattr(model, order_by, None)
        if column is None:
            raise DataStoreError(f"Unknown column: {order_by}")

        with self.session_factory() as db:
            try:
                rows = (
                    db.query(model)
                    .order_by(column.desc() if descending else column.asc())
                    .all()
                )
            except SQLAlchemyError as e:
                logger.error("Listing %s failed: %s", collection, e)
                raise DataStoreError(str(getattr(e, "orig", None) or e)) from e

            return [_to_record(row) for row in rows]

    def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert one record and return it with the store-assigned fields
        (id, created_at) filled in.
        """
        model = self._model(collection)

        with self.session_factory() as db:
            try:
                row = model(**record)
                db.add(row)
                db.commit()
                db.refresh(row)
            except TypeError as e:
                raise DataStoreError(str(e)) from e
            except SQLAlchemyError as e:
                db.rollback()
                logger.error("Insert into %s failed: %s", collection, e)
                raise DataStoreError(str(getattr(e, "orig", None) or e)) from e

            return _to_record(row)
