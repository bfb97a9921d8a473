"""
Upsert/insert gateway over the SQLAlchemy session.
Callers hand in plain dicts; any database failure rolls back and becomes PersistenceError.
"""
import logging
from typing import Any, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import Base
from app.exceptions import PersistenceError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


def upsert(db: Session, model: Type[ModelT], key: dict[str, Any], values: dict[str, Any]) -> ModelT:
    """
    Insert-or-update keyed by `key` (the model's unique columns).
    A second call with the same key updates the same row.
    """
    try:
        query = db.query(model)
        for column, value in key.items():
            query = query.filter(getattr(model, column) == value)
        row = query.first()
        if row is None:
            row = model(**key, **values)
            db.add(row)
        else:
            for column, value in values.items():
                setattr(row, column, value)
        db.commit()
        db.refresh(row)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Upsert into %s failed (key=%s): %s", model.__tablename__, key, e)
        raise PersistenceError(f"Failed to save {model.__tablename__}", details=str(e)) from e
    return row


def insert(db: Session, model: Type[ModelT], values: dict[str, Any]) -> ModelT:
    try:
        row = model(**values)
        db.add(row)
        db.commit()
        db.refresh(row)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Insert into %s failed: %s", model.__tablename__, e)
        raise PersistenceError(f"Failed to save {model.__tablename__}", details=str(e)) from e
    return row
