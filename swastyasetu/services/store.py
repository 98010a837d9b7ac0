"""Generic record store over a SQLAlchemy session.

Every entity the services touch goes through the same small contract:
list, filter, get, create, update and delete. Each write is committed on
its own, so a failed call leaves nothing half-written behind.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from swastyasetu.database import Base
from swastyasetu.services.errors import NotFound, StoreConflict, StoreUnavailable

logger = logging.getLogger(__name__)

UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'


class RecordStore:
    def __init__(self, db: Session, model: type[Base]):
        self.db = db
        self.model = model

    @property
    def entity_name(self) -> str:
        return self.model.__name__

    def list(self, sort: str | None = None) -> list[Any]:
        return self.filter({}, sort=sort)

    def filter(self, criteria: dict[str, Any], sort: str | None = None, limit: int | None = None) -> list[Any]:
        """Return records matching every ``field: value`` pair.

        A value of ``{"$in": [...]}`` matches any of the listed values, and
        ``{"$gt": value}`` (likewise ``$gte``, ``$lt``, ``$lte``) compares.
        ``sort`` names a column, prefixed with ``-`` for descending order.
        """
        try:
            query = self.db.query(self.model)
            for field_name, expected in criteria.items():
                column = self._column(field_name)
                if isinstance(expected, dict):
                    for operator, operand in expected.items():
                        query = query.filter(_compare(column, operator, operand))
                elif expected is None:
                    query = query.filter(column.is_(None))
                else:
                    query = query.filter(column == expected)

            if sort:
                descending = sort.startswith('-')
                column = self._column(sort.lstrip('-'))
                query = query.order_by(column.desc() if descending else column.asc(), self.model.id.asc())

            if limit is not None:
                query = query.limit(limit)

            return query.all()
        except SQLAlchemyError as exc:
            logger.warning('Reading %s records failed: %s', self.entity_name, exc)
            raise StoreUnavailable(UNAVAILABLE_DETAIL) from exc

    def get(self, record_id: int) -> Any:
        try:
            record = self.db.get(self.model, record_id)
        except SQLAlchemyError as exc:
            logger.warning('Reading %s %s failed: %s', self.entity_name, record_id, exc)
            raise StoreUnavailable(UNAVAILABLE_DETAIL) from exc

        if record is None:
            raise NotFound(f'{self.entity_name} not found.')
        return record

    def create(self, fields: dict[str, Any]) -> Any:
        record = self.model(**fields)
        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        except IntegrityError as exc:
            self.db.rollback()
            raise StoreConflict(f'{self.entity_name} conflicts with an existing record.') from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception('Creating %s failed', self.entity_name)
            raise StoreUnavailable(UNAVAILABLE_DETAIL) from exc
        return record

    def update(self, record_id: int, fields: dict[str, Any]) -> Any:
        record = self.get(record_id)
        try:
            for field_name, value in fields.items():
                self._column(field_name)
                setattr(record, field_name, value)
            self.db.commit()
            self.db.refresh(record)
        except IntegrityError as exc:
            self.db.rollback()
            raise StoreConflict(f'{self.entity_name} conflicts with an existing record.') from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception('Updating %s %s failed', self.entity_name, record_id)
            raise StoreUnavailable(UNAVAILABLE_DETAIL) from exc
        return record

    def delete(self, record_id: int) -> None:
        record = self.get(record_id)
        try:
            self.db.delete(record)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise StoreConflict(f'{self.entity_name} is still referenced by other records.') from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception('Deleting %s %s failed', self.entity_name, record_id)
            raise StoreUnavailable(UNAVAILABLE_DETAIL) from exc

    def _column(self, field_name: str):
        if field_name not in self.model.__table__.columns:
            raise ValueError(f'{self.entity_name} has no field {field_name!r}.')
        return getattr(self.model, field_name)


def _compare(column, operator: str, operand: Any):
    if operator == '$in':
        return column.in_(list(operand))
    if operator == '$gt':
        return column > operand
    if operator == '$gte':
        return column >= operand
    if operator == '$lt':
        return column < operand
    if operator == '$lte':
        return column <= operand
    raise ValueError(f'Unsupported filter operator {operator!r}.')
