"""
SQLAlchemy-backed Record Store.

One ORM model per collection. Conditional upserts are issued as a single
``UPDATE ... WHERE id = :id AND <conditions>`` and the affected row count
decides between success and ConflictError, so concurrent transitions on the
same record cannot both win.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Type

from sqlalchemy import and_, inspect as sa_inspect, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import FlushError

from app.core.exceptions import ConflictError
from app.core.timeutils import as_utc, utc_now
from app.database import Base
from app.models.evaluation import Evaluation
from app.models.evaluator_assignment import EvaluatorAssignment
from app.models.movement_log import MovementLog
from app.models.user import User
from app.store.base import (
    EVALUATIONS,
    EVALUATOR_ASSIGNMENTS,
    MOVEMENT_LOGS,
    USERS,
    Record,
    RecordStore,
    Where,
)

logger = logging.getLogger(__name__)

MODELS: Dict[str, Type[Base]] = {
    USERS: User,
    EVALUATIONS: Evaluation,
    EVALUATOR_ASSIGNMENTS: EvaluatorAssignment,
    MOVEMENT_LOGS: MovementLog,
}

_MEMBERSHIP_TYPES = (list, tuple, set, frozenset)


class SqlRecordStore(RecordStore):
    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # mapping helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _model(collection: str):
        try:
            return MODELS[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}") from None

    @staticmethod
    def _columns(model) -> List[str]:
        return [attr.key for attr in sa_inspect(model).column_attrs]

    def _check_fields(self, model, fields: Iterable[str]):
        unknown = set(fields) - set(self._columns(model))
        if unknown:
            raise ValueError(f"Unknown fields for {model.__tablename__}: {sorted(unknown)}")

    def _to_record(self, obj) -> Record:
        record = {}
        for key in self._columns(type(obj)):
            value = getattr(obj, key)
            if isinstance(value, datetime):
                value = as_utc(value)
            record[key] = value
        return record

    def _clauses(self, model, where: Optional[Where]) -> list:
        if not where:
            return []
        self._check_fields(model, where.keys())
        clauses = []
        for field, value in where.items():
            column = getattr(model, field)
            if isinstance(value, _MEMBERSHIP_TYPES):
                clauses.append(column.in_(list(value)))
            elif value is None:
                clauses.append(column.is_(None))
            else:
                clauses.append(column == value)
        return clauses

    def _commit(self, collection: str, record_id: str):
        try:
            self.db.commit()
        except (IntegrityError, FlushError) as exc:
            self.db.rollback()
            logger.warning(f"Integrity error writing {collection}/{record_id}: {exc}")
            raise ConflictError(f"Conflicting write for {collection}/{record_id}") from exc

    # ------------------------------------------------------------------
    # RecordStore
    # ------------------------------------------------------------------
    def find_by_id(self, collection: str, record_id: str) -> Optional[Record]:
        obj = self.db.get(self._model(collection), record_id)
        return self._to_record(obj) if obj is not None else None

    def find_many(
        self,
        collection: str,
        where: Optional[Where] = None,
        any_of: Optional[Sequence[Where]] = None,
    ) -> List[Record]:
        model = self._model(collection)
        query = self.db.query(model)
        clauses = self._clauses(model, where)
        if clauses:
            query = query.filter(and_(*clauses))
        if any_of:
            query = query.filter(or_(*[and_(*self._clauses(model, clause)) for clause in any_of]))
        rows = query.order_by(model.created_at, model.id).all()
        return [self._to_record(row) for row in rows]

    def upsert(
        self,
        collection: str,
        record_id: str,
        patch: Mapping[str, Any],
        conditions: Optional[Where] = None,
    ) -> Record:
        model = self._model(collection)
        values = {k: v for k, v in patch.items() if k != "id"}
        values["updated_at"] = utc_now()
        self._check_fields(model, values.keys())

        if conditions is not None:
            affected = (
                self.db.query(model)
                .filter(model.id == record_id, *self._clauses(model, conditions))
                .update(values, synchronize_session=False)
            )
            if affected == 0:
                raise ConflictError(
                    f"Precondition failed for {collection}/{record_id}",
                    details={"conditions": dict(conditions)},
                )
        else:
            obj = self.db.get(model, record_id)
            if obj is None:
                self.db.add(model(id=record_id, **values))
            else:
                for key, value in values.items():
                    setattr(obj, key, value)
        self._commit(collection, record_id)
        # expire_on_commit reloads the fresh row here
        return self.find_by_id(collection, record_id)

    def delete(self, collection: str, record_id: str) -> bool:
        obj = self.db.get(self._model(collection), record_id)
        if obj is None:
            return False
        self.db.delete(obj)
        self._commit(collection, record_id)
        return True

    def insert_many(self, collection: str, records: Iterable[Mapping[str, Any]]) -> int:
        model = self._model(collection)
        now = utc_now()
        objects = []
        for record in records:
            if not record.get("id"):
                raise ValueError(f"Record without id in {collection}")
            self._check_fields(model, record.keys())
            values = dict(record)
            values.setdefault("updated_at", now)
            objects.append(model(**values))
        ids = [obj.id for obj in objects]
        if len(set(ids)) != len(ids):
            raise ConflictError(f"Duplicate ids in {collection} batch")
        clash = self.db.query(model.id).filter(model.id.in_(ids)).first() if ids else None
        if clash is not None:
            raise ConflictError(f"Duplicate id {clash[0]} in {collection}")
        self.db.add_all(objects)
        self._commit(collection, "<batch>")
        return len(objects)

    def count(self, collection: str) -> int:
        return self.db.query(self._model(collection)).count()
