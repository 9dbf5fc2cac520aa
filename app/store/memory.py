"""
In-memory Record Store.

Collection name -> ordered list of records. Used for demos and offline runs
(STORAGE_BACKEND=memory) and optionally pre-loaded from a JSON seed file.
A single lock serializes writes so conditional upserts are atomic.
"""
import copy
import logging
import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from app.core.exceptions import ConflictError
from app.core.timeutils import utc_now
from app.store.base import COLLECTIONS, UNIQUE_WHERE, Record, RecordStore, Where, matches, matches_any

logger = logging.getLogger(__name__)


class InMemoryRecordStore(RecordStore):
    def __init__(self):
        self._collections: Dict[str, List[Record]] = {name: [] for name in COLLECTIONS}
        self._lock = threading.RLock()

    def _rows(self, collection: str) -> List[Record]:
        try:
            return self._collections[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}") from None

    def _locate(self, collection: str, record_id: str) -> Optional[Record]:
        for row in self._rows(collection):
            if row.get("id") == record_id:
                return row
        return None

    def _check_unique(self, collection: str, candidate: Mapping[str, Any], others: Iterable[Record]):
        for fields, scope in UNIQUE_WHERE.get(collection, ()):
            if not matches(candidate, scope):
                continue
            key = {field: candidate.get(field) for field in fields}
            for row in others:
                if row.get("id") != candidate.get("id") and matches(row, scope) and matches(row, key):
                    raise ConflictError(
                        f"Duplicate {', '.join(fields)} in {collection}",
                        details={"id": candidate.get("id"), "existing": row.get("id")},
                    )

    def find_by_id(self, collection: str, record_id: str) -> Optional[Record]:
        with self._lock:
            row = self._locate(collection, record_id)
            return copy.deepcopy(row) if row is not None else None

    def find_many(
        self,
        collection: str,
        where: Optional[Where] = None,
        any_of: Optional[Sequence[Where]] = None,
    ) -> List[Record]:
        with self._lock:
            return [
                copy.deepcopy(row)
                for row in self._rows(collection)
                if matches(row, where) and matches_any(row, any_of)
            ]

    def upsert(
        self,
        collection: str,
        record_id: str,
        patch: Mapping[str, Any],
        conditions: Optional[Where] = None,
    ) -> Record:
        with self._lock:
            row = self._locate(collection, record_id)
            if conditions is not None and (row is None or not matches(row, conditions)):
                raise ConflictError(
                    f"Precondition failed for {collection}/{record_id}",
                    details={"conditions": dict(conditions)},
                )
            values = copy.deepcopy(dict(patch))
            values["updated_at"] = utc_now()
            self._check_unique(collection, {**(row or {}), **values, "id": record_id}, self._rows(collection))
            if row is None:
                row = {"id": record_id, **values}
                self._rows(collection).append(row)
            else:
                row.update(values)
                row["id"] = record_id
            return copy.deepcopy(row)

    def delete(self, collection: str, record_id: str) -> bool:
        with self._lock:
            rows = self._rows(collection)
            for index, row in enumerate(rows):
                if row.get("id") == record_id:
                    del rows[index]
                    return True
            return False

    def insert_many(self, collection: str, records: Iterable[Mapping[str, Any]]) -> int:
        with self._lock:
            rows = self._rows(collection)
            existing = {row.get("id") for row in rows}
            batch = [copy.deepcopy(dict(record)) for record in records]
            seen = set()
            for index, record in enumerate(batch):
                record_id = record.get("id")
                if not record_id:
                    raise ValueError(f"Record without id in {collection}")
                if record_id in existing or record_id in seen:
                    raise ConflictError(f"Duplicate id {record_id} in {collection}")
                seen.add(record_id)
                self._check_unique(collection, record, rows + batch[:index])
            now = utc_now()
            for record in batch:
                record.setdefault("updated_at", now)
            rows.extend(batch)
            return len(batch)

    def count(self, collection: str) -> int:
        with self._lock:
            return len(self._rows(collection))

    def clear(self):
        with self._lock:
            for rows in self._collections.values():
                rows.clear()
