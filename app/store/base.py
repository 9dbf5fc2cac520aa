"""
Record Store interface.

Records are plain dicts keyed by field name. Every collection is keyed by a
string ``id``. Filters are deliberately small so both backends can honour
them natively:

- ``where``: ``{field: value}`` equality (``None`` matches null), or
  ``{field: [v1, v2]}`` membership for list/tuple/set values.
- ``any_of``: list of ``where`` mappings OR-ed together, AND-ed with ``where``.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

Record = Dict[str, Any]
Where = Mapping[str, Any]

USERS = "users"
EVALUATIONS = "evaluations"
EVALUATOR_ASSIGNMENTS = "evaluator_assignments"
MOVEMENT_LOGS = "movement_logs"

COLLECTIONS = (USERS, EVALUATIONS, EVALUATOR_ASSIGNMENTS, MOVEMENT_LOGS)

# Partial uniqueness rules: (key fields, rows they apply to). The SQL models
# declare the same rules as partial unique indexes.
UNIQUE_WHERE = {
    EVALUATOR_ASSIGNMENTS: [(("evaluator_id", "employee_id"), {"is_active": True})],
    MOVEMENT_LOGS: [(("employee_id",), {"actual_return_timestamp": None})],
}

_MEMBERSHIP_TYPES = (list, tuple, set, frozenset)


def matches(record: Mapping[str, Any], where: Optional[Where]) -> bool:
    if not where:
        return True
    for field, expected in where.items():
        actual = record.get(field)
        if isinstance(expected, _MEMBERSHIP_TYPES):
            if actual not in expected:
                return False
        elif actual != expected:
            return False
    return True


def matches_any(record: Mapping[str, Any], any_of: Optional[Sequence[Where]]) -> bool:
    if not any_of:
        return True
    return any(matches(record, clause) for clause in any_of)


class RecordStore(ABC):
    """Storage abstraction the services depend on. Backends never leak engine specifics."""

    @abstractmethod
    def find_by_id(self, collection: str, record_id: str) -> Optional[Record]:
        ...

    @abstractmethod
    def find_many(
        self,
        collection: str,
        where: Optional[Where] = None,
        any_of: Optional[Sequence[Where]] = None,
    ) -> List[Record]:
        """Matching records in creation order."""

    @abstractmethod
    def upsert(
        self,
        collection: str,
        record_id: str,
        patch: Mapping[str, Any],
        conditions: Optional[Where] = None,
    ) -> Record:
        """
        Merge ``patch`` into the record, creating it when absent.

        With ``conditions`` the write is a compare-and-set: the record must
        exist and match every condition, otherwise ConflictError is raised and
        nothing is written. A write that would break a rule in UNIQUE_WHERE
        raises ConflictError as well.
        """

    @abstractmethod
    def delete(self, collection: str, record_id: str) -> bool:
        ...

    @abstractmethod
    def insert_many(self, collection: str, records: Iterable[Mapping[str, Any]]) -> int:
        """Insert new records all-or-nothing. Raises ConflictError on a duplicate id."""

    @abstractmethod
    def count(self, collection: str) -> int:
        ...

    def find_one(self, collection: str, where: Optional[Where] = None) -> Optional[Record]:
        found = self.find_many(collection, where)
        return found[0] if found else None
