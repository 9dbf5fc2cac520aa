"""
First-run bootstrap and JSON seed import.

The seed file uses the legacy export layout: one top-level list per
collection (``users``, ``evaluations``, ``evaluatorAssignments``,
``movementLogs``) with camelCase keys, ISO-8601 timestamps, nested
evaluation ``signatures`` and plaintext user passwords. Importing only ever
adds records whose id is not stored yet.
"""
import json
import logging
import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.core.timeutils import as_utc, utc_now
from app.models.user import UserRole
from app.services import auth as auth_service
from app.store import EVALUATIONS, EVALUATOR_ASSIGNMENTS, MOVEMENT_LOGS, USERS, Record, RecordStore

logger = logging.getLogger(__name__)

SEED_KEYS = {
    "users": USERS,
    "evaluations": EVALUATIONS,
    "evaluatorAssignments": EVALUATOR_ASSIGNMENTS,
    "evaluator_assignments": EVALUATOR_ASSIGNMENTS,
    "movementLogs": MOVEMENT_LOGS,
    "movement_logs": MOVEMENT_LOGS,
}

FIELDS = {
    USERS: ("id", "name", "role", "hashed_password", "department", "job_title", "email", "created_at"),
    EVALUATIONS: (
        "id", "employee_id", "created_by", "assigned_evaluator_id", "employee_name", "job_title",
        "department", "period_from", "period_to", "ratings", "total_score", "status",
        "supervisor_comments", "employee_agreement", "employee_comments", "manager_decision",
        "supervisor_signature", "supervisor_signed_at", "employee_signature", "employee_signed_at",
        "submitted_at", "responded_at", "finalized_at", "created_at",
    ),
    EVALUATOR_ASSIGNMENTS: ("id", "evaluator_id", "employee_id", "assigned_by", "is_active", "created_at"),
    MOVEMENT_LOGS: (
        "id", "employee_id", "employee_name", "department", "category", "destination", "reason",
        "expected_return_time", "departure_timestamp", "actual_return_timestamp", "status", "created_at",
    ),
}

DATETIME_FIELDS = {
    "created_at", "submitted_at", "responded_at", "finalized_at", "supervisor_signed_at",
    "employee_signed_at", "expected_return_time", "departure_timestamp", "actual_return_timestamp",
}
DATE_FIELDS = {"period_from", "period_to"}

_CAMEL = re.compile(r"(?<!^)(?=[A-Z])")


def snake_case(key: str) -> str:
    return _CAMEL.sub("_", key).lower()


def parse_datetime(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    return as_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))


def parse_date(value: Any) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        logger.warning(f"Ignoring unparseable evaluation period {value!r}")
        return None


def normalize_record(collection: str, raw: Mapping[str, Any]) -> Record:
    """Convert one legacy JSON record into the stored shape for its collection."""
    data = {snake_case(k): v for k, v in raw.items()}

    if collection == USERS:
        try:
            data["role"] = UserRole(data.get("role") or UserRole.EMPLOYEE).value
        except ValueError:
            raise ValidationError(
                f"User {data.get('id')} has unknown role {data.get('role')!r}",
                details={"id": data.get("id"), "role": data.get("role")},
            ) from None
        password = data.pop("password", None)
        stored = data.get("hashed_password") or password
        if stored and not auth_service.is_password_hash(stored):
            stored = auth_service.get_password_hash(stored)
        data["hashed_password"] = stored
    elif collection == EVALUATIONS:
        signatures = data.pop("signatures", None) or {}
        data.setdefault("supervisor_signature", signatures.get("supervisor"))
        data.setdefault("supervisor_signed_at", signatures.get("supervisorTimestamp"))
        data.setdefault("employee_signature", signatures.get("employee"))
        data.setdefault("employee_signed_at", signatures.get("employeeTimestamp"))
        data["ratings"] = {str(k): v for k, v in (data.get("ratings") or {}).items()}
        data["employee_agreement"] = data.get("employee_agreement") or ""
    elif collection == EVALUATOR_ASSIGNMENTS:
        data["is_active"] = bool(data.get("is_active", True))

    record = {k: data.get(k) for k in FIELDS[collection] if k in data}
    for key in DATETIME_FIELDS.intersection(record):
        record[key] = parse_datetime(record[key])
    for key in DATE_FIELDS.intersection(record):
        record[key] = parse_date(record[key])
    if not record.get("created_at"):
        record["created_at"] = utc_now()
    return record


def load_seed_file(path: Union[str, Path]) -> Dict[str, List[Record]]:
    with open(path, "r", encoding="utf-8") as fh:
        payload = json.load(fh)
    seed: Dict[str, List[Record]] = {}
    for key, collection in SEED_KEYS.items():
        for raw in payload.get(key) or []:
            try:
                record = normalize_record(collection, raw)
            except ValidationError as exc:
                logger.warning(f"Skipping seed record: {exc.message}", extra={"collection": collection})
                continue
            seed.setdefault(collection, []).append(record)
    return seed


def import_seed(store: RecordStore, seed: Mapping[str, List[Record]]) -> Dict[str, int]:
    """Insert records whose ids are not stored yet. Returns inserted counts per collection."""
    inserted = {}
    for collection, records in seed.items():
        fresh = [r for r in records if store.find_by_id(collection, r["id"]) is None]
        inserted[collection] = store.insert_many(collection, fresh) if fresh else 0
        logger.info(
            f"Seeded {inserted[collection]} {collection} ({len(records) - len(fresh)} already present)"
        )
    return inserted


def init_system_data(store: RecordStore):
    """
    Startup initialization: creates the HR admin account when no users exist
    and imports SEED_FILE when one is configured.
    """
    if settings.seed_file:
        if Path(settings.seed_file).exists():
            import_seed(store, load_seed_file(settings.seed_file))
        else:
            logger.warning(f"SEED_FILE {settings.seed_file} not found; skipping import")

    user_count = store.count(USERS)
    if user_count == 0 and settings.bootstrap_admin:
        store.upsert(USERS, settings.admin_id, {
            "name": "HR Administrator",
            "role": UserRole.HR.value,
            "hashed_password": auth_service.get_password_hash(settings.admin_password),
            "department": "Human Resources",
            "created_at": utc_now(),
        })
        logger.info(f"✓ Created default HR account '{settings.admin_id}' (change its password immediately)")
    else:
        logger.info(f"System initialization check: {user_count} user(s) found.")
