import json
import pytest
from datetime import date, datetime, timezone
from app.core.exceptions import ValidationError
from app.core.init_system import import_seed, load_seed_file, normalize_record, snake_case
from app.services import auth as auth_service
from app.store import EVALUATIONS, EVALUATOR_ASSIGNMENTS, MOVEMENT_LOGS, USERS, InMemoryRecordStore, SqlRecordStore

LEGACY_EXPORT = {
    "users": [
        {"id": "hr01", "name": "HR Manager", "role": "hr", "password": "hr"},
        {"id": "ev01", "name": "Old Evaluator", "role": "evaluator", "password": "ev", "jobTitle": "Lead"},
        {"id": "emp01", "name": "Eva Employee", "role": "employee", "password": "emp", "department": "Engineering"},
    ],
    "evaluations": [
        {
            "id": "1700000000000",
            "employeeId": "emp01",
            "createdBy": "ev01",
            "periodFrom": "2024-01-01",
            "periodTo": "2024-12-31",
            "ratings": {"1_1": 5, "3_2": 4},
            "status": "PENDING_EMPLOYEE",
            "signatures": {"supervisor": "data:image/png;base64,AAA", "supervisorTimestamp": "2024-12-31T10:00:00.000Z"},
            "submittedAt": "2024-12-31T10:00:00.000Z",
        }
    ],
    "evaluatorAssignments": [
        {"id": "A1", "evaluatorId": "ev01", "employeeId": "emp01", "assignedBy": "hr01", "isActive": True},
    ],
    "movementLogs": [
        {
            "id": "M1",
            "employeeId": "emp01",
            "employeeName": "Eva Employee",
            "category": "personal",
            "destination": "Bank",
            "reason": "Errand",
            "expectedReturnTime": "2024-12-31T11:00:00Z",
            "departureTimestamp": "2024-12-31T10:00:00Z",
            "actualReturnTimestamp": "2024-12-31T10:45:00Z",
            "status": "IN_OFFICE",
        }
    ],
}

@pytest.fixture
def seed_file(tmp_path):
    path = tmp_path / "db.json"
    path.write_text(json.dumps(LEGACY_EXPORT), encoding="utf-8")
    return path

def test_snake_case():
    assert snake_case("assignedEvaluatorId") == "assigned_evaluator_id"
    assert snake_case("id") == "id"

def test_normalize_user_hashes_plaintext():
    user = normalize_record(USERS, {"id": "x", "name": "X", "role": "evaluator", "password": "pw", "jobTitle": "Lead"})
    assert user["role"] == "management"
    assert user["job_title"] == "Lead"
    assert "password" not in user
    assert auth_service.verify_password("pw", user["hashed_password"])

def test_normalize_evaluation_flattens_signatures():
    evaluation = normalize_record(EVALUATIONS, LEGACY_EXPORT["evaluations"][0])
    assert evaluation["supervisor_signature"].startswith("data:image/png")
    assert evaluation["supervisor_signed_at"] == datetime(2024, 12, 31, 10, 0, tzinfo=timezone.utc)
    assert evaluation["period_from"] == date(2024, 1, 1)
    assert evaluation["employee_agreement"] == ""
    assert "signatures" not in evaluation

def test_import_into_memory_store_is_additive(seed_file):
    store = InMemoryRecordStore()
    data = load_seed_file(seed_file)

    inserted = import_seed(store, data)
    assert inserted == {USERS: 3, EVALUATIONS: 1, EVALUATOR_ASSIGNMENTS: 1, MOVEMENT_LOGS: 1}

    # Second run only adds what is missing
    assert sum(import_seed(store, data).values()) == 0
    assert store.count(USERS) == 3

def test_import_into_sql_store(seed_file, db_session):
    store = SqlRecordStore(db_session)
    import_seed(store, load_seed_file(seed_file))
    assert store.find_by_id(EVALUATOR_ASSIGNMENTS, "A1")["is_active"] is True
    movement = store.find_by_id(MOVEMENT_LOGS, "M1")
    assert movement["actual_return_timestamp"] == datetime(2024, 12, 31, 10, 45, tzinfo=timezone.utc)

def test_unknown_role_names_the_record():
    with pytest.raises(ValidationError) as excinfo:
        normalize_record(USERS, {"id": "x9", "name": "X", "role": "contractor", "password": "pw"})
    assert "x9" in excinfo.value.message
    assert excinfo.value.details == {"id": "x9", "role": "contractor"}

def test_unknown_role_is_skipped_on_load(tmp_path, caplog):
    export = {**LEGACY_EXPORT, "users": LEGACY_EXPORT["users"] + [{"id": "x9", "name": "X", "role": "contractor"}]}
    path = tmp_path / "db.json"
    path.write_text(json.dumps(export), encoding="utf-8")

    with caplog.at_level("WARNING", logger="app.core.init_system"):
        data = load_seed_file(path)
    assert [u["id"] for u in data[USERS]] == ["hr01", "ev01", "emp01"]
    assert len(data[EVALUATIONS]) == 1
    assert "x9" in caplog.text
