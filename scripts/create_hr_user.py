import argparse
import getpass
import logging
import os
import sys

# Ensure we can import app modules
sys.path.append(os.getcwd())

from app.core.exceptions import AppException
from app.database import SessionLocal, init_db
from app.models.user import UserRole
from app.services.users import UserService
from app.store import SqlRecordStore

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def create_hr_user(user_id: str, name: str, password: str, department: str = "Human Resources"):
    init_db()
    with SessionLocal() as db:
        users = UserService(SqlRecordStore(db))
        try:
            users.create({
                "id": user_id,
                "name": name,
                "role": UserRole.HR.value,
                "password": password,
                "department": department,
            })
        except AppException as e:
            logger.error(f"Could not create HR user '{user_id}': {e.message}")
            return False
    logger.info(f"HR user '{user_id}' created. You can now login.")
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create an HR account")
    parser.add_argument("--id", default="hr01")
    parser.add_argument("--name", default="HR Manager")
    parser.add_argument("--department", default="Human Resources")
    args = parser.parse_args()

    password = os.getenv("HR_PASSWORD") or getpass.getpass(f"Password for {args.id}: ")
    sys.exit(0 if create_hr_user(args.id, args.name, password, args.department) else 1)
