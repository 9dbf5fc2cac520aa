"""
Import a legacy JSON export (users, evaluations, evaluator assignments,
movement logs) into the configured database.

Records whose id already exists are skipped; plaintext passwords are hashed
on the way in.

    python scripts/seed_db.py path/to/db.json
"""
import argparse
import logging
import os
import sys

# Ensure we can import app modules
sys.path.append(os.getcwd())

from app.core.init_system import import_seed, load_seed_file
from app.database import SessionLocal, init_db
from app.store import SqlRecordStore

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def seed(path: str) -> int:
    if not os.path.exists(path):
        logger.error(f"{path} not found")
        return 1

    data = load_seed_file(path)
    init_db()
    with SessionLocal() as db:
        inserted = import_seed(SqlRecordStore(db), data)
    logger.info(f"Seeding complete: {sum(inserted.values())} record(s) added")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("path", nargs="?", default=os.getenv("SEED_FILE", "db.json"))
    args = parser.parse_args()
    sys.exit(seed(args.path))
