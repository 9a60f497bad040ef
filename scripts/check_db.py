import sys
from pathlib import Path

# Ensure repo root is on sys.path when running this script directly.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from pharmapos.core.logging import setup_logging
from pharmapos.database import session_scope
from pharmapos.models import Drug, Sale, User


def main():
    setup_logging()
    try:
        with session_scope() as db:
            counts = {
                "users": db.execute(select(func.count(User.id))).scalar_one(),
                "drugs": db.execute(select(func.count(Drug.id))).scalar_one(),
                "sales": db.execute(select(func.count(Sale.id))).scalar_one(),
            }
    except SQLAlchemyError as exc:
        raise SystemExit(f"Database connection failed: {exc}") from exc

    print("Database connection working.")
    for table, count in counts.items():
        print(f"  {table}: {count}")


if __name__ == "__main__":
    main()
