import argparse
import getpass
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running this script directly.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from sqlalchemy.exc import SQLAlchemyError

from pharmapos.core.errors import ConflictError, InvalidInputError
from pharmapos.core.logging import setup_logging
from pharmapos.database import Base, engine, session_scope
from pharmapos.models import UserRole, import_all_models
from pharmapos.services.user_service import create_user


def parse_args():
    parser = argparse.ArgumentParser(description="Create an ADMIN or SALES account.")
    parser.add_argument("--email", required=True, help="Login email (unique).")
    parser.add_argument("--name", required=True, help="Display name.")
    parser.add_argument(
        "--role",
        default=UserRole.SALES.value,
        choices=[role.value for role in UserRole],
        help="Account role. Default: SALES.",
    )
    parser.add_argument(
        "--password",
        default=None,
        help="Password. Prompted for when omitted.",
    )
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()
    password = args.password or getpass.getpass("Password: ")

    import_all_models()
    Base.metadata.create_all(bind=engine)

    try:
        with session_scope() as db:
            user = create_user(db, args.name, args.email, password, args.role)
    except ConflictError:
        print(f"User {args.email} already exists; nothing changed.")
        return
    except (InvalidInputError, SQLAlchemyError) as exc:
        raise SystemExit(f"Could not create user: {exc}") from exc

    print(f"Created {user.role} user #{user.id}: {user.email}")


if __name__ == "__main__":
    main()
