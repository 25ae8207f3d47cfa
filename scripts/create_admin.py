import argparse
import getpass
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running this script directly.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from warehouse.core.exceptions import InventoryError, ValidationFailed
from warehouse.core.logging import setup_logging
from warehouse.database import init_schema, session_scope
from warehouse.schemas.user import RegisterRequest
from warehouse.services.user_service import ensure_admin


def parse_args():
    parser = argparse.ArgumentParser(description="Create the first admin user.")
    parser.add_argument("--username", required=True, help="Login name (at least 4 characters).")
    parser.add_argument("--email", required=True, help="Email used to log in.")
    parser.add_argument("--full-name", default="Administrator", help="Display name.")
    parser.add_argument(
        "--password",
        default=None,
        help="Password. Prompted for when omitted.",
    )
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()
    password = args.password or getpass.getpass("Admin password: ")

    init_schema()
    try:
        with session_scope() as db:
            user = ensure_admin(
                db,
                RegisterRequest(
                    username=args.username,
                    email=args.email,
                    password=password,
                    full_name=args.full_name,
                ),
            )
    except ValidationFailed as exc:
        details = ", ".join(f"{field}: {message}" for field, message in exc.errors.items())
        raise SystemExit(f"Admin not created: {details or exc.message}") from exc
    except InventoryError as exc:
        raise SystemExit(f"Admin not created: {exc}") from exc

    print(f"Admin user ready: {user.username} <{user.email}> (role {user.role})")


if __name__ == "__main__":
    main()
