"""Create or update the admin account.

Examples:
  guestlist-seed-admin mySecurePassword123
  guestlist-seed-admin mySecurePassword123 --email owner@example.com
"""

import argparse
import sys
from typing import List, Optional

from guestlist.core.config import settings
from guestlist.core.errors import ValidationFailed
import guestlist.models  # noqa: F401  (registers tables)
from guestlist.db.base import Base
from guestlist.db.session import SessionLocal, engine
from guestlist.services.auth import seed_admin


def _create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="guestlist-seed-admin",
        description="Create or update the guest list admin account",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("password", help="New admin password")
    parser.add_argument(
        "--email",
        default=settings.ADMIN_EMAIL,
        help="Admin email (default: ADMIN_EMAIL setting)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = _create_parser().parse_args(argv)

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        admin = seed_admin(db, args.email, args.password)
    except ValidationFailed as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    finally:
        db.close()

    print("Admin user created/updated successfully!")
    print(f"Email: {admin.email}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
