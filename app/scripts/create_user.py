"""
Create a user (e.g. the first admin). Missing roles are created. Run from project root:
  python -m app.scripts.create_user USERNAME EMAIL PASSWORD FIRSTNAME [--lastname L] [--role R ...]
Example:
  python -m app.scripts.create_user admin admin@example.com secret Ada --role admin
"""
import argparse
import logging
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.exceptions import ValidationError
from app.services.avatars import AvatarStorage
from app.services.roles import get_or_create_role
from app.services.users import create_user

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Warden user (no registration UI).")
    parser.add_argument("username", help="Username (max 190 chars)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help="Password (3-32 chars)")
    parser.add_argument("firstname", help="First name")
    parser.add_argument("--lastname", default=None, help="Last name")
    parser.add_argument(
        "--role",
        dest="roles",
        action="append",
        default=None,
        help="Role name; repeat for several (default: user)",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    storage = AvatarStorage(settings.AVATAR_STORAGE_DIR, settings.AVATAR_THUMBNAIL_SIZE)
    db = SessionLocal()
    try:
        role_ids = [get_or_create_role(db, name).id for name in (args.roles or ["user"])]
        user = create_user(
            db,
            {
                "username": args.username.strip(),
                "email": args.email.strip(),
                "password": args.password,
                "password_confirmation": args.password,
                "firstname": args.firstname,
                "lastname": args.lastname,
                "roles": role_ids,
            },
            storage,
        )
        logger.info("Created user '%s' with roles %s.", user.username, ", ".join(args.roles or ["user"]))
        return 0
    except ValidationError as e:
        for field, messages in e.errors.items():
            for message in messages:
                print(f"{field}: {message}", file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
