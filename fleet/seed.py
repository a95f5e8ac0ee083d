"""
Bootstrap accounts for a fresh deployment.

There is no login endpoint and only admins may create users, so the first
admin has to come from here.

Usage:
    python -m fleet.seed admin                  # upsert admin from SEED_ADMIN_* settings, print a token
    python -m fleet.seed admin --email a@b.com --password secret1
    python -m fleet.seed users                  # list accounts and roles
"""
import argparse
import logging
import sys

from sqlalchemy.orm import Session

from fleet.config import settings
from fleet.database import SessionLocal, init_db
from fleet.models.user import User, UserRole
from fleet.schemas.user import validate_password
from fleet.utils.audit import AuditAction, log_action
from fleet.utils.security import create_access_token, hash_password

logger = logging.getLogger(__name__)


def seed_admin(db: Session, email: str, password: str, name: str | None = None) -> tuple[User, bool]:
    """
    Create the admin account, or promote an existing account with that email.
    An existing password is left alone. Returns (user, created).
    """
    validate_password(password)
    user = db.query(User).filter(User.email == email).first()
    created = user is None

    if created:
        user = User(name=name, email=email, password=hash_password(password), role=UserRole.ADMIN)
        db.add(user)
        db.flush()
        log_action(db, None, AuditAction.CREATE, user, f"Seeded admin {email}")
    elif user.role != UserRole.ADMIN:
        old_role = user.role
        user.role = UserRole.ADMIN
        log_action(db, None, AuditAction.UPDATE, user,
                   f"Promoted {email} from {old_role.value} to admin")

    db.commit()
    db.refresh(user)
    return user, created


def cmd_admin(args, session_factory=SessionLocal) -> int:
    password = args.password or settings.SEED_ADMIN_PASSWORD
    if not password:
        print("No admin password: pass --password or set SEED_ADMIN_PASSWORD", file=sys.stderr)
        return 1

    with session_factory() as db:
        try:
            user, created = seed_admin(db, args.email, password, args.name)
        except ValueError as e:
            print(f"Invalid password: {e}", file=sys.stderr)
            return 1
        token = create_access_token(user.id, user.role.value)

    logger.info("%s admin %s (id=%s)", "Created" if created else "Kept", user.email, user.id)
    print(f"Admin: {user.email} (id={user.id})")
    print(f"Access token: {token}")
    return 0


def cmd_users(args, session_factory=SessionLocal) -> int:
    with session_factory() as db:
        users = db.query(User).order_by(User.id).all()
        for u in users:
            print(f"{u.id}\t{u.role.value}\t{u.email}\t{u.name or ''}")
    if not users:
        print("No users")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m fleet.seed", description="Fleet Manager bootstrap commands")
    sub = parser.add_subparsers(dest="command", required=True)

    admin = sub.add_parser("admin", help="Create or promote the admin account and print an access token")
    admin.add_argument("--email", default=settings.SEED_ADMIN_EMAIL)
    admin.add_argument("--name", default=settings.SEED_ADMIN_NAME)
    admin.add_argument("--password", default=None)
    admin.set_defaults(func=cmd_admin)

    users = sub.add_parser("users", help="List accounts")
    users.set_defaults(func=cmd_users)
    return parser


def main(argv: list[str] | None = None, session_factory=SessionLocal) -> int:
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    args = build_parser().parse_args(argv)
    if session_factory is SessionLocal:
        init_db()
    return args.func(args, session_factory)


if __name__ == "__main__":
    sys.exit(main())
