"""
Create a user (e.g. the first SUPER_ADMIN). Run from project root:
  python -m app.scripts.create_user NAME EMAIL MOBILE PASSWORD [role]
Example:
  python -m app.scripts.create_user "Super Admin" admin@example.com 9999999999 your-secure-password SUPER_ADMIN
"""
import argparse
import sys

from sqlalchemy import or_

from app.core.database import SessionLocal
from app.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN, hash_password
from app.models import User, UserRole


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a user (no registration UI).")
    parser.add_argument("name", help="Display name (1-150 chars)")
    parser.add_argument("email", help="Email address (unique)")
    parser.add_argument("mobile", help="Mobile number (unique, up to 20 chars)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument(
        "role",
        nargs="?",
        default=UserRole.USER.value,
        choices=[r.value for r in UserRole],
    )
    args = parser.parse_args()

    name = args.name.strip()
    email = args.email.strip()
    mobile = args.mobile.strip()
    if not name or len(name) > 150:
        print("Invalid name length.", file=sys.stderr)
        return 1
    if "@" not in email or len(email) > 191:
        print("Invalid email address.", file=sys.stderr)
        return 1
    if not mobile or len(mobile) > 20:
        print("Invalid mobile number.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        existing = (
            db.query(User)
            .filter(or_(User.email == email, User.mobile == mobile))
            .first()
        )
        if existing:
            print("A user with this email or mobile already exists.", file=sys.stderr)
            return 1
        user = User(
            name=name,
            email=email,
            mobile=mobile,
            password=hash_password(args.password),
            role=args.role,
        )
        db.add(user)
        db.commit()
        print(f"Created user '{email}' with role '{args.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
