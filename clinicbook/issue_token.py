"""Print a bearer token for an existing doctor account to stdout.

Usage:
    python -m clinicbook.issue_token doctor@example.com
"""
import sys

from clinicbook.auth.jwt_handler import create_access_token
from clinicbook.database import SessionLocal
from clinicbook.models.doctor import Doctor
from clinicbook.models.user import User


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print("Usage: python -m clinicbook.issue_token <doctor-email>", file=sys.stderr)
        sys.exit(2)

    email = args[0].strip().lower()
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email).first()
        doctor = db.query(Doctor).filter(Doctor.user_id == user.id).first() if user else None
    finally:
        db.close()

    if doctor is None:
        print(f"No doctor account found for {email}", file=sys.stderr)
        sys.exit(1)

    print(create_access_token(subject=email))


if __name__ == "__main__":
    main()
