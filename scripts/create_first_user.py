import argparse
import sys
import os
from sqlmodel import Session

# Add current directory to path
sys.path.append(os.getcwd())

from app.db.repository import Repository
from app.db.session import engine, init_db
from app.models.user import User, UserRole
from app.core.security import get_password_hash


def create_initial_user(email: str, password: str, session: Session) -> bool:
    """Create a verified admin account. Returns False if the email is taken."""
    users = Repository(User, session, owner_field=None)
    if users.find_one(include_deleted=True, email=email):
        print(f"User with email {email} already exists.")
        return False

    print(f"Creating admin {email}...")
    users.create(
        email=email,
        password=get_password_hash(password),
        role=UserRole.ADMIN,
        verified=True,
    )
    print("Initial admin created successfully!")
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the first admin account")
    parser.add_argument("email")
    parser.add_argument("password")
    args = parser.parse_args()

    print("--- Initial Admin Creation ---")
    init_db()
    with Session(engine) as session:
        created = create_initial_user(args.email, args.password, session)
    sys.exit(0 if created else 1)
