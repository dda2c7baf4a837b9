"""
Create Admin User

Creates a back-office administrator for the result portal.
Run this once after the first migration.

Usage:
    python scripts/create_admin.py admin@school.edu --first-name Ada --last-name Obi
    (the password is prompted for, or read from ADMIN_PASSWORD)
"""

import argparse
import getpass
import os

from sqlalchemy import select

from school_portal.core.database import SessionLocal
from school_portal.core.security import hash_password
from school_portal.models.admin_user import AdminUser


def create_admin(email: str, password: str, first_name: str, last_name: str) -> None:
    """Create the admin user if it doesn't exist."""
    email = email.lower()

    with SessionLocal() as db:
        existing = db.execute(
            select(AdminUser).where(AdminUser.email == email)
        ).scalar_one_or_none()

        if existing:
            print(f"Admin already exists: {email}")
            print(f"  ID: {existing.id}")
            return

        admin = AdminUser(
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            is_active=True,
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)

        print("Admin created successfully!")
        print(f"  Email: {email}")
        print(f"  Name: {first_name} {last_name}")
        print(f"  ID: {admin.id}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Create a result portal admin")
    parser.add_argument("email")
    parser.add_argument("--first-name", default="School")
    parser.add_argument("--last-name", default="Admin")
    args = parser.parse_args()

    password = os.environ.get("ADMIN_PASSWORD") or getpass.getpass("Password: ")
    if len(password) < 8:
        parser.error("password must be at least 8 characters")

    create_admin(args.email, password, args.first_name, args.last_name)


if __name__ == "__main__":
    main()
