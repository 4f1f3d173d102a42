"""Create all tables. Run on app startup.

Bootstraps an admin account with a random password when no users exist.
The password is printed once; change it after first login.
"""
import secrets

from pharmatrust.db.base import Base
from pharmatrust.db.session import engine, SessionLocal
from pharmatrust import models  # noqa: F401 - register models
from pharmatrust.models.user import User
from pharmatrust.core.permissions import ADMIN
from pharmatrust.core.security import get_password_hash

DEFAULT_ADMIN_EMAIL = "admin@pharmatrust.in"


def init_db(bind=None, session_factory=None):
    Base.metadata.create_all(bind=bind or engine)

    db = (session_factory or SessionLocal)()
    try:
        if db.query(User).count() == 0:
            default_password = secrets.token_urlsafe(16)

            db.add(User(
                name="Administrator",
                email=DEFAULT_ADMIN_EMAIL,
                hashed_password=get_password_hash(default_password),
                role=ADMIN,
            ))
            db.commit()

            print("\n" + "=" * 70)
            print("DEFAULT ADMIN USER CREATED")
            print("=" * 70)
            print(f"Email:    {DEFAULT_ADMIN_EMAIL}")
            print(f"Password: {default_password}")
            print("\nChange this password immediately after first login!")
            print("=" * 70 + "\n")
    finally:
        db.close()
