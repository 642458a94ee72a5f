"""
Create the first main admin
Usage: ADMIN_EMAIL=... ADMIN_NAME=... ADMIN_PASSWORD=... python scripts/seed_admin.py
"""
import logging
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from cleanpro import models  # noqa: E402,F401
from cleanpro.database import Base, SessionLocal, engine  # noqa: E402
from cleanpro.models import Admin, Customer  # noqa: E402
from cleanpro.security_utils import check_password_strength, hash_password  # noqa: E402
from cleanpro.shared.validators import validate_email  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


def seed_admin(email: str, name: str, password: str) -> Admin:
    """Create (or return the existing) main admin for ``email``"""
    email = validate_email(email)
    strength = check_password_strength(password)
    if not strength["is_valid"]:
        raise ValueError("Password is too weak: " + ", ".join(strength["feedback"]))

    Base.metadata.create_all(bind=engine, checkfirst=True)
    db = SessionLocal()
    try:
        existing = db.query(Admin).filter(Admin.email == email).first()
        if existing:
            logger.info(f"ℹ️ Admin {email} already exists (id={existing.id}, role={existing.role})")
            return existing
        if db.query(Customer).filter(Customer.email == email).first():
            raise ValueError(f"{email} is already registered as a customer")

        admin = Admin(
            name=name.strip() or "Main Admin",
            email=email,
            password_hash=hash_password(password),
            role="main_admin",
            first_login=False,
            is_active=True,
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)
        logger.info(f"✅ Main admin created: {admin.email} (id={admin.id})")
        return admin
    finally:
        db.close()


if __name__ == "__main__":
    admin_email = os.getenv("ADMIN_EMAIL")
    admin_password = os.getenv("ADMIN_PASSWORD")
    if not admin_email or not admin_password:
        logger.error("ADMIN_EMAIL and ADMIN_PASSWORD must be set")
        sys.exit(1)

    try:
        seed_admin(admin_email, os.getenv("ADMIN_NAME", "Main Admin"), admin_password)
    except ValueError as e:
        logger.error(f"❌ Seeding failed: {e}")
        sys.exit(1)
