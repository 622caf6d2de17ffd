from __future__ import annotations

from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.db import SessionLocal, init_db
from app.core.security import hash_password
from app.models.admin_model import Admin
from app.models.enums import AdminRole


def seed_default_admin(db: Session) -> Admin | None:
    if db.query(Admin).first() is not None:
        return None

    settings = get_settings()
    if not settings.seed_admin_password:
        raise RuntimeError("SEED_ADMIN_PASSWORD is not set")

    admin = Admin(
        username=settings.seed_admin_username,
        email=settings.seed_admin_email.lower(),
        password_hash=hash_password(settings.seed_admin_password),
        role=AdminRole.SUPER_ADMIN,
        is_active=True,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


def run_seed() -> None:
    if SessionLocal is None:
        raise RuntimeError("DATABASE_URL is not set")
    init_db()
    db = SessionLocal()
    try:
        admin = seed_default_admin(db)
        if admin is None:
            print("Admin already exists, skipping seed")
        else:
            print(f"Default super admin created: {admin.username}")
    finally:
        db.close()


if __name__ == "__main__":
    run_seed()
