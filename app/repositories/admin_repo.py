from datetime import datetime, timedelta, timezone
from sqlalchemy.orm import Session
from sqlalchemy import func, or_, select
from app.models.admin_model import Admin
from app.models.enums import AdminRole


def get_admin_by_id(db: Session, admin_id: int) -> Admin | None:
    stmt = select(Admin).where(Admin.admin_id == admin_id)
    return db.execute(stmt).scalars().first()


def get_admin_by_username(db: Session, username: str) -> Admin | None:
    stmt = select(Admin).where(Admin.username == username)
    return db.execute(stmt).scalars().first()


def get_admin_by_email(db: Session, email: str) -> Admin | None:
    stmt = select(Admin).where(Admin.email.ilike(email))
    return db.execute(stmt).scalars().first()


def find_conflicting_admin(db: Session, username: str | None, email: str | None, exclude_id: int | None = None) -> Admin | None:
    clauses = []
    if username:
        clauses.append(Admin.username == username)
    if email:
        clauses.append(Admin.email.ilike(email))
    if not clauses:
        return None
    stmt = select(Admin).where(or_(*clauses))
    if exclude_id is not None:
        stmt = stmt.where(Admin.admin_id != exclude_id)
    return db.execute(stmt).scalars().first()


def count_admins(db: Session) -> int:
    return db.execute(select(func.count(Admin.admin_id))).scalar_one()


def list_active_admins(db: Session) -> list[Admin]:
    stmt = select(Admin).where(Admin.is_active.is_(True)).order_by(Admin.created_at.desc(), Admin.admin_id.desc())
    return list(db.execute(stmt).scalars().all())


def create_admin(db: Session, username: str, email: str, password_hash: str, role: AdminRole) -> Admin:
    admin = Admin(
        username=username,
        email=email.lower(),
        password_hash=password_hash,
        role=role,
        is_active=True,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


def update_admin(db: Session, admin: Admin, updates: dict) -> Admin:
    for k, v in updates.items():
        setattr(admin, k, v)
    db.commit()
    db.refresh(admin)
    return admin


def admin_stats(db: Session) -> dict[str, int]:
    total = count_admins(db)
    active = db.execute(select(func.count(Admin.admin_id)).where(Admin.is_active.is_(True))).scalar_one()
    since = datetime.now(timezone.utc) - timedelta(days=7)
    recent = db.execute(
        select(func.count(Admin.admin_id))
        .where(Admin.is_active.is_(True))
        .where(Admin.last_login >= since)
    ).scalar_one()
    return {"total": total, "active": active, "inactive": total - active, "recent_logins": recent}
