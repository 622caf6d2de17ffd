from fastapi import HTTPException, status
from pymongo.collection import Collection
from sqlalchemy.orm import Session
from app.models.admin_model import Admin
from app.models.enums import SortField, SortOrder
from app.schemas.admin_schema import AdminCreate, AdminUpdate
from app.repositories.admin_repo import (
    admin_stats,
    create_admin,
    find_conflicting_admin,
    get_admin_by_id,
    list_active_admins,
    update_admin,
)
from app.core.security import hash_password
from app.controllers.submission_controller import query_submissions, submission_stats

RECENT_SUBMISSIONS = 5


def get_stats(db: Session, col: Collection) -> dict:
    return {"submissions": submission_stats(col), "admins": admin_stats(db)}


def get_dashboard(db: Session, col: Collection) -> dict:
    recent = query_submissions(
        col,
        sort_by=SortField.SUBMITTED_AT,
        sort_order=SortOrder.DESC,
        page=1,
        limit=RECENT_SUBMISSIONS,
    )
    return {"stats": get_stats(db, col), "recent_submissions": recent["submissions"]}


def list_admins(db: Session) -> list[Admin]:
    return list_active_admins(db)


def create_admin_account(db: Session, data: AdminCreate) -> Admin:
    if find_conflicting_admin(db, data.username, data.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Admin with this username or email already exists",
        )
    return create_admin(db, data.username, data.email, hash_password(data.password), data.role)


def _get_admin_or_404(db: Session, admin_id: int) -> Admin:
    admin = get_admin_by_id(db, admin_id)
    if not admin:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Admin not found")
    return admin


def update_admin_account(db: Session, current: Admin, admin_id: int, data: AdminUpdate) -> Admin:
    admin = _get_admin_or_404(db, admin_id)
    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    if admin_id == current.admin_id:
        updates.pop("role", None)
        updates.pop("is_active", None)
    if find_conflicting_admin(db, updates.get("username"), updates.get("email"), exclude_id=admin_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Admin with this username or email already exists",
        )
    if "email" in updates:
        updates["email"] = updates["email"].lower()
    return update_admin(db, admin, updates)


def deactivate_admin_account(db: Session, current: Admin, admin_id: int):
    if admin_id == current.admin_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot deactivate your own account")
    admin = _get_admin_or_404(db, admin_id)
    update_admin(db, admin, {"is_active": False})
    return {"status": "ok"}
