import logging
from datetime import datetime, timezone
from html import escape
from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from jose import JWTError
from app.schemas.admin_schema import AdminLogin, AdminRegister, TokenResponse, AdminRead
from app.repositories.admin_repo import (
    count_admins,
    create_admin,
    get_admin_by_username,
    get_admin_by_email,
    get_admin_by_id,
    update_admin,
)
from app.models.enums import AdminRole
from app.core.security import (
    PASSWORD_RESET_PURPOSE,
    create_access_token,
    create_password_reset_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from app.core.email import send_email
from app.core.config import get_settings

logger = logging.getLogger("license.auth")


def login(db: Session, data: AdminLogin) -> TokenResponse:
    admin = get_admin_by_username(db, data.username)
    if not admin or not admin.is_active or not verify_password(data.password, admin.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    admin = update_admin(db, admin, {"last_login": datetime.now(timezone.utc)})
    token = create_access_token(subject=str(admin.admin_id), role=admin.role.value)
    return TokenResponse(access_token=token, admin=AdminRead.model_validate(admin))


def register_first_admin(db: Session, data: AdminRegister):
    if count_admins(db) > 0:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin registration is not allowed. Please contact existing admin.",
        )
    return create_admin(db, data.username, data.email, hash_password(data.password), AdminRole.SUPER_ADMIN)


def change_password(db: Session, admin_id: int, current_password: str, new_password: str):
    admin = get_admin_by_id(db, admin_id)
    if not admin or not verify_password(current_password, admin.password_hash):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")
    update_admin(db, admin, {"password_hash": hash_password(new_password)})
    return {"status": "ok"}


def _send_reset_email(to_email: str, reset_link: str):
    subject = "Admin Password Reset Request"
    html = f"""
    <div style="font-family: Arial, sans-serif; line-height: 1.6;">
      <h2>Password reset</h2>
      <p>A password reset has been requested for your admin account.</p>
      <p>Click the link below to set a new password (valid for 1 hour):</p>
      <p><a href="{escape(reset_link)}">{escape(reset_link)}</a></p>
      <p>If you did not request this, you can ignore this email.</p>
    </div>
    """
    send_email(to_email, subject, html)


def forgot_password(db: Session, email: str):
    admin = get_admin_by_email(db, email)
    if not admin or not admin.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No admin found with this email address")

    token = create_password_reset_token(str(admin.admin_id), admin.password_hash)
    settings = get_settings()
    reset_link = f"{settings.frontend_base_url}/admin/reset-password?token={token}"
    try:
        _send_reset_email(admin.email, reset_link)
    except Exception:
        logger.exception("password reset email failed admin_id=%s", admin.admin_id)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to send password reset email")
    return {"status": "ok"}


def reset_password(db: Session, token: str, new_password: str):
    invalid = HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired token")
    try:
        payload = decode_access_token(token)
        admin_id = int(payload.get("sub"))
    except (JWTError, TypeError, ValueError):
        raise invalid
    if payload.get("purpose") != PASSWORD_RESET_PURPOSE:
        raise invalid

    admin = get_admin_by_id(db, admin_id)
    if not admin or not admin.is_active or admin.password_hash[-12:] != payload.get("pwd"):
        raise invalid

    update_admin(db, admin, {"password_hash": hash_password(new_password)})
    return {"status": "ok"}
