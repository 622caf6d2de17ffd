from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.core.db import get_db
from app.core.auth import get_current_admin
from app.controllers.auth_controller import (
    login,
    register_first_admin,
    change_password,
    forgot_password,
    reset_password,
)
from app.schemas.admin_schema import (
    AdminLogin,
    AdminRegister,
    TokenResponse,
    AdminRead,
    PasswordChange,
    ForgotPasswordRequest,
    ResetPasswordRequest,
)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login_route(payload: AdminLogin, db: Session = Depends(get_db)):
    return login(db, payload)


@router.post("/register", response_model=AdminRead, status_code=201)
def register_route(payload: AdminRegister, db: Session = Depends(get_db)):
    return register_first_admin(db, payload)


@router.get("/me", response_model=AdminRead)
def me_route(admin=Depends(get_current_admin)):
    return admin


@router.put("/change-password")
def change_password_route(
    payload: PasswordChange,
    db: Session = Depends(get_db),
    admin=Depends(get_current_admin),
):
    return change_password(db, admin.admin_id, payload.current_password, payload.new_password)


@router.post("/forgot-password")
def forgot_password_route(
    payload: ForgotPasswordRequest,
    db: Session = Depends(get_db),
):
    return forgot_password(db, payload.email)


@router.post("/reset-password")
def reset_password_route(
    payload: ResetPasswordRequest,
    db: Session = Depends(get_db),
):
    return reset_password(db, payload.token, payload.new_password)


@router.post("/logout")
def logout_route(_admin=Depends(get_current_admin)):
    # tokens are stateless; the client discards its copy
    return {"status": "ok"}
