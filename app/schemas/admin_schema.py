from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from app.models.enums import AdminRole
from app.schemas.submission_schema import SubmissionListItem, SubmissionStats


class AdminBase(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    role: AdminRole = AdminRole.ADMIN


class AdminCreate(AdminBase):
    password: str = Field(min_length=6)


class AdminRegister(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6)


class AdminUpdate(BaseModel):
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    role: Optional[AdminRole] = None
    is_active: Optional[bool] = None


class AdminRead(AdminBase):
    admin_id: int
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AdminLogin(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    admin: AdminRead


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str = Field(min_length=6)


class AdminStats(BaseModel):
    total: int
    active: int
    inactive: int
    recent_logins: int


class StatsResponse(BaseModel):
    submissions: SubmissionStats
    admins: AdminStats


class DashboardResponse(BaseModel):
    stats: StatsResponse
    recent_submissions: list[SubmissionListItem]
