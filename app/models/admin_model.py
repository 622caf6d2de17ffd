from sqlalchemy import Column, BigInteger, Integer, Text, TIMESTAMP, Boolean, Enum as SAEnum
from sqlalchemy.sql import func
from app.models.base import Base
from app.models.enums import AdminRole


class Admin(Base):
    __tablename__ = "admin_tbl"

    admin_id = Column(BigInteger().with_variant(Integer(), "sqlite"), primary_key=True, index=True)
    username = Column(Text, nullable=False, unique=True, index=True)
    email = Column(Text, nullable=False, unique=True, index=True)
    password_hash = Column(Text, nullable=False)
    role = Column(SAEnum(AdminRole, name="admin_role_enum"), nullable=False, default=AdminRole.ADMIN)
    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    last_login = Column(TIMESTAMP(timezone=True))
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
