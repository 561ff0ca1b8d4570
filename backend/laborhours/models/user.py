from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from laborhours.core.database import Base
from laborhours.core.types import GUID, generate_uuid


class AppRole(str, enum.Enum):
    """Application roles"""
    ADMIN = "admin"
    USER = "user"


class User(Base):
    """Identity record: login email and credential"""
    __tablename__ = "users"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)  # stored lowercase
    hashed_password = Column(String(255), nullable=True)

    # Accounts created by an administrator are confirmed immediately
    email_confirmed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_sign_in_at = Column(DateTime, nullable=True)

    # Relationships
    profile = relationship("Profile", back_populates="user", uselist=False, cascade="all, delete-orphan")
    roles = relationship("UserRoleAssignment", back_populates="user", cascade="all, delete-orphan")
    access = relationship("UserAccess", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User {self.email}>"


class UserRoleAssignment(Base):
    """Role row; the provisioning flow creates exactly one per user"""
    __tablename__ = "user_roles"
    __table_args__ = (
        UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(SQLEnum(AppRole), default=AppRole.USER, nullable=False, index=True)

    user = relationship("User", back_populates="roles")

    def __repr__(self):
        return f"<UserRoleAssignment {self.user_id}:{self.role}>"
