from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from laborhours.core.database import Base
from laborhours.core.types import GUID, generate_uuid


class UserAccess(Base):
    """Grants a user access to one level-1 process category"""
    __tablename__ = "user_access"
    __table_args__ = (
        UniqueConstraint("user_id", "f1_index", name="uq_user_access_user_f1"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    f1_index = Column(String(50), ForeignKey("process_1.f1_index"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="access")

    def __repr__(self):
        return f"<UserAccess {self.user_id}:{self.f1_index}>"
