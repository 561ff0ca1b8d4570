from sqlalchemy import Column, String, Integer, Float, Boolean, DateTime, Text, ForeignKey, UniqueConstraint
from datetime import datetime

from laborhours.core.database import Base
from laborhours.core.types import GUID


class UserResponse(Base):
    """Hours and IT system a user reported for one leaf process"""
    __tablename__ = "user_responses"
    __table_args__ = (
        UniqueConstraint("user_id", "f4_index", name="uq_user_responses_user_f4"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    f4_index = Column(String(50), ForeignKey("process_4.f4_index"), nullable=False)
    system_id = Column(Integer, ForeignKey("systems.system_id"), nullable=True)
    labor_hours = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)

    # Set once by the submit operation; the row is read-only afterwards
    is_submitted = Column(Boolean, default=False, nullable=False)
    submitted_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<UserResponse {self.user_id}:{self.f4_index}>"
