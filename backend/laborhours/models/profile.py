from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from laborhours.core.database import Base
from laborhours.core.types import GUID


class Profile(Base):
    """User profile, 1:1 with User (shares its id)"""
    __tablename__ = "profiles"

    id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    email = Column(String(255), nullable=False, index=True)  # denormalized from users.email
    full_name = Column(String(255), nullable=True)

    invitation_sent_at = Column(DateTime, nullable=True)
    questionnaire_completed = Column(Boolean, default=False, nullable=False)
    questionnaire_completed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="profile")

    def __repr__(self):
        return f"<Profile {self.email}>"
