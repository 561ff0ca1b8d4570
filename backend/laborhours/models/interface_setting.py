from sqlalchemy import Column, String, DateTime, Text, JSON
from datetime import datetime

from laborhours.core.database import Base
from laborhours.core.types import GUID, generate_uuid


class InterfaceSetting(Base):
    """Branding setting (title, logo, colours) shown on every page"""
    __tablename__ = "interface_settings"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    key = Column(String(100), unique=True, nullable=False, index=True)
    value = Column(JSON, nullable=False)
    description = Column(Text, nullable=True)

    updated_by = Column(GUID, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<InterfaceSetting {self.key}>"
