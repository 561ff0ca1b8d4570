from sqlalchemy import Column, String, DateTime, JSON
from datetime import datetime

from laborhours.core.database import Base
from laborhours.core.types import GUID, generate_uuid


class AdminAuditLog(Base):
    """Audit log for tracking admin actions"""
    __tablename__ = "admin_audit_log"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    # No FK: the row must survive deletion of either user
    admin_user_id = Column(GUID, nullable=False, index=True)
    target_user_id = Column(GUID, nullable=True)

    action = Column(String(100), nullable=False)  # e.g. 'bulk_create', 'bulk_delete', 'impersonate'
    # "metadata" is reserved on declarative classes
    action_metadata = Column("metadata", JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<AdminAuditLog {self.action} by {self.admin_user_id}>"
