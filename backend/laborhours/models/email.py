from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, ForeignKey
from datetime import datetime

from laborhours.core.database import Base
from laborhours.core.types import GUID, generate_uuid


class SmtpSettings(Base):
    """Outgoing mail server. The SMTP password comes from configuration only."""
    __tablename__ = "smtp_settings"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    host = Column(String(255), nullable=False)
    port = Column(Integer, default=587, nullable=False)
    username = Column(String(255), nullable=False)
    from_email = Column(String(255), nullable=False)
    from_name = Column(String(255), nullable=False)
    use_tls = Column(Boolean, default=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<SmtpSettings {self.host}:{self.port}>"


class EmailTemplate(Base):
    """
    Invitation email template.

    Placeholders: {{full_name}}, {{email}}, {{password}}, {{login_url}}
    """
    __tablename__ = "email_templates"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    subject = Column(String(500), nullable=False)
    html_template = Column(Text, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class EmailLog(Base):
    """One row per send attempt"""
    __tablename__ = "email_logs"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    email_type = Column(String(50), nullable=False)  # 'invitation', 'invitation_resend'
    status = Column(String(20), nullable=False)  # 'success', 'failed'
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
