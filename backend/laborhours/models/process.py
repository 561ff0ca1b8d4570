from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, ForeignKey
from datetime import datetime

from laborhours.core.database import Base


class Process1(Base):
    """Level-1 process; its f1_index is the access category"""
    __tablename__ = "process_1"

    f1_index = Column(String(50), primary_key=True)
    f1_name = Column(String(500), nullable=False)
    is_active = Column(Boolean, default=True)
    sort = Column(Integer, nullable=True)
    note = Column(Text, nullable=True)

    def __repr__(self):
        return f"<Process1 {self.f1_index}>"


class Process2(Base):
    __tablename__ = "process_2"

    f2_index = Column(String(50), primary_key=True)
    f1_index = Column(String(50), ForeignKey("process_1.f1_index"), nullable=True, index=True)
    f2_name = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True)
    sort = Column(Integer, nullable=True)
    note = Column(Text, nullable=True)


class Process3(Base):
    __tablename__ = "process_3"

    f3_index = Column(String(50), primary_key=True)
    f2_index = Column(String(50), ForeignKey("process_2.f2_index"), nullable=True, index=True)
    f3_name = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True)
    sort = Column(Integer, nullable=True)
    note = Column(Text, nullable=True)


class Process4(Base):
    """Leaf process; responses are recorded against f4_index"""
    __tablename__ = "process_4"

    f4_index = Column(String(50), primary_key=True)
    f3_index = Column(String(50), ForeignKey("process_3.f3_index"), nullable=True, index=True)
    f4_name = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True)
    sort = Column(Integer, nullable=True)
    note = Column(Text, nullable=True)


class System(Base):
    """IT system a user can pick for a leaf process"""
    __tablename__ = "systems"

    system_id = Column(Integer, primary_key=True, autoincrement=True)
    system_name = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<System {self.system_name}>"
