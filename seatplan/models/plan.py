"""
Plan model
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text

from seatplan.core.db import Base

class Plan(Base):
    __tablename__ = "plans"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    organizer_email = Column(String(255), nullable=True)
    public_code = Column(String(50), unique=True, nullable=False, index=True)
    # Latest saved snapshot JSON; only one snapshot is kept per plan
    snapshot = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
