"""
Profile model mirroring identity provider users
"""
from datetime import datetime, timezone
from typing import Any, Dict
from uuid import uuid4

from sqlalchemy import Column, DateTime, String, Uuid

from app.core.database import Base


class Profile(Base):
    """Local mirror of an identity provider user record"""
    __tablename__ = "profiles"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    external_id = Column(String(255), unique=True, nullable=False, index=True)
    email = Column(String(320), nullable=True)
    full_name = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def __repr__(self):
        return f"<Profile(id={self.id}, external_id={self.external_id}, email={self.email})>"

    def editor_label(self) -> Dict[str, Any]:
        """Editor display used in version listings"""
        return {"full_name": self.full_name, "email": self.email}
