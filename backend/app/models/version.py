"""
Prompt version model
"""
from datetime import datetime, timezone
from typing import Any, Dict
from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from app.core.database import Base


class PromptVersion(Base):
    """
    Immutable, numbered snapshot of a repository's prompt

    version_number starts at 1 and is unique per repository; the version with
    the highest number is the current one.
    """
    __tablename__ = "prompt_versions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    repository_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("prompt_repositories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    version_number = Column(Integer, nullable=False)
    prompt_text = Column(Text, nullable=False)
    variables = Column(JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql"), nullable=True)
    model_settings = Column(JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql"), nullable=True)
    notes = Column(Text, nullable=True)
    user_id = Column(String(255), nullable=False, index=True)  # Author's identity provider user id
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    repository = relationship("PromptRepository", back_populates="versions")

    __table_args__ = (
        UniqueConstraint("repository_id", "version_number", name="uq_prompt_versions_repository_number"),
    )

    def __repr__(self):
        return f"<PromptVersion(id={self.id}, repository_id={self.repository_id}, version={self.version_number})>"

    def to_dict(self) -> Dict[str, Any]:
        """Convert version to dictionary"""
        return {
            "id": str(self.id),
            "repository_id": str(self.repository_id),
            "version_number": self.version_number,
            "prompt_text": self.prompt_text,
            "variables": self.variables,
            "model_settings": self.model_settings,
            "notes": self.notes,
            "user_id": self.user_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
