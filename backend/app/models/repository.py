"""
Prompt repository model
"""
from datetime import datetime, timezone
from typing import Any, Dict, List
from uuid import uuid4

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from app.core.database import Base


class PromptRepository(Base):
    """A named container for one evolving prompt and its metadata"""
    __tablename__ = "prompt_repositories"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(String(255), nullable=False, index=True)  # Identity provider user id
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    is_public = Column(Boolean, nullable=False, default=True, index=True)
    model_compatibility = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False, index=True)

    # Relationships
    tag_links = relationship(
        "RepositoryTag",
        back_populates="repository",
        cascade="all, delete-orphan",
        order_by="RepositoryTag.position",
    )
    versions = relationship(
        "PromptVersion",
        back_populates="repository",
        order_by="desc(PromptVersion.version_number)",
    )

    @property
    def tags(self) -> List[str]:
        return [link.tag for link in self.tag_links]

    def __repr__(self):
        return f"<PromptRepository(id={self.id}, name={self.name}, is_public={self.is_public})>"

    def to_dict(self) -> Dict[str, Any]:
        """Convert repository to dictionary"""
        return {
            "id": str(self.id),
            "user_id": self.user_id,
            "name": self.name,
            "description": self.description,
            "is_public": self.is_public,
            "tags": self.tags,
            "model_compatibility": list(self.model_compatibility or []),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class RepositoryTag(Base):
    """Free-form tag attached to a repository"""
    __tablename__ = "prompt_repository_tags"

    repository_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("prompt_repositories.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag = Column(Text, primary_key=True, index=True)
    position = Column(Integer, nullable=False, default=0)

    repository = relationship("PromptRepository", back_populates="tag_links")

    def __repr__(self):
        return f"<RepositoryTag(repository_id={self.repository_id}, tag={self.tag})>"
