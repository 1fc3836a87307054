"""
SQLAlchemy models
"""
from app.core.database import Base
from app.models.profile import Profile  # noqa: F401
from app.models.repository import PromptRepository, RepositoryTag  # noqa: F401
from app.models.version import PromptVersion  # noqa: F401

__all__ = [
    "Base",
    "Profile",
    "PromptRepository",
    "RepositoryTag",
    "PromptVersion",
]
