"""
Repository Service for creating, fetching and listing prompt repositories
"""
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.core.auth import Identity
from app.core.config import get_settings
from app.core.errors import BadRequestError, InternalError, NotFoundError, UnauthorizedError
from app.core.logging_config import LoggingConfig
from app.models.repository import PromptRepository, RepositoryTag

logger = LoggingConfig.get_logger(__name__)

NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
MAX_PAGE = 10_000


@dataclass
class RepositoryPage:
    """One page of the public repository listing"""
    items: List[PromptRepository]
    page: int
    page_size: int
    total: int

    @property
    def has_more(self) -> bool:
        return (self.page + 1) * self.page_size < self.total

    def to_dict(self) -> dict:
        return {
            "items": [repository.to_dict() for repository in self.items],
            "page": self.page,
            "page_size": self.page_size,
            "total": self.total,
            "has_more": self.has_more,
        }


def _string_list(value: Any) -> Optional[List[str]]:
    """Return value as a list of strings, or None if it is not one"""
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        return None
    return value


def _unique_trimmed(values: Sequence[str]) -> List[str]:
    seen = []
    for value in values:
        value = value.strip()
        if value and value not in seen:
            seen.append(value)
    return seen


class RepositoryService:
    """Service for managing prompt repositories"""

    def __init__(self, db: Session):
        self.db = db

    def create_repository(
        self,
        identity: Optional[Identity],
        name: Any,
        description: Any = None,
        tags: Any = None,
        model_compatibility: Any = None,
        is_public: Any = None,
    ) -> PromptRepository:
        """Create a new repository owned by the caller

        Args:
            identity: Caller identity (required)
            name: Repository name, trimmed, 1-100 characters
            description: Optional description, up to 500 characters
            tags: Optional list of tag strings
            model_compatibility: Optional list of model labels
            is_public: Visibility flag; anything but a boolean means public

        Returns:
            Created PromptRepository

        Raises:
            UnauthorizedError: If identity is missing
            BadRequestError: If a field fails validation
            InternalError: If the insert fails
        """
        if identity is None:
            raise UnauthorizedError()

        if not isinstance(name, str) or not name.strip():
            raise BadRequestError("Repository name is required.")
        name = name.strip()
        if len(name) > NAME_MAX_LENGTH:
            raise BadRequestError(f"Repository name cannot exceed {NAME_MAX_LENGTH} characters.")

        if description is not None and not isinstance(description, str):
            raise BadRequestError("Description must be a string.")
        if description and len(description) > DESCRIPTION_MAX_LENGTH:
            raise BadRequestError(f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters.")

        tag_list: List[str] = []
        if tags is not None:
            parsed = _string_list(tags)
            if parsed is None:
                raise BadRequestError("Tags must be an array.")
            tag_list = _unique_trimmed(parsed)

        compatibility: List[str] = []
        if model_compatibility is not None:
            parsed = _string_list(model_compatibility)
            if parsed is None:
                raise BadRequestError("Model compatibility must be an array.")
            compatibility = _unique_trimmed(parsed)

        repository = PromptRepository(
            user_id=identity.user_id,
            name=name,
            description=(description or "").strip() or None,
            is_public=is_public if isinstance(is_public, bool) else True,
            model_compatibility=compatibility,
            tag_links=[
                RepositoryTag(tag=tag, position=position)
                for position, tag in enumerate(tag_list)
            ],
        )

        try:
            self.db.add(repository)
            self.db.commit()
            self.db.refresh(repository)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating repository: {e}", exc_info=True)
            raise InternalError("Failed to create repository in database.", details=str(e))

        logger.info(
            f"Created repository: {repository.name}",
            extra={"repository_id": str(repository.id), "owner": identity.user_id}
        )
        return repository

    def get_repository(self, repository_id: UUID, identity: Optional[Identity] = None) -> PromptRepository:
        """Get a repository visible to the caller

        Private repositories are visible to their owner only.

        Raises:
            NotFoundError: If the repository is absent or not visible
        """
        repository = self.db.get(PromptRepository, repository_id)
        if repository is None or not self.can_view(repository, identity):
            raise NotFoundError("Repository not found")
        return repository

    @staticmethod
    def can_view(repository: PromptRepository, identity: Optional[Identity]) -> bool:
        if repository.is_public:
            return True
        return identity is not None and identity.user_id == repository.user_id

    @staticmethod
    def is_owner(repository: PromptRepository, identity: Optional[Identity]) -> bool:
        return identity is not None and identity.user_id == repository.user_id

    def list_public_repositories(
        self,
        search: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
        page: int = 0,
        page_size: Optional[int] = None,
    ) -> RepositoryPage:
        """List public repositories, newest first

        Args:
            search: Case-insensitive substring matched against name or description
            tags: Repositories must carry every one of these tags
            page: Zero-based page index
            page_size: Items per page (defaults to the configured page size)

        Returns:
            RepositoryPage with the items and the total match count
        """
        page_size = page_size or get_settings().repositories_page_size
        if page > MAX_PAGE:
            raise BadRequestError(f"Page cannot exceed {MAX_PAGE}.")
        page = max(page, 0)

        query = select(PromptRepository).where(PromptRepository.is_public.is_(True))

        term = (search or "").strip()
        if term:
            query = query.where(
                or_(
                    PromptRepository.name.icontains(term, autoescape=True),
                    PromptRepository.description.icontains(term, autoescape=True),
                )
            )

        for tag in _unique_trimmed(tags or []):
            query = query.where(PromptRepository.tag_links.any(RepositoryTag.tag == tag))

        try:
            total = self.db.scalar(select(func.count()).select_from(query.subquery())) or 0
            items = self.db.scalars(
                query.options(selectinload(PromptRepository.tag_links))
                .order_by(PromptRepository.created_at.desc(), PromptRepository.id)
                .offset(page * page_size)
                .limit(page_size)
            ).all()
        except SQLAlchemyError as e:
            logger.error(f"Error listing repositories: {e}", exc_info=True)
            raise InternalError("Failed to load repositories.", details=str(e))

        return RepositoryPage(items=list(items), page=page, page_size=page_size, total=total)
