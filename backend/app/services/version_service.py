"""
Version Service for creating, listing and rolling back prompt versions
"""
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth import Identity
from app.core.config import get_settings
from app.core.errors import BadRequestError, ConflictError, InternalError, NotFoundError, UnauthorizedError
from app.core.logging_config import LoggingConfig
from app.models.profile import Profile
from app.models.repository import PromptRepository
from app.models.version import PromptVersion
from app.services.repository_service import RepositoryService

logger = LoggingConfig.get_logger(__name__)

# Upper bound of the 32-bit version_number column
MAX_VERSION_NUMBER = 2**31 - 1


class VersionService:
    """
    Service for the append-only version log of a repository:
    - Version numbers start at 1 and increase by one per insert
    - Rollback copies an earlier version into a new one
    - Numbering is serialized per repository (row lock + unique constraint + retry)
    """

    def __init__(self, db: Session, max_attempts: Optional[int] = None):
        """
        Initialize Version Service

        Args:
            db: Request-scoped database session
            max_attempts: Attempts at assigning a version number before giving up
        """
        self.db = db
        self.repositories = RepositoryService(db)
        self.max_attempts = max_attempts or get_settings().version_insert_max_attempts

    def _lock_repository(self, repository_id: UUID) -> None:
        """Take a row lock on the repository so concurrent writers queue up

        SELECT ... FOR UPDATE is a no-op on dialects without row locks (SQLite),
        where the unique constraint and retry loop still apply.
        """
        self.db.execute(
            select(PromptRepository.id)
            .where(PromptRepository.id == repository_id)
            .with_for_update()
        )

    def _next_version_number(self, repository_id: UUID) -> int:
        current = self.db.scalar(
            select(func.max(PromptVersion.version_number))
            .where(PromptVersion.repository_id == repository_id)
        )
        return (current or 0) + 1

    def _append_version(self, repository_id: UUID, **fields: Any) -> PromptVersion:
        """Insert a version with the next free number, retrying on collisions

        Raises:
            ConflictError: If every attempt collided with a concurrent writer
            InternalError: If the store fails for any other reason
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                self._lock_repository(repository_id)
                version = PromptVersion(
                    repository_id=repository_id,
                    version_number=self._next_version_number(repository_id),
                    **fields,
                )
                self.db.add(version)
                self.db.commit()
                self.db.refresh(version)
                return version
            except IntegrityError as e:
                self.db.rollback()
                logger.warning(
                    f"Version number collision for repository {repository_id} "
                    f"(attempt {attempt}/{self.max_attempts})",
                    extra={"repository_id": str(repository_id), "error": str(e.orig)}
                )
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Error inserting version: {e}", exc_info=True)
                raise InternalError("Failed to create new version", details=str(e))

        raise ConflictError()

    def create_version(
        self,
        repository_id: UUID,
        identity: Optional[Identity],
        prompt_text: Any,
        variables: Any = None,
        model_settings: Any = None,
        notes: Optional[str] = None,
    ) -> PromptVersion:
        """Create the next version of a repository's prompt

        Args:
            repository_id: Repository the version belongs to
            identity: Caller identity (required)
            prompt_text: Prompt text, must not be blank
            variables: Opaque structured variables
            model_settings: Opaque structured model settings
            notes: Free-text notes

        Returns:
            Created PromptVersion
        """
        if identity is None:
            raise UnauthorizedError()
        if not isinstance(prompt_text, str) or not prompt_text.strip():
            raise BadRequestError("Prompt text is required")
        if notes is not None and not isinstance(notes, str):
            raise BadRequestError("Notes must be a string")

        repository = self.repositories.get_repository(repository_id, identity)

        version = self._append_version(
            repository.id,
            prompt_text=prompt_text,
            variables=variables,
            model_settings=model_settings,
            notes=notes,
            user_id=identity.user_id,
        )

        logger.info(
            f"Created version {version.version_number} of repository {repository.name}",
            extra={"repository_id": str(repository.id), "version_id": str(version.id)}
        )
        return version

    def get_version(
        self,
        repository_id: UUID,
        version_id: UUID,
        identity: Optional[Identity] = None,
    ) -> PromptVersion:
        """Get a version that belongs to the given repository

        Raises:
            NotFoundError: If the repository or version is absent, or they don't match
        """
        self.repositories.get_repository(repository_id, identity)
        version = self.db.get(PromptVersion, version_id)
        if version is None or version.repository_id != repository_id:
            raise NotFoundError("Target version not found")
        return version

    def get_version_by_number(
        self,
        repository_id: UUID,
        version_number: int,
        identity: Optional[Identity] = None,
    ) -> PromptVersion:
        """Get a version of a repository by its number"""
        self.repositories.get_repository(repository_id, identity)
        version = self.db.scalar(
            select(PromptVersion).where(
                PromptVersion.repository_id == repository_id,
                PromptVersion.version_number == version_number,
            )
        )
        if version is None:
            raise NotFoundError(f"Version {version_number} not found")
        return version

    def list_versions(
        self,
        repository_id: UUID,
        identity: Optional[Identity] = None,
    ) -> List[Dict[str, Any]]:
        """List all versions of a repository, newest first

        Each entry is the version's dictionary plus an ``editor`` entry
        resolved from the author's profile (None when unknown).
        """
        self.repositories.get_repository(repository_id, identity)

        try:
            rows = self.db.execute(
                select(PromptVersion, Profile)
                .outerjoin(Profile, Profile.external_id == PromptVersion.user_id)
                .where(PromptVersion.repository_id == repository_id)
                .order_by(PromptVersion.version_number.desc())
            ).all()
        except SQLAlchemyError as e:
            logger.error(f"Error listing versions: {e}", exc_info=True)
            raise InternalError("Failed to load versions", details=str(e))

        versions = []
        for version, profile in rows:
            entry = version.to_dict()
            entry["editor"] = profile.editor_label() if profile else None
            versions.append(entry)
        return versions

    def rollback_to_version(
        self,
        repository_id: UUID,
        version_id: UUID,
        identity: Optional[Identity],
    ) -> PromptVersion:
        """Create a new version copying the content of an earlier one

        The target and every other existing version are left untouched; the
        new version is authored by the caller.

        Returns:
            Newly created PromptVersion (the new current version)
        """
        if identity is None:
            raise UnauthorizedError()

        target = self.get_version(repository_id, version_id, identity)

        version = self._append_version(
            repository_id,
            prompt_text=target.prompt_text,
            variables=target.variables,
            model_settings=target.model_settings,
            notes=(
                f"Rolled back to version {target.version_number} (ID: {target.id}). "
                f"Original notes: {target.notes or ''}"
            ),
            user_id=identity.user_id,
        )

        logger.info(
            f"Rolled back repository {repository_id} to version {target.version_number} "
            f"as version {version.version_number}",
            extra={"repository_id": str(repository_id), "target_version_id": str(target.id)}
        )
        return version
