"""
Profile Service keeping local profiles in sync with the identity provider
"""
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import InternalError
from app.core.logging_config import LoggingConfig
from app.models.profile import Profile

logger = LoggingConfig.get_logger(__name__)


def primary_email(user_data: Dict[str, Any]) -> Optional[str]:
    """Resolve the primary email address of an identity provider user payload"""
    primary_id = user_data.get("primary_email_address_id")
    entries = user_data.get("email_addresses") or []
    if not isinstance(entries, list) or not all(isinstance(entry, dict) for entry in entries):
        raise ValueError("email_addresses must be a list of objects")
    for entry in entries:
        if entry.get("id") == primary_id:
            return entry.get("email_address")
    return None


def full_name(user_data: Dict[str, Any]) -> Optional[str]:
    """Join first and last name; None when both are empty"""
    name = f"{user_data.get('first_name') or ''} {user_data.get('last_name') or ''}".strip()
    return name or None


class ProfileService:
    """Service for profile upserts and removals driven by webhook events"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_external_id(self, external_id: str) -> Optional[Profile]:
        return self.db.scalar(select(Profile).where(Profile.external_id == external_id))

    def upsert_from_user_data(self, user_data: Dict[str, Any]) -> Profile:
        """Create or update the profile mirroring an identity provider user

        Args:
            user_data: The ``data`` object of a user.created / user.updated event

        Returns:
            The stored Profile
        """
        external_id = user_data.get("id")
        if not isinstance(external_id, str) or not external_id:
            raise ValueError("User payload has no id")

        email = primary_email(user_data)
        if not email:
            logger.warning(f"Primary email not found for user: {external_id}")

        profile = self.get_by_external_id(external_id)
        if profile is None:
            profile = Profile(external_id=external_id)
            self.db.add(profile)
        profile.email = email
        profile.full_name = full_name(user_data)

        try:
            self.db.commit()
            self.db.refresh(profile)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error saving profile {external_id}: {e}", exc_info=True)
            raise InternalError("Error saving user profile", details=str(e))

        logger.info(f"Saved profile for user {external_id}", extra={"profile_id": str(profile.id)})
        return profile

    def delete_by_external_id(self, external_id: str) -> bool:
        """Remove a profile; returns False when there was none"""
        profile = self.get_by_external_id(external_id)
        if profile is None:
            return False

        try:
            self.db.delete(profile)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting profile {external_id}: {e}", exc_info=True)
            raise InternalError("Error deleting user profile", details=str(e))

        logger.info(f"Deleted profile for user {external_id}")
        return True
