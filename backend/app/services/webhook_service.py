"""
Identity provider webhook verification and event dispatch
"""
import json
from typing import Any, Dict, Mapping

from sqlalchemy.orm import Session
from svix.webhooks import Webhook, WebhookVerificationError

from app.core.config import get_settings
from app.core.errors import BadRequestError
from app.core.logging_config import LoggingConfig
from app.services.profile_service import ProfileService

logger = LoggingConfig.get_logger(__name__)

SIGNATURE_HEADERS = ("svix-id", "svix-timestamp", "svix-signature")


def verify_webhook(body: bytes, headers: Mapping[str, str]) -> Dict[str, Any]:
    """
    Verify a webhook delivery and return the parsed event

    Args:
        body: Raw request body
        headers: Request headers (case-insensitive mapping)

    Returns:
        Event dictionary with ``type`` and ``data``

    Raises:
        BadRequestError: If signature headers are missing or the signature is invalid
    """
    signature_headers = {name: headers.get(name) for name in SIGNATURE_HEADERS}
    if not all(signature_headers.values()):
        raise BadRequestError("Error occured -- no svix headers")

    try:
        Webhook(get_settings().webhook_signing_secret).verify(body, signature_headers)
    except WebhookVerificationError as e:
        logger.warning(f"Webhook verification failed: {e}")
        raise BadRequestError("Error verifying webhook", details=str(e))
    except ValueError as e:
        raise BadRequestError("Webhook payload is not valid JSON", details=str(e))

    # verify() only returns the parsed payload on some svix releases
    try:
        event = json.loads(body)
    except ValueError as e:
        raise BadRequestError("Webhook payload is not valid JSON", details=str(e))

    if not isinstance(event, dict) or "type" not in event:
        raise BadRequestError("Webhook payload has no event type")
    return event


class WebhookService:
    """Applies identity provider user events to local profiles"""

    def __init__(self, db: Session):
        self.profiles = ProfileService(db)

    def handle_event(self, event: Dict[str, Any]) -> str:
        """
        Apply an event

        Returns:
            Short description of what was done
        """
        event_type = event.get("type")
        data = event.get("data") or {}
        if not isinstance(data, dict):
            raise BadRequestError("Invalid user payload", details="Event data must be an object")
        logger.info(f"Received webhook event type: {event_type}", extra={"event_type": event_type})

        if event_type in ("user.created", "user.updated"):
            try:
                profile = self.profiles.upsert_from_user_data(data)
            except ValueError as e:
                raise BadRequestError("Invalid user payload", details=str(e))
            return f"profile {profile.external_id} saved"

        if event_type == "user.deleted":
            external_id = data.get("id")
            if isinstance(external_id, str) and external_id and self.profiles.delete_by_external_id(external_id):
                return f"profile {external_id} deleted"
            return "no profile to delete"

        logger.debug(f"Ignoring webhook event type: {event_type}")
        return "ignored"
