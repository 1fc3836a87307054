"""
Identity provider webhook endpoint
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.logging_config import LoggingConfig
from app.services.webhook_service import WebhookService, verify_webhook

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])
logger = LoggingConfig.get_logger(__name__)


@router.post("", response_class=PlainTextResponse)
async def receive_webhook(request: Request, db: Session = Depends(get_db)):
    """Receive a signed user lifecycle event from the identity provider"""
    body = await request.body()
    event = verify_webhook(body, request.headers)
    outcome = WebhookService(db).handle_event(event)
    logger.info(f"Webhook {event.get('type')} processed: {outcome}")
    return PlainTextResponse("Webhook received and processed")
