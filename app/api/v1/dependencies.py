"""
Dependencias compartidas por los endpoints v1.
"""

from fastapi import HTTPException, Request

from app.services.webhook_handler import WebhookProcessor


def get_webhook_processor(request: Request) -> WebhookProcessor:
    """Dependency para obtener el procesador creado en el startup."""
    processor = getattr(request.app.state, "webhook_processor", None)
    if processor is None:
        raise HTTPException(status_code=503, detail="Webhook processor not initialized")
    return processor
