import json
import logging
from fastapi import APIRouter, Depends, Request

from mogumogu_api.api.deps import get_line_client
from mogumogu_api.clients.line_client import LineClient
from mogumogu_api.core.config import LINE_MESSAGING_CHANNEL_SECRET
from mogumogu_api.services import line_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["LINE"])


# ✅ Endpoint verification
@router.get("/line-webhook")
def line_webhook_check():
    return {"status": "ok"}


# ✅ The platform requires 200 for every delivery
@router.post("/line-webhook")
async def line_webhook(request: Request, client: LineClient = Depends(get_line_client)):
    body = await request.body()

    if LINE_MESSAGING_CHANNEL_SECRET:
        signature = request.headers.get("x-line-signature")
        if not line_service.verify_signature(body, signature, LINE_MESSAGING_CHANNEL_SECRET):
            logger.error("Invalid LINE signature")
            return {"status": "ok"}

    try:
        events = json.loads(body or b"{}").get("events") or []
    except (ValueError, AttributeError):
        logger.error("Unparseable LINE webhook body")
        return {"status": "ok"}

    line_service.handle_events(events, client)
    return {"status": "ok"}
