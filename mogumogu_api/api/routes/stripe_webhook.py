import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from mogumogu_api.db.session import get_db
from mogumogu_api.services import billing_service, stripe_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Billing Webhook"])


@router.post("/stripe-webhook")
async def stripe_webhook(request: Request, db: Session = Depends(get_db)):
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    try:
        event = stripe_service.verify_webhook(payload, signature)
    except ValueError as e:
        return JSONResponse(status_code=400, content={"error": f"Webhook Error: {e}"})

    # ✅ Always acknowledge a verified event
    billing_service.handle_event(event, db)
    return {"received": True}
