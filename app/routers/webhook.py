"""
Facebook Webhook Router: thin HTTP layer
=========================================
Subscription handshake and event delivery for Messenger messages, page
comments and postbacks. Delegates all business logic to AutomationOrchestrator.
"""

import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse

from app.config import Settings
from app.dependencies import get_orchestrator, get_settings
from app.services.orchestrator_service import AutomationOrchestrator
from app.services.payload_service import extract_events
from app.services.signature_service import is_request_authentic

logger = logging.getLogger(__name__)

router = APIRouter()

SIGNATURE_HEADER = "X-Hub-Signature-256"


@router.get("/webhook/facebook")
def verify_webhook(request: Request, settings: Settings = Depends(get_settings)):
    """Subscription handshake: echoes hub.challenge when the verify token matches."""
    params = request.query_params
    mode = params.get("hub.mode")
    token = params.get("hub.verify_token")
    challenge = params.get("hub.challenge") or ""

    if mode == "subscribe" and settings.facebook_verify_token and token == settings.facebook_verify_token:
        logger.info("Webhook verified")
        return PlainTextResponse(challenge)

    logger.warning("Webhook verification failed (mode=%s)", mode)
    return PlainTextResponse("Verification failed", status_code=403)


@router.post("/webhook/facebook")
async def receive_webhook_facebook(
    request: Request,
    settings: Settings = Depends(get_settings),
    orchestrator: AutomationOrchestrator = Depends(get_orchestrator),
):
    """
    Facebook webhook for MESSAGES, COMMENTS and POSTBACKS.
    Verifies the signature, extracts the events and processes them in order.
    """
    try:
        raw_body = await request.body()

        if not is_request_authentic(raw_body, request.headers.get(SIGNATURE_HEADER), settings.facebook_app_secret):
            return JSONResponse({"error": "Invalid signature"}, status_code=401)

        try:
            payload = json.loads(raw_body)
        except ValueError:
            logger.warning("Webhook body is not valid JSON")
            return JSONResponse({"error": "Invalid JSON"}, status_code=400)

        batch = extract_events(payload)
        if batch.should_ignore:
            logger.info("Webhook ignored: %s", batch.ignore_reason)
            return batch.ignore_response

        await run_in_threadpool(orchestrator.handle_webhook, batch)
        return {"received": True}

    except Exception as e:
        logger.exception("Webhook error")
        return JSONResponse({"error": str(e)}, status_code=500)
