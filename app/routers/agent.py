"""
Direct invocation of the sales agent, for testing and manual triggering.
Runs the same pipeline as the webhook but returns the reply instead of
sending it to the page.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.dependencies import get_orchestrator
from app.models.agent_models import AgentRequest
from app.services.orchestrator_service import AutomationOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/ai-facebook-agent")
def invoke_agent(body: AgentRequest, orchestrator: AutomationOrchestrator = Depends(get_orchestrator)):
    if not body.page_id or not body.sender_id:
        return JSONResponse({"error": "pageId and senderId are required"}, status_code=400)

    try:
        result = orchestrator.invoke(body)
    except Exception as e:
        logger.exception("Agent invocation failed for page %s", body.page_id)
        return JSONResponse({"error": str(e)}, status_code=500)

    return result.to_response()
