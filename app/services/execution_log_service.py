"""
ExecutionLogService: append-only audit trail of automated actions
(`execution_logs`). Writing a log entry must never break the request that
produced it, so every failure here is logged and swallowed.
"""

import logging
from typing import Any, Dict, Optional

from app.services.supabase_client import get_supabase
from app.utils.helpers import truncate, utc_now_iso

logger = logging.getLogger(__name__)

INCOMING_TEXT_LIMIT = 100
OUTGOING_TEXT_LIMIT = 200

STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"


def _clip(payload: Optional[Dict[str, Any]], limit: int) -> Dict[str, Any]:
    """Copy of payload with every string value cut to `limit` characters."""
    return {
        key: truncate(value, limit) if isinstance(value, str) else value
        for key, value in (payload or {}).items()
    }


class ExecutionLogService:

    def __init__(self, client=None):
        self.client = client if client is not None else get_supabase()

    def record(self, owner_id: Optional[str], event_type: str, status: str,
               platform: str = "facebook", duration_ms: int = 0,
               incoming: Optional[Dict[str, Any]] = None,
               outgoing: Optional[Dict[str, Any]] = None) -> bool:
        """Appends one entry. Returns False (never raises) if it could not be written."""
        if not self.client:
            logger.warning("Supabase client not initialized - execution log dropped (%s)", event_type)
            return False

        entry = {
            "user_id": owner_id,
            "event_type": event_type,
            "status": status,
            "source_platform": platform,
            "processing_time_ms": duration_ms,
            "incoming_payload": _clip(incoming, INCOMING_TEXT_LIMIT),
            "response_payload": _clip(outgoing, OUTGOING_TEXT_LIMIT),
            "created_at": utc_now_iso(),
        }

        try:
            self.client.table("execution_logs").insert(entry).execute()
            return True
        except Exception as e:
            logger.error("Error writing execution log (%s): %s", event_type, e)
            return False
