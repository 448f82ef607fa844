import logging
from dataclasses import dataclass
from typing import Optional

import requests

from app.config import Settings

logger = logging.getLogger(__name__)

GRAPH_BASE_URL = "https://graph.facebook.com"


@dataclass(frozen=True)
class ActionResult:
    """Outcome of one outbound Graph API call. Falsy when the call failed."""
    ok: bool
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.ok


class FacebookService:
    """
    Outbound calls to the Facebook Graph API on behalf of a page.
    Every method issues one request, never retries and never raises:
    failures are logged and returned as a falsy ActionResult.
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.base_url = f"{GRAPH_BASE_URL}/{settings.graph_api_version}"
        self.timeout = settings.http_timeout_seconds
        self.session = session or requests.Session()

    def _post(self, path: str, payload: dict, action: str) -> ActionResult:
        url = f"{self.base_url}/{path}"
        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("Facebook %s error: %s", action, e)
            return ActionResult(ok=False, error=str(e))

        if not response.ok:
            logger.error("Facebook %s error (%s): %s", action, response.status_code, response.text)
            return ActionResult(ok=False, error=response.text)
        return ActionResult(ok=True)

    def send_message(self, page_id: str, recipient_id: str, message: str, access_token: str) -> ActionResult:
        """Direct message to a user who wrote to the page."""
        return self._post(f"{page_id}/messages", {
            "recipient": {"id": recipient_id},
            "message": {"text": message},
            "messaging_type": "RESPONSE",
            "access_token": access_token,
        }, "send")

    def reply_to_comment(self, comment_id: str, message: str, access_token: str) -> ActionResult:
        return self._post(f"{comment_id}/comments", {
            "message": message,
            "access_token": access_token,
        }, "comment reply")

    def react_to_comment(self, comment_id: str, reaction: str, access_token: str) -> ActionResult:
        """reaction is a Graph reaction type, e.g. LIKE or LOVE."""
        return self._post(f"{comment_id}/reactions", {
            "type": reaction,
            "access_token": access_token,
        }, "reaction")

    def hide_comment(self, comment_id: str, access_token: str) -> ActionResult:
        return self._post(comment_id, {
            "is_hidden": True,
            "access_token": access_token,
        }, "hide comment")

    def mark_seen(self, page_id: str, sender_id: str, access_token: str) -> ActionResult:
        return self._post(f"{page_id}/messages", {
            "recipient": {"id": sender_id},
            "sender_action": "mark_seen",
            "access_token": access_token,
        }, "mark seen")

    def set_typing(self, page_id: str, sender_id: str, access_token: str, on: bool = True) -> ActionResult:
        return self._post(f"{page_id}/messages", {
            "recipient": {"id": sender_id},
            "sender_action": "typing_on" if on else "typing_off",
            "access_token": access_token,
        }, "typing indicator")

    def get_sender_profile(self, sender_id: str, access_token: str) -> Optional[dict]:
        """{'name': ...} for the sender, or None if the profile is not readable."""
        url = f"{self.base_url}/{sender_id}"
        try:
            response = self.session.get(
                url,
                params={"fields": "name", "access_token": access_token},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("Facebook profile error for %s: %s", sender_id, e)
            return None

        if not response.ok:
            logger.warning("Facebook profile error for %s (%s)", sender_id, response.status_code)
            return None

        try:
            return response.json()
        except ValueError:
            return None
