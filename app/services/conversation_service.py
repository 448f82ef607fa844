import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from app.services.supabase_client import first_row, get_supabase
from app.utils.helpers import utc_now_iso
from app.utils.locks import KeyedLock

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 20
MAX_WRITE_ATTEMPTS = 3


def append_entries(history: List[Dict], user_message: str, assistant_message: str,
                   timestamp: str, limit: int = HISTORY_LIMIT) -> List[Dict]:
    """History with one user and one assistant entry appended, oldest dropped past `limit`."""
    updated = list(history) + [
        {"role": "user", "content": user_message, "timestamp": timestamp},
        {"role": "assistant", "content": assistant_message, "timestamp": timestamp},
    ]
    return updated[-limit:]


class ConversationService:
    """
    Rolling per (page, sender) conversation memory in `ai_conversations`.

    Writers for the same (page, sender) are serialized in-process through
    `turn()`; the history write itself is conditional on the message count
    that was read, so a writer in another process cannot be silently lost.
    """

    def __init__(self, client=None, facebook_service=None, history_limit: int = HISTORY_LIMIT):
        self.client = client if client is not None else get_supabase()
        self.facebook = facebook_service
        self.history_limit = history_limit
        self._locks = KeyedLock()

    @contextmanager
    def turn(self, page_id: str, sender_id: str) -> Iterator[None]:
        """Holds the (page, sender) lock for a whole read-reply-append turn."""
        with self._locks.hold((page_id, sender_id)):
            yield

    def _find(self, page_id: str, sender_id: str) -> Optional[dict]:
        response = self.client.table("ai_conversations") \
            .select("*") \
            .eq("page_id", page_id) \
            .eq("sender_id", sender_id) \
            .limit(1) \
            .execute()
        return first_row(response)

    def _reload(self, conversation_id: str) -> Optional[dict]:
        response = self.client.table("ai_conversations") \
            .select("*") \
            .eq("id", conversation_id) \
            .limit(1) \
            .execute()
        return first_row(response)

    def get_or_create(self, page_id: str, sender_id: str, owner_id: str,
                      sender_name: Optional[str] = None,
                      access_token: Optional[str] = None) -> Optional[dict]:
        """
        Existing conversation row, or a new one with empty history.
        On creation the sender's display name is fetched from Facebook when
        not given (best-effort).

        Returns None if the store is unavailable.
        """
        if not self.client:
            logger.error("Supabase client not initialized")
            return None

        try:
            existing = self._find(page_id, sender_id)
            if existing:
                return existing

            if not sender_name and access_token and self.facebook:
                profile = self.facebook.get_sender_profile(sender_id, access_token)
                sender_name = (profile or {}).get("name")

            created = self.client.table("ai_conversations").insert({
                "page_id": page_id,
                "sender_id": sender_id,
                "user_id": owner_id,
                "sender_name": sender_name,
                "message_history": [],
                "conversation_state": "active",
                "total_messages_count": 0,
            }).execute()

            conversation = first_row(created)
            logger.info("New conversation created: page=%s sender=%s", page_id, sender_id)
            return conversation

        except Exception as e:
            logger.error("Error in get_or_create conversation: %s", e)
            return None

    def append_turn(self, conversation: dict, user_message: str, assistant_message: str) -> Optional[dict]:
        """
        Appends the user/assistant pair, keeps the last `history_limit`
        entries, bumps the message count and last activity.

        Returns the stored row, or None if it could not be written.
        """
        if not self.client or not conversation:
            return None

        conversation_id = conversation.get("id")
        try:
            for attempt in range(1, MAX_WRITE_ATTEMPTS + 1):
                expected_count = conversation.get("total_messages_count")
                now = utc_now_iso()
                update = {
                    "message_history": append_entries(
                        conversation.get("message_history") or [],
                        user_message, assistant_message, now, self.history_limit,
                    ),
                    "last_message_at": now,
                    "total_messages_count": (expected_count or 0) + 1,
                }

                query = self.client.table("ai_conversations").update(update).eq("id", conversation_id)
                if expected_count is None:
                    query = query.is_("total_messages_count", "null")
                else:
                    query = query.eq("total_messages_count", expected_count)

                stored = first_row(query.execute())
                if stored:
                    return stored

                logger.warning("Conversation %s changed concurrently (attempt %s), re-reading",
                               conversation_id, attempt)
                conversation = self._reload(conversation_id)
                if not conversation:
                    logger.error("Conversation %s disappeared during update", conversation_id)
                    return None

            logger.error("Conversation %s not updated after %s attempts", conversation_id, MAX_WRITE_ATTEMPTS)
            return None

        except Exception as e:
            logger.error("Error saving turn for conversation %s: %s", conversation_id, e)
            return None
