"""
PayloadService: Splits a Facebook page webhook body into independent events.
Handles object-type filtering, echo filtering and per-event validation.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from app.models.webhook_models import ChangeEvent, MessagingEvent

logger = logging.getLogger(__name__)

PAGE_OBJECT = "page"


@dataclass
class MessageEvent:
    page_id: str
    sender_id: str
    text: str = ""
    attachments: List[dict] = field(default_factory=list)
    mid: Optional[str] = None
    timestamp: Optional[int] = None

    @property
    def has_media(self) -> bool:
        return bool(self.attachments)


@dataclass
class CommentEvent:
    page_id: str
    comment_id: str
    post_id: Optional[str] = None
    text: str = ""
    from_id: Optional[str] = None
    from_name: Optional[str] = None


@dataclass
class PostbackEvent:
    page_id: str
    sender_id: str
    payload: Optional[str] = None
    title: Optional[str] = None
    timestamp: Optional[int] = None


InboundEvent = Union[MessageEvent, CommentEvent, PostbackEvent]


@dataclass
class WebhookBatch:
    """Events extracted from one webhook delivery, in arrival order."""
    events: List[InboundEvent] = field(default_factory=list)
    should_ignore: bool = False
    ignore_reason: str = ""

    @property
    def ignore_response(self) -> dict:
        return {"received": True}


def _message_event(page_id: str, raw_event: Dict[str, Any]) -> Optional[InboundEvent]:
    event = MessagingEvent.model_validate(raw_event)
    sender_id = event.sender.id

    if event.message is not None:
        if event.message.is_echo or sender_id == page_id:
            logger.info("Echo message on page %s - ignoring", page_id)
            return None
        return MessageEvent(
            page_id=page_id,
            sender_id=sender_id,
            text=event.message.text or "",
            attachments=[a.model_dump() for a in event.message.attachments],
            mid=event.message.mid,
            timestamp=event.timestamp,
        )

    if event.postback is not None:
        return PostbackEvent(
            page_id=page_id,
            sender_id=sender_id,
            payload=event.postback.payload,
            title=event.postback.title,
            timestamp=event.timestamp,
        )

    # delivery/read receipts and other sender actions
    return None


def _comment_event(page_id: str, raw_change: Dict[str, Any]) -> Optional[InboundEvent]:
    change = ChangeEvent.model_validate(raw_change)
    value = change.value

    if change.field != "feed" or value.item != "comment":
        return None
    if value.verb not in (None, "add"):
        logger.info("Comment %s verb '%s' - ignoring", value.comment_id, value.verb)
        return None
    if not value.comment_id:
        return None

    author = value.author
    from_id = author.id if author else None
    if from_id == page_id:
        logger.info("Own comment on page %s - ignoring", page_id)
        return None

    return CommentEvent(
        page_id=page_id,
        comment_id=value.comment_id,
        post_id=value.post_id,
        text=value.message or "",
        from_id=from_id,
        from_name=author.name if author else None,
    )


def extract_events(raw_body: Any) -> WebhookBatch:
    """
    Demultiplex a page webhook body into message, comment and postback events.
    Malformed sub-events are logged and skipped individually.
    """
    batch = WebhookBatch()

    if not isinstance(raw_body, dict) or raw_body.get("object") != PAGE_OBJECT:
        batch.should_ignore = True
        batch.ignore_reason = "not a page event"
        return batch

    for entry in raw_body.get("entry") or []:
        if not isinstance(entry, dict) or not entry.get("id"):
            logger.warning("Webhook entry without page id - skipping")
            continue
        page_id = str(entry["id"])

        for raw_event in entry.get("messaging") or []:
            try:
                event = _message_event(page_id, raw_event)
            except ValidationError as e:
                logger.warning("Malformed messaging event on page %s: %s", page_id, e)
                continue
            if event:
                batch.events.append(event)

        for raw_change in entry.get("changes") or []:
            try:
                event = _comment_event(page_id, raw_change)
            except ValidationError as e:
                logger.warning("Malformed change event on page %s: %s", page_id, e)
                continue
            if event:
                batch.events.append(event)

    logger.info("Webhook demultiplexed: %s events", len(batch.events))
    return batch
