"""
AutomationOrchestrator: the inbound pipeline for page messages and comments.

    page config -> (comments) sentiment gate -> AI credential -> prompt
    -> AI gateway -> Facebook action -> conversation update -> execution log

The webhook path delivers replies through Facebook. The direct invocation
path (deliver=False) runs the same gates and AI call and returns the reply
to the caller instead of acting on the page.
"""

import logging
import time
from typing import Optional

from app.models.agent_models import AgentRequest, AgentResult, Reaction, Sentiment
from app.services import prompt_builder
from app.services.execution_log_service import STATUS_FAILED, STATUS_SUCCESS
from app.services.payload_service import (
    CommentEvent,
    InboundEvent,
    MessageEvent,
    PostbackEvent,
    WebhookBatch,
)
from app.services.sentiment_service import analyze_comment_sentiment
from app.utils.helpers import elapsed_ms

logger = logging.getLogger(__name__)

REASON_NOT_CONFIGURED = "Page not configured"
REASON_AI_DISABLED = "AI disabled for this page"
REASON_NO_TOKEN = "No access token for page"
REASON_EMPTY_REPLY = "AI returned an empty reply"
REASON_NOT_DELIVERED = "Reply could not be delivered"
REASON_AUTO_REPLY_OFF = "Comment auto-reply disabled"


class AutomationOrchestrator:
    """Runs one inbound event to completion. Decoupled from HTTP."""

    def __init__(self, page_config_service, credential_service, ai_gateway,
                 facebook_service, conversation_service, execution_log_service):
        self.pages = page_config_service
        self.credentials = credential_service
        self.gateway = ai_gateway
        self.facebook = facebook_service
        self.conversations = conversation_service
        self.logs = execution_log_service

    # =================================================================
    #  PUBLIC ENTRY POINTS
    # =================================================================

    def handle_webhook(self, batch: WebhookBatch) -> None:
        """Processes every event in arrival order. One failing event never stops the rest."""
        for event in batch.events:
            try:
                self._dispatch(event)
            except Exception:
                logger.exception("Error processing %s on page %s", type(event).__name__, event.page_id)

    def invoke(self, request: AgentRequest) -> AgentResult:
        """Direct invocation: same gates and AI call, reply returned instead of sent."""
        if request.is_comment:
            return self.process_comment(
                CommentEvent(
                    page_id=request.page_id,
                    comment_id=request.comment_id or "",
                    post_id=request.post_id,
                    text=request.message_text,
                    from_id=request.sender_id,
                    from_name=request.sender_name,
                ),
                deliver=False,
            )

        return self.process_message(
            MessageEvent(
                page_id=request.page_id,
                sender_id=request.sender_id,
                text=request.message_text,
                attachments=request.attachments,
            ),
            sender_name=request.sender_name,
            has_media=request.has_media,
            deliver=False,
        )

    def _dispatch(self, event: InboundEvent) -> None:
        if isinstance(event, MessageEvent):
            self.process_message(event)
        elif isinstance(event, CommentEvent):
            self.process_comment(event)
        elif isinstance(event, PostbackEvent):
            self.process_postback(event)

    # =================================================================
    #  MESSAGES
    # =================================================================

    def process_message(self, event: MessageEvent, sender_name: Optional[str] = None,
                        has_media: Optional[bool] = None, deliver: bool = True) -> AgentResult:
        start = time.monotonic()
        page_id, sender_id = event.page_id, event.sender_id
        has_media = event.has_media if has_media is None else has_media
        logger.info("Message from %s on page %s: %s", sender_id, page_id, event.text[:50])

        page = self.pages.get_page_config(page_id)
        if not page:
            return self._skip(REASON_NOT_CONFIGURED, start)
        if not page.is_ai_enabled:
            return self._skip(REASON_AI_DISABLED, start)

        token = None
        if deliver:
            token = self.pages.get_access_token(page_id)
            if not token:
                return self._skip(REASON_NO_TOKEN, start)

        resolution = self.credentials.resolve(page.user_id)
        if not resolution.available:
            return self._skip(resolution.reason, start)

        if deliver:
            self.facebook.mark_seen(page_id, sender_id, token)
            self.facebook.set_typing(page_id, sender_id, token, on=True)

        incoming = {"pageId": page_id, "senderId": sender_id, "messageText": event.text}

        with self.conversations.turn(page_id, sender_id):
            conversation = self.conversations.get_or_create(
                page_id, sender_id, page.user_id, sender_name=sender_name, access_token=token,
            )
            history = (conversation or {}).get("message_history") or []
            messages = prompt_builder.build_message_messages(page, history, event.text)

            try:
                result = self.gateway.call_ai(messages, resolution.credential, has_media)
            except Exception as e:
                if deliver:
                    self.facebook.set_typing(page_id, sender_id, token, on=False)
                self.logs.record(page.user_id, "message_failed", STATUS_FAILED,
                                 duration_ms=elapsed_ms(start), incoming=incoming,
                                 outgoing={"error": str(e)})
                raise

            reply = result.text.strip()
            reason = None
            delivered = bool(reply)
            if deliver:
                if reply:
                    delivered = bool(self.facebook.send_message(page_id, sender_id, reply, token))
                self.facebook.set_typing(page_id, sender_id, token, on=False)

            if not reply:
                reason = REASON_EMPTY_REPLY
            elif not delivered:
                reason = REASON_NOT_DELIVERED
            elif conversation:
                conversation = self.conversations.append_turn(conversation, event.text, reply) or conversation

        logger.info("Reply %s via %s for %s on page %s",
                    "sent" if delivered else "not sent", result.provider.value, sender_id, page_id)

        processing_time = elapsed_ms(start)
        self.logs.record(
            page.user_id, "message_reply", STATUS_SUCCESS if delivered else STATUS_FAILED,
            duration_ms=processing_time, incoming=incoming,
            outgoing={"aiResponse": reply, "provider": result.provider.value},
        )

        return AgentResult(
            success=delivered,
            reply=reply or None,
            provider=result.provider.value,
            conversation_id=_conversation_id(conversation),
            processing_time=processing_time,
            reason=reason,
        )

    # =================================================================
    #  COMMENTS
    # =================================================================

    def process_comment(self, event: CommentEvent, deliver: bool = True) -> AgentResult:
        start = time.monotonic()
        page_id, comment_id = event.page_id, event.comment_id
        logger.info("Comment %s from %s on page %s: %s", comment_id, event.from_name, page_id, event.text[:50])

        page = self.pages.get_page_config(page_id)
        if not page:
            return self._skip(REASON_NOT_CONFIGURED, start)
        # hide and react run without AI on the webhook; direct invocation is an AI call only
        if not deliver and not page.is_ai_enabled:
            return self._skip(REASON_AI_DISABLED, start)

        token = None
        if deliver:
            token = self.pages.get_access_token(page_id)
            if not token:
                return self._skip(REASON_NO_TOKEN, start)

        analysis = analyze_comment_sentiment(event.text)
        logger.info("Comment %s sentiment: %s", comment_id, analysis.sentiment.value)

        incoming = {"commentId": comment_id, "postId": event.post_id, "message": event.text}
        verdict = {
            "sentiment": analysis.sentiment.value,
            "suggestedReaction": analysis.suggested_reaction.value,
        }

        # --- SENTIMENT GATE: hide ---
        if analysis.sentiment is Sentiment.NEGATIVE and page.hide_negative_comments:
            hidden = True
            if deliver:
                hidden = bool(self.facebook.hide_comment(comment_id, token))
            logger.info("Negative comment %s hidden: %s", comment_id, hidden)
            self.logs.record(page.user_id, "comment_hidden", STATUS_SUCCESS if hidden else STATUS_FAILED,
                             duration_ms=elapsed_ms(start), incoming=incoming, outgoing=verdict)
            return AgentResult(success=hidden, action="hide_comment",
                               sentiment=analysis.sentiment.value, processing_time=elapsed_ms(start))

        # --- REACTION ---
        if deliver and page.auto_like_comments and analysis.suggested_reaction is not Reaction.NONE:
            reacted = self.facebook.react_to_comment(comment_id, analysis.suggested_reaction.value, token)
            verdict["reacted"] = bool(reacted)

        # --- REPLY GATES ---
        skip_reason = None
        action = "no_reply"
        if not analysis.should_reply:
            action = "no_reply_needed"
        elif not page.auto_reply_comments:
            skip_reason = REASON_AUTO_REPLY_OFF
        elif not page.is_ai_enabled:
            skip_reason = REASON_AI_DISABLED

        if action == "no_reply_needed" or skip_reason:
            self.logs.record(page.user_id, "comment_processed", STATUS_SUCCESS,
                             duration_ms=elapsed_ms(start), incoming=incoming, outgoing=verdict)
            return AgentResult(
                success=True, action=action, reason=skip_reason,
                sentiment=analysis.sentiment.value,
                suggested_reaction=analysis.suggested_reaction.value,
                processing_time=elapsed_ms(start),
            )

        resolution = self.credentials.resolve(page.user_id)
        if not resolution.available:
            self.logs.record(page.user_id, "comment_processed", STATUS_SUCCESS,
                             duration_ms=elapsed_ms(start), incoming=incoming,
                             outgoing={**verdict, "reason": resolution.reason})
            return self._skip(resolution.reason, start)

        # --- AI REPLY ---
        messages = prompt_builder.build_comment_messages(page, event.text, event.from_name)
        try:
            result = self.gateway.call_ai(messages, resolution.credential, False)
        except Exception as e:
            self.logs.record(page.user_id, "comment_reply", STATUS_FAILED,
                             duration_ms=elapsed_ms(start), incoming=incoming,
                             outgoing={**verdict, "error": str(e)})
            raise

        reply = result.text.strip()
        replied = bool(reply)
        if deliver and reply:
            replied = bool(self.facebook.reply_to_comment(comment_id, reply, token))
        logger.info("Comment %s replied: %s (provider=%s)", comment_id, replied, result.provider.value)

        processing_time = elapsed_ms(start)
        self.logs.record(
            page.user_id, "comment_reply", STATUS_SUCCESS if replied else STATUS_FAILED,
            duration_ms=processing_time, incoming=incoming,
            outgoing={**verdict, "aiResponse": reply, "provider": result.provider.value},
        )

        return AgentResult(
            success=replied,
            reply=reply or None,
            provider=result.provider.value,
            processing_time=processing_time,
            reason=None if replied else (REASON_NOT_DELIVERED if reply else REASON_EMPTY_REPLY),
            action="reply_comment",
            sentiment=analysis.sentiment.value,
            suggested_reaction=analysis.suggested_reaction.value,
        )

    # =================================================================
    #  POSTBACKS
    # =================================================================

    def process_postback(self, event: PostbackEvent) -> None:
        """Button clicks are only recorded."""
        page = self.pages.get_page_config(event.page_id)
        if not page:
            logger.info("Postback on unconfigured page %s - ignoring", event.page_id)
            return

        logger.info("Postback from %s on page %s: %s", event.sender_id, event.page_id, event.payload)
        self.logs.record(page.user_id, "postback_received", STATUS_SUCCESS, incoming={
            "senderId": event.sender_id,
            "pageId": event.page_id,
            "payload": event.payload,
            "timestamp": event.timestamp,
        }, outgoing={"status": "logged"})

    # =================================================================
    #  HELPERS
    # =================================================================

    @staticmethod
    def _skip(reason: str, start: float) -> AgentResult:
        logger.info("Skipping: %s", reason)
        return AgentResult(success=False, reason=reason, processing_time=elapsed_ms(start))


def _conversation_id(conversation: Optional[dict]) -> Optional[str]:
    conversation_id = (conversation or {}).get("id")
    return str(conversation_id) if conversation_id is not None else None
