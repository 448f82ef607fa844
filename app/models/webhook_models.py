"""
Shapes of the Facebook page webhook sub-events.
Each sub-event is validated on its own (see payload_service) so a malformed
event never takes its siblings down with it.
"""

from typing import List, Optional, Union

from pydantic import BaseModel, Field


class WebhookParty(BaseModel):
    id: str


class WebhookAttachment(BaseModel):
    type: Optional[str] = None
    payload: Optional[dict] = None


class WebhookMessage(BaseModel):
    mid: Optional[str] = None
    text: Optional[str] = None
    is_echo: bool = False
    attachments: List[WebhookAttachment] = Field(default_factory=list)


class WebhookPostback(BaseModel):
    title: Optional[str] = None
    payload: Optional[str] = None


class MessagingEvent(BaseModel):
    sender: WebhookParty
    recipient: Optional[WebhookParty] = None
    timestamp: Optional[int] = None
    message: Optional[WebhookMessage] = None
    postback: Optional[WebhookPostback] = None


class CommentAuthor(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None


class ChangeValue(BaseModel):
    item: Optional[str] = None
    verb: Optional[str] = None
    comment_id: Optional[str] = None
    post_id: Optional[str] = None
    parent_id: Optional[str] = None
    message: Optional[str] = None
    author: Optional[CommentAuthor] = Field(None, alias="from")
    created_time: Optional[Union[int, str]] = None


class ChangeEvent(BaseModel):
    field: str
    value: ChangeValue
