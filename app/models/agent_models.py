from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ProviderKind(str, Enum):
    OPENAI = "openai"
    GOOGLE = "google"
    MANAGED = "managed"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["ProviderKind"]:
        """Maps a stored provider name to a kind. Unknown names give None."""
        aliases = {"gemini": cls.GOOGLE, "lovable": cls.MANAGED}
        name = (value or "").strip().lower()
        if name in aliases:
            return aliases[name]
        try:
            return cls(name)
        except ValueError:
            return None


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
    INQUIRY = "inquiry"


class Reaction(str, Enum):
    LIKE = "LIKE"
    LOVE = "LOVE"
    NONE = "NONE"


@dataclass(frozen=True)
class AICredential:
    """
    Key and backend for one AI request. `platform_key` marks the centrally
    managed key from `api_integrations`; any other key belongs to the owner
    and is never sent to the managed gateway.
    """
    provider: ProviderKind
    api_key: Optional[str]
    base_url: Optional[str] = None
    model: Optional[str] = None
    platform_key: bool = False


@dataclass(frozen=True)
class CredentialResolution:
    """Result of credential resolution. `credential` is None when unavailable."""
    credential: Optional[AICredential] = None
    reason: str = ""

    @property
    def available(self) -> bool:
        return self.credential is not None


@dataclass(frozen=True)
class AIResult:
    text: str
    provider: ProviderKind


@dataclass(frozen=True)
class SentimentResult:
    sentiment: Sentiment
    should_reply: bool
    suggested_reaction: Reaction


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AgentRequest(_CamelModel):
    """Body of the direct invocation endpoint."""
    page_id: Optional[str] = None
    sender_id: Optional[str] = None
    message_text: str = ""
    message_type: str = "text"
    attachments: List[dict] = Field(default_factory=list)
    is_comment: bool = False
    comment_id: Optional[str] = None
    post_id: Optional[str] = None
    sender_name: Optional[str] = None

    @property
    def has_media(self) -> bool:
        return self.message_type != "text" or bool(self.attachments)


class AgentResult(_CamelModel):
    """Outcome of one pipeline run. Serialized with camelCase keys."""
    success: bool
    reply: Optional[str] = None
    provider: Optional[str] = None
    conversation_id: Optional[str] = None
    processing_time: int = 0
    reason: Optional[str] = None
    action: Optional[str] = None
    sentiment: Optional[str] = None
    suggested_reaction: Optional[str] = None

    def to_response(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
