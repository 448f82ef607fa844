"""
AI Provider Gateway.

Three interchangeable backends behind one call:
- openai:  ChatOpenAI with the owner's key (optional base URL / model)
- google:  ChatGoogleGenerativeAI; all system content is hoisted into a single
           system instruction and assistant turns go out as the vendor's
           "model" role
- managed: OpenAI-compatible managed gateway (ChatOpenAI + base_url)

A failure of the selected backend triggers exactly one fallback to the
managed backend. There is no retry of the same backend.
"""

import logging
from typing import Dict, List, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from app.config import Settings
from app.errors import AIProviderError
from app.models.agent_models import AICredential, AIResult, ProviderKind

logger = logging.getLogger(__name__)

MAX_OUTPUT_TOKENS = 2048
TEMPERATURE = 0.7

_ROLE_TO_MESSAGE = {
    "system": SystemMessage,
    "user": HumanMessage,
    "assistant": AIMessage,
}


def to_langchain_messages(messages: List[Dict[str, str]], merge_system: bool = False) -> List[BaseMessage]:
    """
    Converts role/content dicts to LangChain messages. With merge_system every
    system entry is folded, in order, into one leading SystemMessage.
    """
    if merge_system:
        system_text = "\n\n".join(m["content"] for m in messages if m["role"] == "system" and m["content"])
        rest = [m for m in messages if m["role"] != "system"]
        head = [SystemMessage(content=system_text)] if system_text else []
        return head + to_langchain_messages(rest)

    converted = []
    for m in messages:
        message_cls = _ROLE_TO_MESSAGE.get(m["role"], HumanMessage)
        converted.append(message_cls(content=m["content"]))
    return converted


def _content_text(message) -> str:
    """Text of a chat model reply; Gemini may return a list of parts."""
    content = getattr(message, "content", "")
    if isinstance(content, str):
        return content
    parts = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


def _error_detail(error: Exception) -> str:
    """Upstream response body when the client library exposes it."""
    response = getattr(error, "response", None)
    body = getattr(response, "text", None)
    if body:
        return body
    return str(error)


class ChatAdapter:
    """One AI backend. complete() returns the reply text or raises AIProviderError."""

    provider: ProviderKind

    def __init__(self, settings: Settings):
        self.settings = settings

    def build_model(self, credential: AICredential, has_media: bool):
        raise NotImplementedError

    def prepare(self, messages: List[Dict[str, str]]) -> List[BaseMessage]:
        return to_langchain_messages(messages)

    def complete(self, messages: List[Dict[str, str]], credential: AICredential, has_media: bool = False) -> str:
        model = self.build_model(credential, has_media)
        try:
            reply = model.invoke(self.prepare(messages))
        except Exception as e:
            raise AIProviderError(self.provider.value, _error_detail(e)) from e
        return _content_text(reply)


class OpenAIAdapter(ChatAdapter):
    provider = ProviderKind.OPENAI

    def build_model(self, credential: AICredential, has_media: bool):
        from langchain_openai import ChatOpenAI

        if not credential.api_key:
            raise AIProviderError(self.provider.value, "No OpenAI key")

        model_name = credential.model or (
            self.settings.openai_media_model if has_media else self.settings.openai_model
        )
        logger.info("Using OpenAI model: %s", model_name)
        return ChatOpenAI(
            model=model_name,
            api_key=credential.api_key,
            base_url=credential.base_url,
            max_tokens=MAX_OUTPUT_TOKENS,
            temperature=TEMPERATURE,
            max_retries=0,
            timeout=self.settings.http_timeout_seconds,
        )


class GoogleAdapter(ChatAdapter):
    provider = ProviderKind.GOOGLE

    def prepare(self, messages: List[Dict[str, str]]) -> List[BaseMessage]:
        return to_langchain_messages(messages, merge_system=True)

    def build_model(self, credential: AICredential, has_media: bool):
        from langchain_google_genai import ChatGoogleGenerativeAI

        if not credential.api_key:
            raise AIProviderError(self.provider.value, "No Google key")

        model_name = credential.model or (
            self.settings.gemini_media_model if has_media else self.settings.gemini_model
        )
        logger.info("Using Google model: %s", model_name)
        return ChatGoogleGenerativeAI(
            model=model_name,
            google_api_key=credential.api_key,
            max_output_tokens=MAX_OUTPUT_TOKENS,
            temperature=TEMPERATURE,
            max_retries=0,
            timeout=self.settings.http_timeout_seconds,
        )
class ManagedAdapter(ChatAdapter):
    """
    OpenAI-compatible managed gateway. Only platform keys are ever sent here:
    the stored managed key when the credential carries it, otherwise the
    deployment's MANAGED_AI_API_KEY.
    """
    provider = ProviderKind.MANAGED

    def build_model(self, credential: AICredential, has_media: bool):
        from langchain_openai import ChatOpenAI

        api_key = credential.api_key if credential.platform_key else self.settings.managed_ai_api_key
        if not api_key:
            raise AIProviderError(self.provider.value, "No managed AI key")

        model_name = self.settings.managed_media_model if has_media else self.settings.managed_model
        logger.info("Using managed model: %s", model_name)
        return ChatOpenAI(
            model=model_name,
            api_key=api_key,
            base_url=self.settings.managed_ai_base_url,
            max_tokens=MAX_OUTPUT_TOKENS,
            temperature=TEMPERATURE,
            max_retries=0,
            timeout=self.settings.http_timeout_seconds,
        )


def default_adapters(settings: Settings) -> Dict[ProviderKind, ChatAdapter]:
    return {
        ProviderKind.OPENAI: OpenAIAdapter(settings),
        ProviderKind.GOOGLE: GoogleAdapter(settings),
        ProviderKind.MANAGED: ManagedAdapter(settings),
    }


class AIGateway:

    def __init__(self, settings: Settings, adapters: Optional[Dict[ProviderKind, ChatAdapter]] = None):
        self.settings = settings
        self.adapters = adapters or default_adapters(settings)

    def call_ai(self, messages: List[Dict[str, str]], credential: AICredential, has_media: bool = False) -> AIResult:
        """
        Sends `messages` (system first) to the credential's provider.
        Returns the text and the provider that actually produced it.
        """
        provider = credential.provider
        if provider is ProviderKind.MANAGED and not credential.platform_key:
            # owner key with no supported backend: served by the fallback route directly
            logger.info("No backend for owner key, using managed AI")
            return self._fallback(messages, has_media)

        try:
            text = self.adapters[provider].complete(messages, credential, has_media)
            return AIResult(text=text, provider=provider)
        except Exception as e:
            if provider is ProviderKind.MANAGED:
                raise
            logger.error("%s AI failed, falling back to managed: %s", provider.value, e)

        return self._fallback(messages, has_media)

    def _fallback(self, messages: List[Dict[str, str]], has_media: bool) -> AIResult:
        fallback = AICredential(
            provider=ProviderKind.MANAGED,
            api_key=self.settings.managed_ai_api_key,
            platform_key=True,
        )
        text = self.adapters[ProviderKind.MANAGED].complete(messages, fallback, has_media)
        return AIResult(text=text, provider=ProviderKind.MANAGED)
