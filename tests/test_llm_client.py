"""Tests for the AI provider gateway: message conversion and managed fallback."""

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from app.errors import AIProviderError
from app.models.agent_models import AICredential, ProviderKind
from app.services.credential_service import CredentialService
from app.services.llm_client import (
    AIGateway,
    ChatAdapter,
    GoogleAdapter,
    ManagedAdapter,
    OpenAIAdapter,
    _content_text,
    to_langchain_messages,
)
from conftest import OWNER_ID

MESSAGES = [
    {"role": "system", "content": "persona"},
    {"role": "system", "content": "comment rules"},
    {"role": "user", "content": "hi"},
    {"role": "assistant", "content": "hello"},
    {"role": "user", "content": "price?"},
]


class TestMessageConversion:

    def test_roles_map_to_message_types(self):
        converted = to_langchain_messages(MESSAGES)
        assert [type(m) for m in converted] == [SystemMessage, SystemMessage, HumanMessage, AIMessage, HumanMessage]

    def test_merge_system_hoists_all_system_content(self):
        converted = to_langchain_messages(MESSAGES, merge_system=True)
        assert isinstance(converted[0], SystemMessage)
        assert converted[0].content == "persona\n\ncomment rules"
        assert [type(m) for m in converted[1:]] == [HumanMessage, AIMessage, HumanMessage]

    def test_content_parts_joined(self):
        reply = AIMessage(content=[{"type": "text", "text": "ঠিক "}, {"type": "text", "text": "আছে"}])
        assert _content_text(reply) == "ঠিক আছে"


class TestGateway:

    def test_selected_provider_used(self, settings, adapters):
        gateway = AIGateway(settings, adapters=adapters)
        result = gateway.call_ai(MESSAGES, AICredential(ProviderKind.OPENAI, "sk-1"), has_media=True)

        assert result.provider is ProviderKind.OPENAI
        assert result.text == "ঠিক আছে!"
        assert adapters[ProviderKind.OPENAI].calls[0]["has_media"] is True
        assert adapters[ProviderKind.MANAGED].calls == []

    def test_failure_falls_back_to_managed_once(self, settings, adapters):
        adapters[ProviderKind.GOOGLE].error = "quota exceeded"
        adapters[ProviderKind.MANAGED].reply = "fallback reply"
        gateway = AIGateway(settings, adapters=adapters)

        result = gateway.call_ai(MESSAGES, AICredential(ProviderKind.GOOGLE, "AIza1"))

        assert result.provider is ProviderKind.MANAGED
        assert result.text == "fallback reply"
        assert len(adapters[ProviderKind.GOOGLE].calls) == 1
        fallback_call = adapters[ProviderKind.MANAGED].calls[0]
        assert fallback_call["credential"].api_key == "managed-key"
        assert fallback_call["messages"] == MESSAGES

    def test_fallback_failure_propagates(self, settings, adapters):
        adapters[ProviderKind.OPENAI].error = "401"
        adapters[ProviderKind.MANAGED].error = "503"
        gateway = AIGateway(settings, adapters=adapters)

        with pytest.raises(AIProviderError) as excinfo:
            gateway.call_ai(MESSAGES, AICredential(ProviderKind.OPENAI, "sk-1"))
        assert excinfo.value.provider == "managed"

    def test_managed_failure_not_retried(self, settings, adapters):
        adapters[ProviderKind.MANAGED].error = "gateway down"
        gateway = AIGateway(settings, adapters=adapters)

        with pytest.raises(AIProviderError):
            gateway.call_ai(MESSAGES, AICredential(ProviderKind.MANAGED, "managed-key", platform_key=True))
        assert len(adapters[ProviderKind.MANAGED].calls) == 1


class _ExplodingModel:
    def invoke(self, messages):
        raise RuntimeError("connection reset")


class _ExplodingAdapter(ChatAdapter):
    provider = ProviderKind.OPENAI

    def build_model(self, credential, has_media):
        return _ExplodingModel()


class TestChatAdapter:

    def test_upstream_error_wrapped(self, settings):
        with pytest.raises(AIProviderError, match="openai AI error: connection reset"):
            _ExplodingAdapter(settings).complete(MESSAGES, AICredential(ProviderKind.OPENAI, "sk-1"))


# ============================================================================
# Real adapters (LangChain chat model classes replaced by a recorder)
# ============================================================================


class _RecordingChatModel:
    """Stands in for ChatOpenAI / ChatGoogleGenerativeAI; keeps constructor kwargs."""

    rejected_keys = set()
    sent_keys = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs

    def invoke(self, messages):
        key = self.kwargs.get("api_key") or self.kwargs.get("google_api_key")
        type(self).sent_keys.append(key)
        if key in type(self).rejected_keys:
            raise RuntimeError("401 invalid key")
        return AIMessage(content=f"reply from {self.kwargs['model']}")


@pytest.fixture
def chat_models(monkeypatch):
    recorder = type("Recorder", (_RecordingChatModel,), {"rejected_keys": set(), "sent_keys": []})
    monkeypatch.setattr("langchain_openai.ChatOpenAI", recorder)
    monkeypatch.setattr("langchain_google_genai.ChatGoogleGenerativeAI", recorder)
    return recorder


class TestOpenAIAdapter:

    def test_model_by_media(self, settings, chat_models):
        adapter = OpenAIAdapter(settings)
        credential = AICredential(ProviderKind.OPENAI, "sk-owner")

        assert adapter.build_model(credential, has_media=False).kwargs["model"] == "gpt-4o-mini"
        assert adapter.build_model(credential, has_media=True).kwargs["model"] == "gpt-4o"

    def test_owner_model_key_and_base_url(self, settings, chat_models):
        credential = AICredential(ProviderKind.OPENAI, "sk-owner", base_url="https://proxy.example/v1", model="gpt-4.1")

        kwargs = OpenAIAdapter(settings).build_model(credential, has_media=True).kwargs

        assert kwargs["model"] == "gpt-4.1"
        assert kwargs["api_key"] == "sk-owner"
        assert kwargs["base_url"] == "https://proxy.example/v1"
        assert kwargs["max_tokens"] == 2048
        assert kwargs["temperature"] == 0.7
        assert kwargs["max_retries"] == 0


class TestGoogleAdapter:

    def test_model_by_media(self, settings, chat_models):
        adapter = GoogleAdapter(settings)
        credential = AICredential(ProviderKind.GOOGLE, "AIza-owner")

        assert adapter.build_model(credential, has_media=False).kwargs["model"] == "gemini-1.5-flash"
        assert adapter.build_model(credential, has_media=True).kwargs["model"] == "gemini-1.5-pro"
        assert adapter.build_model(credential, has_media=False).kwargs["google_api_key"] == "AIza-owner"

    def test_owner_model_overrides(self, settings, chat_models):
        credential = AICredential(ProviderKind.GOOGLE, "AIza-owner", model="gemini-2.0-flash")
        assert GoogleAdapter(settings).build_model(credential, has_media=True).kwargs["model"] == "gemini-2.0-flash"

    def test_prepare_hoists_system_messages(self, settings):
        prepared = GoogleAdapter(settings).prepare(MESSAGES)

        assert isinstance(prepared[0], SystemMessage)
        assert prepared[0].content == "persona\n\ncomment rules"
        assert [type(m) for m in prepared[1:]] == [HumanMessage, AIMessage, HumanMessage]
        assert [m.content for m in prepared[1:]] == ["hi", "hello", "price?"]


class TestManagedAdapter:

    def test_model_by_media_and_gateway_url(self, settings, chat_models):
        adapter = ManagedAdapter(settings)
        credential = AICredential(ProviderKind.MANAGED, "stored-platform-key", platform_key=True)

        cheap = adapter.build_model(credential, has_media=False).kwargs
        media = adapter.build_model(credential, has_media=True).kwargs

        assert (cheap["model"], media["model"]) == ("openai/gpt-4o-mini", "openai/gpt-4o")
        assert cheap["base_url"] == settings.managed_ai_base_url
        assert cheap["api_key"] == "stored-platform-key"

    def test_owner_key_never_sent_to_gateway(self, settings, chat_models):
        credential = AICredential(ProviderKind.MANAGED, "gsk_owner_groq_key", base_url="https://api.groq.com/openai/v1")

        kwargs = ManagedAdapter(settings).build_model(credential, has_media=False).kwargs

        assert kwargs["api_key"] == "managed-key"
        assert kwargs["base_url"] == settings.managed_ai_base_url


class TestGatewayWithRealAdapters:

    def test_unknown_owner_provider_served_with_deployment_key(self, db, settings, chat_models, seed_owner_key):
        """An owner key with an undeclared vendor is answered by managed AI using the platform key."""
        seed_owner_key(api_key="gsk_owner_groq_key", provider="groq")
        chat_models.rejected_keys.add("gsk_owner_groq_key")
        credential = CredentialService(db).resolve(OWNER_ID).credential

        result = AIGateway(settings).call_ai(MESSAGES, credential)

        assert result.provider is ProviderKind.MANAGED
        assert result.text == "reply from openai/gpt-4o-mini"
        assert chat_models.sent_keys == ["managed-key"]

    def test_rejected_owner_key_gets_single_fallback(self, db, settings, chat_models, seed_owner_key):
        seed_owner_key(api_key="sk-owner", provider="openai")
        chat_models.rejected_keys.add("sk-owner")
        credential = CredentialService(db).resolve(OWNER_ID).credential

        result = AIGateway(settings).call_ai(MESSAGES, credential)

        assert result.provider is ProviderKind.MANAGED
        assert chat_models.sent_keys == ["sk-owner", "managed-key"]

    def test_stored_platform_key_used_for_opted_in_owner(self, db, settings, chat_models):
        db.seed("ai_provider_settings", user_id=OWNER_ID, use_admin_ai=True)
        db.seed("api_integrations", provider="openai", is_enabled=True, api_key="stored-platform-key")
        credential = CredentialService(db).resolve(OWNER_ID).credential

        AIGateway(settings).call_ai(MESSAGES, credential)

        assert chat_models.sent_keys == ["stored-platform-key"]

    def test_failing_platform_request_not_retried(self, db, settings, chat_models):
        db.seed("ai_provider_settings", user_id=OWNER_ID, use_admin_ai=True)
        db.seed("api_integrations", provider="openai", is_enabled=True, api_key="stored-platform-key")
        chat_models.rejected_keys.add("stored-platform-key")
        credential = CredentialService(db).resolve(OWNER_ID).credential

        with pytest.raises(AIProviderError, match="managed AI error"):
            AIGateway(settings).call_ai(MESSAGES, credential)
        assert chat_models.sent_keys == ["stored-platform-key"]
