"""Shared pytest fixtures.

Provides:
- FakeSupabase: in-memory stand-in for the supabase-py query builder
- FakeFacebook: records every Graph API action instead of sending it
- FakeAdapter: scripted AI backend for the gateway
- A TestClient wired to all of the above through dependency overrides
"""

import copy
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.dependencies import get_orchestrator, get_order_service, get_settings
from app.errors import AIProviderError
from app.models.agent_models import ProviderKind
from app.services.conversation_service import ConversationService
from app.services.credential_service import CredentialService
from app.services.execution_log_service import ExecutionLogService
from app.services.facebook_service import ActionResult
from app.services.llm_client import AIGateway
from app.services.orchestrator_service import AutomationOrchestrator
from app.services.order_service import OrderService
from app.services.page_config_service import PageConfigService

PAGE_ID = "page-1"
OWNER_ID = "owner-1"
SENDER_ID = "user-1"
PAGE_TOKEN = "page-token"


# ============================================================================
# Fake Supabase
# ============================================================================


@dataclass
class FakeResponse:
    data: List[dict]


class FakeQuery:
    """Chainable query over one in-memory table. Mirrors the calls the services make."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.action = "select"
        self.values: Optional[dict] = None
        self.filters = []
        self.max_rows: Optional[int] = None
        self.order_by = None

    def select(self, *_columns):
        self.action = "select"
        return self

    def insert(self, values: dict):
        self.action = "insert"
        self.values = values
        return self

    def update(self, values: dict):
        self.action = "update"
        self.values = values
        return self

    def eq(self, column: str, value: Any):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def is_(self, column: str, value: str):
        assert value == "null"
        self.filters.append(lambda row: row.get(column) is None)
        return self

    def limit(self, count: int):
        self.max_rows = count
        return self

    def order(self, column: str, desc: bool = False):
        self.order_by = (column, desc)
        return self

    def _matches(self, row: dict) -> bool:
        return all(check(row) for check in self.filters)

    def execute(self) -> FakeResponse:
        if self.table in self.db.failing_tables:
            raise RuntimeError(f"{self.table} unavailable")

        rows = self.db.tables.setdefault(self.table, [])

        if self.action == "insert":
            row = {"id": str(uuid.uuid4()), "created_at": f"t{len(rows):04d}", **copy.deepcopy(self.values)}
            rows.append(row)
            return FakeResponse([copy.deepcopy(row)])

        if self.action == "update":
            matched = [row for row in rows if self._matches(row)]
            for row in matched:
                row.update(copy.deepcopy(self.values))
            return FakeResponse(copy.deepcopy(matched))

        matched = [copy.deepcopy(row) for row in rows if self._matches(row)]
        if self.order_by:
            column, desc = self.order_by
            matched.sort(key=lambda row: row.get(column) or "", reverse=desc)
        if self.max_rows is not None:
            matched = matched[:self.max_rows]
        return FakeResponse(matched)


class FakeSupabase:

    def __init__(self):
        self.tables: Dict[str, List[dict]] = {}
        self.failing_tables = set()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rows(self, name: str) -> List[dict]:
        return self.tables.get(name, [])

    def seed(self, name: str, **row) -> dict:
        row.setdefault("id", str(uuid.uuid4()))
        self.tables.setdefault(name, []).append(row)
        return row


# ============================================================================
# Fake platform and AI
# ============================================================================


class FakeFacebook:
    """Records (action, args) for every Graph call. Set `failing` to make actions fail."""

    def __init__(self):
        self.calls = []
        self.failing = set()
        self.profile = {"name": "Rahim"}

    def _record(self, action: str, *args) -> ActionResult:
        self.calls.append((action, args))
        if action in self.failing:
            return ActionResult(ok=False, error="boom")
        return ActionResult(ok=True)

    def actions(self) -> List[str]:
        return [action for action, _ in self.calls]

    def send_message(self, page_id, recipient_id, message, access_token):
        return self._record("send_message", page_id, recipient_id, message, access_token)

    def reply_to_comment(self, comment_id, message, access_token):
        return self._record("reply_to_comment", comment_id, message, access_token)

    def react_to_comment(self, comment_id, reaction, access_token):
        return self._record("react_to_comment", comment_id, reaction, access_token)

    def hide_comment(self, comment_id, access_token):
        return self._record("hide_comment", comment_id, access_token)

    def mark_seen(self, page_id, sender_id, access_token):
        return self._record("mark_seen", page_id, sender_id, access_token)

    def set_typing(self, page_id, sender_id, access_token, on=True):
        return self._record("typing_on" if on else "typing_off", page_id, sender_id, access_token)

    def get_sender_profile(self, sender_id, access_token):
        self.calls.append(("get_sender_profile", (sender_id, access_token)))
        return self.profile


@dataclass
class FakeAdapter:
    provider: ProviderKind
    reply: str = "ঠিক আছে!"
    error: Optional[str] = None
    calls: list = field(default_factory=list)

    def complete(self, messages, credential, has_media=False):
        self.calls.append({"messages": messages, "credential": credential, "has_media": has_media})
        if self.error:
            raise AIProviderError(self.provider.value, self.error)
        return self.reply


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def settings() -> Settings:
    return Settings(
        facebook_app_secret=None,
        facebook_verify_token="verify-me",
        managed_ai_api_key="managed-key",
    )


@pytest.fixture
def db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def facebook() -> FakeFacebook:
    return FakeFacebook()


@pytest.fixture
def adapters() -> Dict[ProviderKind, FakeAdapter]:
    return {kind: FakeAdapter(kind) for kind in ProviderKind}


@pytest.fixture
def seed_page(db):
    """Seeds a configured page with its access token. Keyword overrides go into the page_memory row."""

    def _seed(page_id: str = PAGE_ID, token: Optional[str] = PAGE_TOKEN, **overrides) -> dict:
        row = {
            "page_id": page_id,
            "user_id": OWNER_ID,
            "page_name": "Test Shop",
            "business_description": "শাড়ির দোকান",
            "products_summary": "জামদানি শাড়ি ৳2500",
            "is_ai_enabled": True,
            "auto_like_comments": True,
            "auto_reply_comments": True,
            "hide_negative_comments": True,
            "selling_rules": {},
            "behavior_rules": {},
            "payment_rules": {},
            "delivery_rules": {},
        }
        row.update(overrides)
        db.seed("page_memory", **row)
        if token:
            db.seed("connected_accounts", external_id=page_id, platform="facebook", access_token=token)
        return row

    return _seed


@pytest.fixture
def seed_owner_key(db):
    """Seeds the owner's own AI provider settings."""

    def _seed(api_key: str = "sk-owner", provider: Optional[str] = "openai", **overrides) -> dict:
        row = {
            "user_id": OWNER_ID,
            "use_admin_ai": False,
            "is_active": True,
            "provider": provider,
            "api_key_encrypted": api_key,
        }
        row.update(overrides)
        return db.seed("ai_provider_settings", **row)

    return _seed


@pytest.fixture
def orchestrator(db, facebook, adapters, settings) -> AutomationOrchestrator:
    return AutomationOrchestrator(
        page_config_service=PageConfigService(db),
        credential_service=CredentialService(db),
        ai_gateway=AIGateway(settings, adapters=adapters),
        facebook_service=facebook,
        conversation_service=ConversationService(db, facebook_service=facebook),
        execution_log_service=ExecutionLogService(db),
    )


@pytest.fixture
def client(settings, orchestrator, db):
    from main import app

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_order_service] = lambda: OrderService(db)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
