from dotenv import load_dotenv
load_dotenv()

from functools import lru_cache

from app.config import Settings
from app.services.conversation_service import ConversationService
from app.services.credential_service import CredentialService
from app.services.execution_log_service import ExecutionLogService
from app.services.facebook_service import FacebookService
from app.services.llm_client import AIGateway
from app.services.orchestrator_service import AutomationOrchestrator
from app.services.order_service import OrderService
from app.services.page_config_service import PageConfigService
from app.services.supabase_client import get_supabase


# Singletons, built on first use.
# Tests replace them through app.dependency_overrides.

@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()


@lru_cache
def get_orchestrator() -> AutomationOrchestrator:
    settings = get_settings()
    client = get_supabase(settings)
    facebook_service = FacebookService(settings)

    return AutomationOrchestrator(
        page_config_service=PageConfigService(client),
        credential_service=CredentialService(client),
        ai_gateway=AIGateway(settings),
        facebook_service=facebook_service,
        conversation_service=ConversationService(client, facebook_service=facebook_service),
        execution_log_service=ExecutionLogService(client),
    )


@lru_cache
def get_order_service() -> OrderService:
    return OrderService(get_supabase(get_settings()))
