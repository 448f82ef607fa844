"""
CredentialService: decides which AI backend and key serve a given owner.

Order (first match wins):
1. owner opted into managed AI, managed AI globally enabled, managed key set
2. owner's own active provider settings with a stored key
3. unavailable
"""

import logging
from typing import Optional

from app.models.agent_models import AICredential, CredentialResolution, ProviderKind
from app.services.supabase_client import first_row, get_supabase

logger = logging.getLogger(__name__)

REASON_MANAGED_DISABLED = "Admin AI is disabled globally"
REASON_NOT_CONFIGURED = "No AI API configured. Please configure in Settings > AI."

# Row of `api_integrations` that holds the centrally managed key.
MANAGED_INTEGRATION = "openai"


def detect_provider(api_key: Optional[str]) -> ProviderKind:
    """
    Best-effort guess of the vendor from the key shape. Only used when the
    owner did not declare a provider (or declared an unknown one). Unknown
    shapes are served by the managed gateway with the deployment key.
    """
    if not api_key:
        return ProviderKind.MANAGED
    if api_key.startswith("sk-"):
        return ProviderKind.OPENAI
    if api_key.startswith("AIza"):
        return ProviderKind.GOOGLE
    return ProviderKind.MANAGED


class CredentialService:

    def __init__(self, client=None):
        self.client = client if client is not None else get_supabase()

    def _owner_settings(self, owner_id: str) -> Optional[dict]:
        response = self.client.table("ai_provider_settings") \
            .select("*") \
            .eq("user_id", owner_id) \
            .limit(1) \
            .execute()
        return first_row(response)

    def _managed_integration(self) -> Optional[dict]:
        response = self.client.table("api_integrations") \
            .select("is_enabled, api_key") \
            .eq("provider", MANAGED_INTEGRATION) \
            .limit(1) \
            .execute()
        return first_row(response)

    def resolve(self, owner_id: str) -> CredentialResolution:
        if not self.client:
            logger.error("Supabase client not initialized")
            return CredentialResolution(reason=REASON_NOT_CONFIGURED)

        owner = self._owner_settings(owner_id) or {}
        wants_managed = bool(owner.get("use_admin_ai"))

        if wants_managed:
            managed = self._managed_integration() or {}
            if managed.get("is_enabled") and managed.get("api_key"):
                logger.info("Owner %s uses managed AI", owner_id)
                return CredentialResolution(credential=AICredential(
                    provider=ProviderKind.MANAGED,
                    api_key=managed["api_key"],
                    platform_key=True,
                ))
            logger.info("Owner %s opted into managed AI but it is unavailable", owner_id)

        own_key = owner.get("api_key_encrypted")
        if owner.get("is_active") and own_key:
            provider = ProviderKind.parse(owner.get("provider")) or detect_provider(own_key)
            logger.info("Owner %s uses own AI key (provider=%s)", owner_id, provider.value)
            return CredentialResolution(credential=AICredential(
                provider=provider,
                api_key=own_key,
                base_url=owner.get("base_url") or None,
                model=owner.get("model_name") or None,
            ))

        reason = REASON_MANAGED_DISABLED if wants_managed else REASON_NOT_CONFIGURED
        logger.info("No usable AI credential for owner %s: %s", owner_id, reason)
        return CredentialResolution(reason=reason)
