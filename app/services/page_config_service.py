"""
PageConfigService: read-only lookups of per-page automation settings
(`page_memory`) and of the page access token (`connected_accounts`).
A missing row is a normal outcome, not an error.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from app.models.page_models import PageConfig
from app.services.supabase_client import first_row, get_supabase

logger = logging.getLogger(__name__)


class PageConfigService:

    def __init__(self, client=None):
        self.client = client if client is not None else get_supabase()

    def get_page_config(self, page_id: str) -> Optional[PageConfig]:
        """PageConfig for the page, or None if the page was never configured."""
        if not self.client:
            logger.error("Supabase client not initialized")
            return None

        response = self.client.table("page_memory") \
            .select("*") \
            .eq("page_id", page_id) \
            .limit(1) \
            .execute()

        row = first_row(response)
        if not row:
            logger.info("No page memory found for page %s", page_id)
            return None

        try:
            return PageConfig.model_validate(row)
        except ValidationError as e:
            logger.error("Invalid page memory for page %s: %s", page_id, e)
            return None

    def get_access_token(self, page_id: str, platform: str = "facebook") -> Optional[str]:
        """Page access token from the connected account, or None."""
        if not self.client:
            logger.error("Supabase client not initialized")
            return None

        response = self.client.table("connected_accounts") \
            .select("access_token") \
            .eq("external_id", page_id) \
            .eq("platform", platform) \
            .limit(1) \
            .execute()

        row = first_row(response)
        token = row.get("access_token") if row else None
        if not token:
            logger.info("No access token for page %s (%s)", page_id, platform)
            return None
        return token
