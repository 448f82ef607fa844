"""
Runtime settings read from the environment (.env supported).
Everything the pipeline needs from the deployment lives here so services
receive it explicitly instead of calling os.getenv on their own.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


@dataclass(frozen=True)
class Settings:
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None

    # Facebook app
    facebook_app_secret: Optional[str] = None
    facebook_verify_token: Optional[str] = None
    graph_api_version: str = "v18.0"

    # Managed AI gateway (OpenAI-compatible)
    managed_ai_api_key: Optional[str] = None
    managed_ai_base_url: str = "https://ai.gateway.lovable.dev/v1"
    managed_model: str = "openai/gpt-4o-mini"
    managed_media_model: str = "openai/gpt-4o"

    openai_model: str = "gpt-4o-mini"
    openai_media_model: str = "gpt-4o"
    gemini_model: str = "gemini-1.5-flash"
    gemini_media_model: str = "gemini-1.5-pro"

    http_timeout_seconds: float = 15.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            supabase_url=_env("SUPABASE_URL"),
            supabase_key=_env("SUPABASE_SERVICE_ROLE_KEY"),
            facebook_app_secret=_env("FACEBOOK_APP_SECRET"),
            facebook_verify_token=_env("FACEBOOK_VERIFY_TOKEN"),
            graph_api_version=_env("GRAPH_API_VERSION", "v18.0"),
            managed_ai_api_key=_env("MANAGED_AI_API_KEY"),
            managed_ai_base_url=_env("MANAGED_AI_BASE_URL", "https://ai.gateway.lovable.dev/v1"),
            managed_model=_env("MANAGED_MODEL", "openai/gpt-4o-mini"),
            managed_media_model=_env("MANAGED_MEDIA_MODEL", "openai/gpt-4o"),
            openai_model=_env("OPENAI_MODEL", "gpt-4o-mini"),
            openai_media_model=_env("OPENAI_MEDIA_MODEL", "gpt-4o"),
            gemini_model=_env("GEMINI_MODEL", "gemini-1.5-flash"),
            gemini_media_model=_env("GEMINI_MEDIA_MODEL", "gemini-1.5-pro"),
            http_timeout_seconds=float(_env("HTTP_TIMEOUT_SECONDS", "15")),
            log_level=_env("LOG_LEVEL", "INFO").upper(),
        )
