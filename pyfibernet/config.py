"""
Configuration Management for pyFiberNet

All settings come from environment variables (a .env file is loaded by the
CLI through python-dotenv).

Environment Variables:

    Device Management (GenieACS NBI):
        FN_ACS_URL           - ACS NBI base URL (default: "http://localhost:7557")
        FN_ACS_USERNAME      - NBI basic auth user (default: none)
        FN_ACS_PASSWORD      - NBI basic auth password (default: none)
        FN_ACS_TIMEOUT       - Seconds per ACS request (default: 10)
        FN_DEDUPE_BY_MAC     - Drop duplicate connected-device records by MAC "yes"/"no" (default: "no")

    Status Sources:
        FN_STATUS_URL        - Status page template with {service_key}
                               (default: "https://downdetector.com.br/fora-do-ar/{service_key}/")
        FN_STATUS_TIMEOUT    - Seconds per status page request (default: 10)
        FN_STATUS_TTL        - Seconds a status stays fresh in cache (default: 300)
        FN_REFRESH_INTERVAL  - Seconds between scheduled full refreshes (default: 900)
        FN_REPORTS_API_KEY   - Reports API key; switches the primary source to the API (default: none)
        FN_REPORTS_API_URL   - Reports API base URL (default: "https://downdetectorapi.com")
        GEMINI_API_KEY       - AI fallback credential; fallback disabled if unset (default: none)
        FN_AI_MODEL          - AI fallback model (default: "gemini-2.0-flash")
        FN_AI_TIMEOUT        - Seconds per AI request (default: 15)

    General:
        FN_POOL_MAXSIZE      - HTTP connection pool size (default: 10)
        FN_DEBUG             - Enable debug logging "yes"/"no" (default: "no")

Tracked Services:

    export FN_SERVICES='[
      {"key": "netflix", "name": "Netflix"},
      {"key": "whatsapp-messenger", "name": "WhatsApp", "aliases": ["whats", "zap"]}
    ]'

    Without FN_SERVICES (or if it does not parse) the built-in list in
    DEFAULT_SERVICES is used. Adding a service is a configuration change.

Accessing Configuration:

    from pyfibernet.config import load_settings

    settings = load_settings()
    ttl = settings.status_ttl
    services = settings.services
"""
import json
import logging
import os
from typing import List, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings

from pyfibernet.exceptions import InvalidConfigurationParameter
from pyfibernet.status.models import TrackedService

log = logging.getLogger(__name__)

DEFAULT_SERVICES = [
    {"key": "discord", "name": "Discord"},
    {"key": "netflix", "name": "Netflix"},
    {"key": "youtube", "name": "YouTube", "aliases": ["yt"]},
    {"key": "instagram", "name": "Instagram", "aliases": ["insta"]},
    {"key": "facebook", "name": "Facebook", "aliases": ["face", "fb"]},
    {"key": "whatsapp-messenger", "name": "WhatsApp", "aliases": ["whatsapp", "whats", "zap"]},
    {"key": "tiktok", "name": "TikTok"},
    {"key": "roblox", "name": "Roblox"},
    {"key": "nubank", "name": "Nubank"},
    {"key": "banco-inter", "name": "Inter"},
]


class Settings(BaseSettings):
    """Application settings."""

    # Device management
    acs_url: str = Field(default="http://localhost:7557", alias="FN_ACS_URL")
    acs_username: Optional[str] = Field(default=None, alias="FN_ACS_USERNAME")
    acs_password: Optional[str] = Field(default=None, alias="FN_ACS_PASSWORD")
    acs_timeout: int = Field(default=10, alias="FN_ACS_TIMEOUT")
    dedupe_by_mac: bool = Field(default=False, alias="FN_DEDUPE_BY_MAC")

    # Status sources
    status_url: str = Field(default="https://downdetector.com.br/fora-do-ar/{service_key}/", alias="FN_STATUS_URL")
    status_timeout: int = Field(default=10, alias="FN_STATUS_TIMEOUT")
    status_ttl: int = Field(default=300, alias="FN_STATUS_TTL")
    refresh_interval: int = Field(default=900, alias="FN_REFRESH_INTERVAL")
    reports_api_key: Optional[str] = Field(default=None, alias="FN_REPORTS_API_KEY")
    reports_api_url: str = Field(default="https://downdetectorapi.com", alias="FN_REPORTS_API_URL")
    gemini_api_key: Optional[str] = Field(default=None, alias="GEMINI_API_KEY")
    ai_model: str = Field(default="gemini-2.0-flash", alias="FN_AI_MODEL")
    ai_timeout: int = Field(default=15, alias="FN_AI_TIMEOUT")

    # General
    pool_maxsize: int = Field(default=10, alias="FN_POOL_MAXSIZE")
    debug: bool = Field(default=False, alias="FN_DEBUG")

    # Tracked services
    services: List[TrackedService] = Field(default_factory=list)

    @property
    def ai_fallback_enabled(self) -> bool:
        return bool(self.gemini_api_key)

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
        "populate_by_name": True,
    }

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._validate()
        if not self.services:
            self._initialize_services()

    def _validate(self):
        for name in ('acs_timeout', 'status_timeout', 'status_ttl', 'refresh_interval', 'ai_timeout'):
            if getattr(self, name) <= 0:
                raise InvalidConfigurationParameter(f"{name} must be positive (got {getattr(self, name)})")
        if self.pool_maxsize < 0:
            raise InvalidConfigurationParameter("pool_maxsize must not be negative")
        if '{service_key}' not in self.status_url:
            raise InvalidConfigurationParameter("FN_STATUS_URL must contain '{service_key}'")

    def _initialize_services(self):
        """Initialize the tracked-service registry from FN_SERVICES or the built-in list."""
        services_json = os.getenv("FN_SERVICES")
        if services_json:
            try:
                services_data = json.loads(services_json)
                self.services = [TrackedService(**svc) for svc in services_data]
                return
            except (ValueError, TypeError, ValidationError) as e:
                log.error(f"Error parsing FN_SERVICES: {e} - using built-in service list")
        self.services = [TrackedService(**svc) for svc in DEFAULT_SERVICES]


def load_settings(**overrides) -> Settings:
    """Build Settings from the environment; keyword overrides use field names."""
    try:
        return Settings(**overrides)
    except ValidationError as e:
        raise InvalidConfigurationParameter(str(e))
