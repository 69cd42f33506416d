"""Application configuration via Pydantic BaseSettings."""

from __future__ import annotations

import json
from enum import Enum
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    development = "development"
    staging = "staging"
    production = "production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Table settings are all optional: a missing token or table id does not
    prevent startup, the endpoints that need it answer 500 instead.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Environment
    ENVIRONMENT: Environment = Environment.development

    # Logging
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 4000

    # CORS
    CORS_ALLOWED_ORIGINS: str = "*"

    # Feishu app credentials (tenant_access_token)
    FEISHU_APP_ID: str = ""
    FEISHU_APP_SECRET: str = ""
    FEISHU_BASE_URL: str = "https://open.feishu.cn/open-apis"
    VENDOR_TIMEOUT_SECONDS: float = 30.0

    # Customer table (legacy single-table settings)
    FEISHU_BITABLE_APP_TOKEN: str = ""
    FEISHU_BITABLE_TABLE_ID: str = ""

    # Project table -- app token falls back to FEISHU_BITABLE_APP_TOKEN
    FEISHU_PROJECT_APP_TOKEN: str = ""
    FEISHU_BITABLE_PROJECT_TABLE_ID: str = ""

    # Deal (立项) table -- app token falls back to the project app token
    FEISHU_DEAL_APP_TOKEN: str = ""
    FEISHU_BITABLE_DEAL_TABLE_ID: str = ""

    # Kanban / dashboard placeholders
    FEISHU_KANBAN_APP_TOKEN: str = ""
    FEISHU_KANBAN_BOARD_ID: str = ""
    FEISHU_DASHBOARD_EMBED_URL: str = ""

    # Static person name -> user id overrides, JSON object string
    FEISHU_PERSON_ID_MAP: str = ""
    FEISHU_USER_ID_MAP: str = ""

    # Caches and scans
    FIELD_MAP_TTL_SECONDS: float = 60.0
    PERSON_INDEX_TTL_SECONDS: float = 300.0
    SCAN_PAGE_SIZE: int = 200

    # Loose date parsing: spreadsheet serial window (exclusive on both ends)
    DATE_SERIAL_MIN: float = 20000
    DATE_SERIAL_MAX: float = 60000

    @property
    def customer_app_token(self) -> str:
        return self.FEISHU_BITABLE_APP_TOKEN

    @property
    def customer_table_id(self) -> str:
        return self.FEISHU_BITABLE_TABLE_ID

    @property
    def project_app_token(self) -> str:
        return self.FEISHU_PROJECT_APP_TOKEN or self.FEISHU_BITABLE_APP_TOKEN

    @property
    def project_table_id(self) -> str:
        return self.FEISHU_BITABLE_PROJECT_TABLE_ID

    @property
    def deal_app_token(self) -> str:
        return self.FEISHU_DEAL_APP_TOKEN or self.project_app_token

    @property
    def deal_table_id(self) -> str:
        return self.FEISHU_BITABLE_DEAL_TABLE_ID

    @property
    def kanban_app_token(self) -> str:
        return self.FEISHU_KANBAN_APP_TOKEN or self.FEISHU_BITABLE_APP_TOKEN

    def get_person_id_map(self) -> dict[str, str]:
        """Parse the static person override map.

        Malformed JSON, or JSON that is not an object, yields an empty map.
        """
        raw = self.FEISHU_PERSON_ID_MAP or self.FEISHU_USER_ID_MAP
        if not raw:
            return {}
        try:
            parsed = json.loads(raw)
        except ValueError:
            return {}
        if not isinstance(parsed, dict):
            return {}
        return {
            str(name).strip(): str(user_id).strip()
            for name, user_id in parsed.items()
            if user_id is not None
        }


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()
