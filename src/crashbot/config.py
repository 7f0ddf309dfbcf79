"""Configuration for crashbot.

All configuration is loaded from environment variables.
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CrashbotConfig:
    """Crashbot configuration loaded from environment."""

    # Database
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "crashbot"
    db_user: str = "crashbot"
    db_password: str = ""

    # Issue store backend: 'postgres' or 'memory'
    store_backend: str = "postgres"

    # Claude
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    anthropic_max_tokens: int = 1024
    llm_timeout: float = 60.0

    # Rule file override (packaged FiveM knowledge base when unset)
    rules_file: Optional[str] = None

    # Notifications
    discord_webhook_url: str = ""

    @classmethod
    def from_env(cls) -> "CrashbotConfig":
        """Load configuration from environment variables."""
        return cls(
            db_host=os.environ.get("CRASHBOT_DB_HOST", "localhost"),
            db_port=int(os.environ.get("CRASHBOT_DB_PORT", "5432")),
            db_name=os.environ.get("CRASHBOT_DB_NAME", "crashbot"),
            db_user=os.environ.get("CRASHBOT_DB_USER", "crashbot"),
            db_password=os.environ.get("CRASHBOT_DB_PASSWORD", ""),
            store_backend=os.environ.get("CRASHBOT_STORE", "postgres").lower(),
            anthropic_api_key=os.environ.get("ANTHROPIC_API_KEY", ""),
            anthropic_model=os.environ.get("CRASHBOT_MODEL", "claude-sonnet-4-20250514"),
            anthropic_max_tokens=int(os.environ.get("CRASHBOT_MAX_TOKENS", "1024")),
            llm_timeout=float(os.environ.get("CRASHBOT_LLM_TIMEOUT", "60")),
            rules_file=os.environ.get("CRASHBOT_RULES_FILE") or None,
            discord_webhook_url=os.environ.get("DISCORD_WEBHOOK_URL", ""),
        )


# Global config instance
config = CrashbotConfig.from_env()
