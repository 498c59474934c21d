"""Configuration management for the Booster Job Board bot"""

import os
import logging
from typing import List, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Local runs keep secrets in .env; deployed environments set real variables
load_dotenv()


class ConfigurationError(Exception):
    """Raised when required bot configuration is missing or malformed"""


def _optional_int(env_var: str) -> Optional[int]:
    """Read a Discord snowflake from the environment, None when absent or invalid"""
    value = os.getenv(env_var, "").strip()
    if not value:
        return None
    if not value.isdigit():
        logger.error(f"❌ {env_var} must be a numeric Discord id, got {value!r}")
        return None
    return int(value)


def _bounded_int(env_var: str, default: int, min_val: int, max_val: int) -> int:
    """Read an integer setting and clamp it to a safe range"""
    raw = os.getenv(env_var, str(default)).strip()
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"⚠️ Invalid {env_var}={raw!r}, using default {default}")
        return default
    if value < min_val or value > max_val:
        clamped = max(min_val, min(value, max_val))
        logger.warning(f"⚠️ {env_var}={value} outside [{min_val}, {max_val}], using {clamped}")
        return clamped
    return value


class Config:
    """Application configuration"""

    # Bot credential
    DISCORD_TOKEN = os.getenv("DISCORD_TOKEN")

    # Channel wiring
    BOOSTER_CHANNEL_ID = _optional_int("BOOSTER_CHANNEL_ID")
    LOG_CHANNEL_ID = _optional_int("LOG_CHANNEL_ID")
    TICKET_CATEGORY_ID = _optional_int("TICKET_CATEGORY_ID")

    # Recovery replays at most this many log channel messages (newest first)
    LOG_REPLAY_LIMIT = _bounded_int("LOG_REPLAY_LIMIT", default=1000, min_val=1, max_val=10000)

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper().strip()

    REQUIRED_SETTINGS = (
        "DISCORD_TOKEN",
        "BOOSTER_CHANNEL_ID",
        "LOG_CHANNEL_ID",
        "TICKET_CATEGORY_ID",
    )

    @staticmethod
    def missing_settings() -> List[str]:
        """Names of required settings that are not configured"""
        return [name for name in Config.REQUIRED_SETTINGS if not getattr(Config, name)]

    @staticmethod
    def validate_bot_configuration():
        """Validate bot configuration and provide helpful error messages"""
        missing = Config.missing_settings()
        if missing:
            error_msg = (
                "❌ Bot configuration error!\n\n"
                f"Missing or invalid environment variables: {', '.join(missing)}\n"
                "Channel and category ids must be numeric Discord ids."
            )
            logger.error(error_msg)
            raise ConfigurationError(error_msg)
        return True

    @staticmethod
    def log_environment_config():
        """Log current configuration for debugging (never the token)"""
        logger.info("🔧 Bot Configuration:")
        logger.info(f"   Booster channel: {Config.BOOSTER_CHANNEL_ID}")
        logger.info(f"   Log channel: {Config.LOG_CHANNEL_ID}")
        logger.info(f"   Ticket category: {Config.TICKET_CATEGORY_ID}")
        logger.info(f"   Log replay limit: {Config.LOG_REPLAY_LIMIT} messages")
        logger.info(f"   Token configured: {'yes' if Config.DISCORD_TOKEN else 'no'}")
