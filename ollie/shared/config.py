"""
Configuration management for Ollie.
Loads from config/ollie.yaml and environment variables.
"""

from pathlib import Path
from typing import Optional, Dict, Any
import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


DEMO_MESSAGE_LIMIT = 3


class DemoConfig(BaseSettings):
    """Anonymous demo conversation configuration."""
    message_limit: int = Field(default=DEMO_MESSAGE_LIMIT)
    min_typing_delay_ms: int = Field(default=500)
    max_typing_delay_ms: int = Field(default=1500)
    typing_ms_per_char: int = Field(default=10)
    limit_message_delay_ms: int = Field(default=800)

    model_config = SettingsConfigDict(env_prefix="DEMO_", extra="ignore")


class QuotaConfig(BaseSettings):
    """Demo quota persistence configuration."""
    storage_key: str = Field(default="orbit_demo_chat_count")
    window_hours: int = Field(default=24)

    model_config = SettingsConfigDict(env_prefix="QUOTA_", extra="ignore")


class ToolsConfig(BaseSettings):
    """Learning tool generation configuration."""
    flashcard_count: int = Field(default=5)
    quiz_question_count: int = Field(default=5)
    max_content_chars: int = Field(default=8000)
    # None disables the client-side timeout
    timeout_seconds: Optional[float] = Field(default=90.0)

    model_config = SettingsConfigDict(env_prefix="TOOLS_", extra="ignore")


class LLMConfig(BaseSettings):
    """LLM provider configuration."""
    provider: str = Field(default="openai")  # openai, anthropic
    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    anthropic_api_key: Optional[str] = Field(default=None, alias="ANTHROPIC_API_KEY")
    default_model: str = Field(default="gpt-4o-mini")
    image_model: str = Field(default="gpt-image-1")
    temperature: float = Field(default=0.7)
    max_tokens: int = Field(default=1500)
    history_messages: int = Field(default=10)

    model_config = SettingsConfigDict(env_prefix="LLM_", extra="ignore", populate_by_name=True)


class StorageConfig(BaseSettings):
    """Local key-value storage configuration."""
    db_path: Path = Field(default=Path("data/ollie.sqlite"))
    current_profile_key: str = Field(default="orbit_current_profile")
    children_key: str = Field(default="orbit_children")

    model_config = SettingsConfigDict(env_prefix="STORAGE_", extra="ignore")


class OllieSettings(BaseSettings):
    """Main Ollie configuration."""
    env: str = Field(default="dev", alias="OLLIE_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: Optional[Path] = Field(default=None, alias="LOG_FILE")

    # Sub-configurations
    demo: DemoConfig = Field(default_factory=DemoConfig)
    quota: QuotaConfig = Field(default_factory=QuotaConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="allow"
    )

    @classmethod
    def load_from_yaml(cls, config_path: Optional[Path] = None) -> "OllieSettings":
        """Load settings from YAML file and merge with environment variables."""
        if config_path is None:
            config_path = Path("config/ollie.yaml")

        config_dict: Dict[str, Any] = {}

        if config_path.exists():
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_data = yaml.safe_load(f) or {}
                config_dict = yaml_data.get("ollie", {})

        # Flatten demo.typing_delay.{min_ms,max_ms,per_char_ms} if present
        if "demo" in config_dict and isinstance(config_dict["demo"], dict):
            demo_cfg = dict(config_dict["demo"])
            typing_delay = demo_cfg.pop("typing_delay", None)
            if isinstance(typing_delay, dict):
                if "min_ms" in typing_delay:
                    demo_cfg["min_typing_delay_ms"] = typing_delay["min_ms"]
                if "max_ms" in typing_delay:
                    demo_cfg["max_typing_delay_ms"] = typing_delay["max_ms"]
                if "per_char_ms" in typing_delay:
                    demo_cfg["typing_ms_per_char"] = typing_delay["per_char_ms"]
            config_dict["demo"] = demo_cfg

        return cls(**config_dict)


# Global settings instance
_settings: Optional[OllieSettings] = None


def get_settings() -> OllieSettings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = OllieSettings.load_from_yaml()
    return _settings


# Alias for convenience
settings = get_settings()
