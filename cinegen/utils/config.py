"""Configuration management for the generation studio."""

import os
from pathlib import Path
from typing import List, Optional
import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from dotenv import load_dotenv

from .errors import ConfigurationError
from .logger import get_logger

logger = get_logger(__name__)

# Load environment variables
load_dotenv()

DEFAULT_MODELS_PATH = Path(__file__).resolve().parent.parent / "config" / "models.yaml"


class EnhancementConfig(BaseModel):
    """Configuration for prompt enhancement."""
    model: str = "gemini-2.5-flash"


class ImageConfig(BaseModel):
    """Configuration for still image generation."""
    model: str = "gemini-3-pro-image-preview"
    aspect_ratio: str = "16:9"
    image_size: str = "2K"


class VideoConfig(BaseModel):
    """Configuration for video generation and operation polling."""
    model: str = "veo-3.1-fast-generate-preview"
    aspect_ratio: str = "16:9"
    resolution: str = "1080p"
    number_of_videos: int = 1
    default_mime_type: str = "image/png"
    poll_interval_seconds: float = 5.0


class Config(BaseModel):
    """Main application configuration."""

    model_config = ConfigDict(populate_by_name=True)

    # API Keys
    gemini_api_key: Optional[str] = Field(default=None, alias="GEMINI_API_KEY")
    fallback_api_key: Optional[str] = Field(default=None, alias="API_KEY")

    # Application Settings
    app_env: str = Field(default="development", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Backend
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        alias="GEMINI_BASE_URL",
    )
    timeout_gemini_seconds: float = Field(default=120.0, alias="TIMEOUT_GEMINI_SECONDS")

    # Unset means poll until the backend reports done
    video_poll_timeout_seconds: Optional[float] = Field(
        default=None, alias="VIDEO_POLL_TIMEOUT_SECONDS"
    )

    # Cross-origin callers allowed to reach the API; empty means same-origin only
    cors_allow_origins: List[str] = Field(default_factory=list, alias="CORS_ALLOW_ORIGINS")

    # Model Configuration
    enhancement: EnhancementConfig = Field(default_factory=EnhancementConfig)
    image: ImageConfig = Field(default_factory=ImageConfig)
    video: VideoConfig = Field(default_factory=VideoConfig)

    @field_validator("video_poll_timeout_seconds", mode="before")
    @classmethod
    def _blank_timeout_is_unbounded(cls, value):
        if value in ("", "0", 0, None):
            return None
        return value

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @property
    def api_key(self) -> Optional[str]:
        """Initial credential: GEMINI_API_KEY wins over API_KEY."""
        return self.gemini_api_key or self.fallback_api_key or None


# Global config instance
_config: Optional[Config] = None


def load_config(models_path: Optional[Path] = None) -> Config:
    """
    Load configuration from environment and the models YAML file.

    Args:
        models_path: Override for config/models.yaml

    Returns:
        Config instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    global _config

    explicit_path = models_path is not None
    models_path = Path(models_path) if explicit_path else DEFAULT_MODELS_PATH

    try:
        models_config = {}
        if models_path.exists():
            with open(models_path, "r", encoding="utf-8") as f:
                models_config = yaml.safe_load(f) or {}
        elif explicit_path:
            raise ConfigurationError(f"models.yaml not found at {models_path}")
        else:
            logger.warning(
                "Bundled models.yaml missing, using built-in model defaults",
                extra={"path": str(models_path)}
            )

        config_data = {
            **os.environ,
            **models_config,
        }

        _config = Config(**config_data)

        logger.info(
            "Configuration loaded successfully",
            extra={
                "environment": _config.app_env,
                "enhancement_model": _config.enhancement.model,
                "image_model": _config.image.model,
                "video_model": _config.video.model,
                "api_key_present": _config.api_key is not None,
            }
        )

        return _config

    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Failed to load configuration: {e}")


def get_config() -> Config:
    """
    Get the current configuration instance.

    Raises:
        ConfigurationError: If config not loaded
    """
    if _config is None:
        raise ConfigurationError("Configuration not loaded. Call load_config() first.")
    return _config
