"""Application configuration using pydantic-settings."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be configured via environment variables or a .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================================================
    # Application Settings
    # ========================================================================
    app_name: str = Field(default="Video Generation Pipeline", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    log_file: Optional[str] = Field(default=None, description="Rotating log file path (unset logs to stderr only)")

    # ========================================================================
    # Draft Generation (LLM) Settings
    # ========================================================================
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    draft_model: str = Field(default="gpt-4o-mini", description="LLM model used to draft compositions")
    draft_temperature: float = Field(
        default=0.4, description="Sampling temperature for composition drafts (default: 0.4)"
    )

    # ========================================================================
    # Render Service Settings
    # ========================================================================
    render_api_url: str = Field(
        default="https://api.creatomate.com/v1", description="Render service base URL"
    )
    render_api_key: Optional[str] = Field(default=None, description="Render service API key")
    render_template_id: Optional[str] = Field(
        default=None, description="Render service template reference sent with every submission"
    )
    render_frame_rate: int = Field(default=30, description="Output frame rate (default: 30)")
    render_scale: float = Field(default=1.0, description="Render scale factor (default: 1.0)")
    render_request_timeout_seconds: float = Field(
        default=120.0, description="HTTP timeout for render service calls in seconds (default: 120)"
    )
    webhook_base_url: Optional[str] = Field(
        default=None,
        description="Public base URL of this service; render status pushes are sent to <base>/<webhook_path>",
    )
    webhook_path: str = Field(default="/webhooks/render", description="Webhook route for render pushes")

    # ========================================================================
    # Composition Settings
    # ========================================================================
    video_width: int = Field(default=1080, description="Composition width in pixels (vertical format)")
    video_height: int = Field(default=1920, description="Composition height in pixels (vertical format)")
    output_format: str = Field(default="mp4", description="Output container format")

    # ========================================================================
    # Script / Clip Validation Policy
    # ========================================================================
    seconds_per_word: float = Field(default=0.4, description="Spoken seconds per script word")
    duration_tolerance: float = Field(
        default=1.05, description="Multiplier applied to duration estimates before plan checks"
    )
    min_clip_duration_seconds: float = Field(
        default=3.0, description="Minimum duration of every selected source clip"
    )
    free_plan_max_seconds: int = Field(default=30, description="Maximum script duration on the free plan")
    creator_plan_max_seconds: int = Field(default=60, description="Maximum script duration on the creator plan")
    pro_plan_max_seconds: int = Field(default=120, description="Maximum script duration on the pro plan")

    # ========================================================================
    # Render Status Polling
    # ========================================================================
    poll_interval_seconds: float = Field(default=5.0, description="Seconds between status polls (default: 5)")
    poll_max_attempts: int = Field(
        default=60, description="Maximum status polls before timing out (default: 60, i.e. 5 minutes)"
    )

    # ========================================================================
    # Storage Settings
    # ========================================================================
    storage_path: str = Field(default="storage/renders", description="Storage path for render jobs")


# Global settings instance
settings = Settings()
