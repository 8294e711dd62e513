"""Settings and configuration management."""

import logging
from typing import Literal, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables or a .env file."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Topic Sources
    newsapi_api_key: Optional[str] = Field(None, description="NewsAPI key")

    # Text Generation
    generation_backend: Literal["gemini", "openrouter"] = Field(
        "gemini", description="Upstream used to write suggestions"
    )
    gemini_api_key: Optional[str] = Field(None, description="Gemini key")
    gemini_model: str = Field(
        "gemini-2.0-flash-exp", description="Gemini model for generateContent"
    )
    openrouter_api_key: Optional[str] = Field(None, description="OpenRouter")
    openrouter_model: str = Field(
        "openai/gpt-4o-mini", description="OpenRouter chat completion model"
    )

    # Image Search
    unsplash_api_key: Optional[str] = Field(None, description="Unsplash key")
    pexels_api_key: Optional[str] = Field(None, description="Pexels key")

    # Application Settings
    debug: bool = Field(False, description="Debug mode")
    log_level: str = Field("INFO", description="Log level")
    site_name: str = Field("NeuroBlog", description="Name used in content footers")
    default_author_id: str = Field(
        "507f1f77bcf86cd799439011",
        description="Author recorded on posts created by system callers",
    )
    database_path: str = Field("neuroblog.db", description="SQLite database file")

    # API Timeout Settings (in seconds)
    newsapi_timeout: float = Field(
        15.0, ge=3.0, le=60.0, description="NewsAPI request timeout in seconds"
    )
    unsplash_timeout: float = Field(
        10.0, ge=3.0, le=30.0, description="Unsplash API request timeout in seconds"
    )
    pexels_timeout: float = Field(
        8.0, ge=3.0, le=30.0, description="Pexels API request timeout in seconds"
    )

    # Generation Retry Settings
    generation_timeout: float = Field(
        30.0, ge=5.0, le=120.0, description="Per-attempt generation timeout in seconds"
    )
    generation_max_attempts: int = Field(
        3, ge=1, le=10, description="Maximum attempts against an overloaded upstream"
    )
    generation_backoff_base: float = Field(
        1.0, ge=0.0, le=30.0, description="First retry delay in seconds, doubled per attempt"
    )
    generation_backoff_cap: float = Field(
        10.0, ge=0.0, le=120.0, description="Upper bound for a single retry delay"
    )
    generation_temperature: float = Field(0.7, ge=0.0, le=2.0)
    generation_max_output_tokens: int = Field(2048, ge=64, le=8192)

    # Topic Fetch Settings
    topic_lookback_hours: int = Field(
        4, ge=1, le=72, description="How far back news providers are queried"
    )
    topic_page_size: int = Field(20, ge=1, le=100)
    topic_max_results: int = Field(
        10, ge=1, le=100, description="Maximum candidates kept per provider"
    )
    topic_min_title_length: int = Field(
        20, ge=0, le=200, description="Titles this short or shorter are discarded"
    )
    topic_description_max_length: int = Field(300, ge=50, le=2000)
    fallback_topic_count: int = Field(8, ge=1, le=50)

    # Generation Cycle Settings
    on_demand_max_suggestions: int = Field(10, ge=1, le=50)
    on_demand_pending_ceiling: int = Field(
        8, ge=1, le=500, description="Pending backlog at which on-demand runs skip"
    )
    on_demand_suggestion_window_hours: float = Field(2.0, gt=0)
    on_demand_post_window_hours: float = Field(4.0, gt=0)
    autonomous_max_suggestions: int = Field(1, ge=1, le=10)
    autonomous_pending_ceiling: int = Field(
        15, ge=1, le=500, description="Pending backlog at which scheduled runs skip"
    )
    autonomous_suggestion_window_hours: float = Field(3.0, gt=0)
    autonomous_post_window_hours: float = Field(6.0, gt=0)
    generated_title_window_hours: float = Field(
        6.0, gt=0, description="Window for re-checking AI-written titles"
    )

    # Scheduling
    auto_generation_interval: float = Field(
        300.0, ge=1.0, description="Seconds between autonomous generation cycles"
    )
    auto_generation_on_startup: bool = Field(
        False, description="Start the autonomous schedule when the web app starts"
    )

    # Content
    title_max_length: int = Field(75, ge=20, le=120)
    images_per_suggestion: int = Field(2, ge=1, le=6)
    pending_list_limit: int = Field(10, ge=1, le=100)

    @model_validator(mode="after")
    def check_backoff_bounds(self) -> "Settings":
        """Keep the backoff cap at or above the base delay."""
        if self.generation_backoff_cap < self.generation_backoff_base:
            logger.warning(
                "generation_backoff_cap is below generation_backoff_base - "
                "raising cap to match"
            )
            self.generation_backoff_cap = self.generation_backoff_base
        return self

    def generation_api_key(self) -> Optional[str]:
        """Return the key for the configured generation backend."""
        if self.generation_backend == "openrouter":
            return self.openrouter_api_key
        return self.gemini_api_key
