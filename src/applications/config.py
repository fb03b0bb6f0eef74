"""Board configuration using pydantic-settings.

This module defines the BoardSettings class that reads configuration from
environment variables with the APPLICATIONS_ prefix. ``database_url`` is
the only field without a default.
"""

from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.applications.events.emitter import EventSinkType


class BoardSettings(BaseSettings):
    """Application pipeline configuration from environment variables.

    All environment variables are prefixed with APPLICATIONS_ (e.g.,
    APPLICATIONS_DATABASE_URL). List fields take JSON, e.g.
    APPLICATIONS_EVENT_SINKS='["logging", "metrics"]'.

    Required fields:
    - database_url: PostgreSQL connection string for the application store
    """

    model_config = SettingsConfigDict(
        env_prefix="APPLICATIONS_",
        case_sensitive=False,
    )

    # -------------------------------------------------------------------------
    # Database Configuration
    # -------------------------------------------------------------------------
    database_url: str

    database_min_pool_size: int = 1

    database_max_pool_size: int = 5

    # -------------------------------------------------------------------------
    # Research Tracking (promotion bridge)
    # -------------------------------------------------------------------------
    # Base URL of the research-journal service; promotion is logged only
    # when unset
    research_api_url: Optional[str] = None

    research_api_token: Optional[str] = None

    promotion_timeout_seconds: float = 10.0

    # -------------------------------------------------------------------------
    # Interaction Timing
    # -------------------------------------------------------------------------
    # How long a confirmed rejection can be undone
    undo_window_seconds: float = 5.0

    # Debounce for notes typed on a card
    quick_notes_debounce_ms: int = 500

    # Debounce for notes typed in the detail panel
    panel_notes_debounce_ms: int = 1500

    # Pointer travel before a press becomes a drag
    drag_activation_distance_px: float = 8.0

    # -------------------------------------------------------------------------
    # Observability
    # -------------------------------------------------------------------------
    event_sinks: List[EventSinkType] = [EventSinkType.LOGGING]

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate that database URL is not empty and has valid format."""
        if not v or not v.strip():
            raise ValueError("database_url cannot be empty")
        if not v.startswith(("postgresql://", "postgres://")):
            raise ValueError(
                "database_url must start with postgresql:// or postgres://"
            )
        return v

    @field_validator("database_min_pool_size", "database_max_pool_size")
    @classmethod
    def validate_pool_size(cls, v: int) -> int:
        """Validate that pool sizes are positive."""
        if v < 1:
            raise ValueError("pool sizes must be at least 1")
        return v

    @field_validator("database_max_pool_size")
    @classmethod
    def validate_pool_bounds(cls, v: int, info) -> int:
        """Validate that the maximum pool size is not below the minimum."""
        minimum = info.data.get("database_min_pool_size")
        if minimum is not None and v < minimum:
            raise ValueError(
                "database_max_pool_size cannot be smaller than database_min_pool_size"
            )
        return v

    @field_validator("research_api_url")
    @classmethod
    def validate_research_api_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate that the research API URL, when set, is an HTTP URL."""
        if v is None or not v.strip():
            return None
        if not v.startswith(("http://", "https://")):
            raise ValueError("research_api_url must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("promotion_timeout_seconds", "undo_window_seconds")
    @classmethod
    def validate_positive_seconds(cls, v: float) -> float:
        """Validate that durations are positive."""
        if v <= 0:
            raise ValueError("durations must be greater than 0")
        return v

    @field_validator("quick_notes_debounce_ms", "panel_notes_debounce_ms")
    @classmethod
    def validate_debounce(cls, v: int) -> int:
        """Validate that debounce delays are not negative."""
        if v < 0:
            raise ValueError("debounce delays cannot be negative")
        return v

    @field_validator("drag_activation_distance_px")
    @classmethod
    def validate_activation_distance(cls, v: float) -> float:
        """Validate that the activation distance is not negative."""
        if v < 0:
            raise ValueError("drag_activation_distance_px cannot be negative")
        return v

    @property
    def quick_notes_delay_seconds(self) -> float:
        return self.quick_notes_debounce_ms / 1000

    @property
    def panel_notes_delay_seconds(self) -> float:
        return self.panel_notes_debounce_ms / 1000


def get_settings() -> BoardSettings:
    """Create and return a BoardSettings instance.

    Returns:
        BoardSettings: Configured settings instance.

    Raises:
        pydantic.ValidationError: If required fields are missing or invalid.
    """
    return BoardSettings()
