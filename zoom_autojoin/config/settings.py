"""
Configuration settings for the Zoom auto-join engine.
Covers join scheduling, tab muting, browser launch and the API server.
"""

from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dateutil import tz


class JoinSettings(BaseSettings):
    """Auto-join engine configuration."""
    model_config = SettingsConfigDict(env_prefix="AUTOJOIN_", env_file=".env", extra="ignore")

    default_display_name: str = Field(default="User", description="Display name when none is supplied")
    join_url_base: str = Field(default="https://zoom.us/wc/join", description="Zoom web client join URL")

    # Retry schedule
    tick_interval_ms: int = Field(default=500, description="Steady polling interval (ms)")
    fixed_retry_offsets_ms: List[int] = Field(
        default=[2000, 3000, 4000, 5000, 8000, 12000, 18000],
        description="Extra forced ticks, as offsets from session start (ms)"
    )
    hard_timeout_ms: int = Field(default=30000, description="Give up this long after start, regardless of progress (ms)")
    observe_dom_mutations: bool = Field(default=True, description="Tick on DOM mutations")
    mutation_throttle_ms: int = Field(default=50, description="Coalesce mutation notifications (ms)")

    # Detection strategies
    strategy_file: Optional[str] = Field(
        default=None,
        description="JSON file overriding detection strategies per target"
    )


class MuteSettings(BaseSettings):
    """Tab audio muting configuration."""
    model_config = SettingsConfigDict(env_prefix="MUTE_", env_file=".env", extra="ignore")

    enabled: bool = Field(default=True, description="Send the mute shortcut after opening the meeting")
    shortcut: str = Field(default="Control+M", description="Browser tab mute shortcut")
    offsets_ms: List[int] = Field(default=[1000, 2000, 3000], description="Attempt offsets from start (ms)")


class BrowserSettings(BaseSettings):
    """Browser launch configuration."""
    model_config = SettingsConfigDict(env_prefix="BROWSER_", env_file=".env", extra="ignore")

    headless: bool = Field(default=False, description="Run Chromium headless")
    cdp_endpoint: Optional[str] = Field(
        default=None,
        description="Attach to a running browser over CDP instead of launching one"
    )
    user_agent: str = Field(
        default="Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
                "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        description="User agent for new contexts"
    )
    navigation_timeout_ms: int = Field(default=30000, description="Page navigation timeout (ms)")


class ServerSettings(BaseSettings):
    """HTTP API configuration."""
    model_config = SettingsConfigDict(env_prefix="SERVER_", env_file=".env", extra="ignore")

    host: str = Field(default="127.0.0.1", description="Bind host")
    port: int = Field(default=8000, description="Bind port")


class Settings(BaseSettings):
    """Main application settings."""
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

    # Nested settings
    join: JoinSettings = Field(default_factory=JoinSettings)
    mute: MuteSettings = Field(default_factory=MuteSettings)
    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    # Application settings
    project_name: str = Field(default="Zoom Auto-Join", description="API title")
    version: str = Field(default="1.0.0", description="API version")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    log_to_file: bool = Field(default=True, description="Write rotating log files under logs/")
    timezone: str = Field(default="auto", description="Timezone for event timestamps (or 'auto')")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @property
    def tz_info(self):
        """Get timezone info (auto-detected if 'auto')."""
        if self.timezone.lower() == "auto":
            return tz.tzlocal()
        zone = tz.gettz(self.timezone)
        return zone if zone is not None else tz.UTC


# Global settings instance
settings = Settings()
