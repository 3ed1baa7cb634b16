"""
Runtime configuration.

Values can be overridden through environment variables prefixed with CHESS_ (e.g. CHESS_THINKING_TIME_MAX=0.1)
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Tunables of the computer opponent, the presentation delays, and the persistence layer."""

    # --- opponent ---
    easy_random_rate: float = Field(default=0.6, ge=0.0, le=1.0)
    max_evaluated_moves: int = Field(default=15, ge=1)

    # --- delays (seconds) ---
    opponent_move_delay: float = Field(default=0.5, ge=0.0)
    thinking_time_min: float = Field(default=1.0, ge=0.0)
    thinking_time_max: float = Field(default=2.5, ge=0.0)
    terminal_notice_delay: float = Field(default=0.5, ge=0.0)

    # --- persistence ---
    database_url: str = "sqlite:///chess_games.db"
    database_echo: bool = False

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="CHESS_")

    @model_validator(mode="after")
    def check_thinking_window(self) -> "EngineSettings":
        if self.thinking_time_max < self.thinking_time_min:
            raise ValueError(
                f"thinking_time_max ({self.thinking_time_max}) must not be smaller than thinking_time_min ({self.thinking_time_min})"
            )
        return self


settings = EngineSettings()
