"""Runtime configuration for mc-mission agents."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TRAINING_DIR = Path(__file__).resolve().parent / "data" / "training"


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_prefix="MC_MISSION_", env_file=".env", extra="ignore")

    app_name: str = "mc-mission"
    log_level: str = "INFO"
    agent_name: str = "unknown_agent"
    ledger_path: Path = Field(
        default=Path("bots") / "_shared" / "team_state.json",
        description="Shared task ledger file; point every agent process at the same path.",
    )
    training_dir: Path = Field(
        default=DEFAULT_TRAINING_DIR,
        description="Directory holding the per-category plan skeleton JSON files.",
    )
    summary_max_chars: int = 120
    furnace_cobblestone_threshold: int = 8
    block_search_radius: int = 32
    failure_escalation_threshold: int = 3
    ledger_write_retries: int = 3
    history_window: int = 3
    stop_sequence: str = "***"
    start_conversation_command: str = "startConversation"


settings = Settings()
