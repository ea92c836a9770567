from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

SEGMENTATION_MODES = ("default", "headings", "bullets", "newlines")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Job Filter"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 8787
    log_level: str = "INFO"
    build_sha: str = "local"

    database_url: str = "sqlite:///./data/jobfilter.db"
    data_dir: Path = Path("./data")

    import_low_quality_item_floor: int = 20
    import_strategy_priority: str = ",".join(SEGMENTATION_MODES)
    import_preview_max_lines: int = 40
    import_max_file_size_bytes: int = 5 * 1024 * 1024

    claim_auto_approve_confidence: float = 0.9

    cors_origins: str = "http://127.0.0.1:8787"

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("import_strategy_priority")
    @classmethod
    def validate_strategy_priority(cls, value: str) -> str:
        modes = [mode.strip() for mode in value.split(",") if mode.strip()]
        if sorted(modes) != sorted(SEGMENTATION_MODES):
            raise ValueError(f"import_strategy_priority must order exactly {list(SEGMENTATION_MODES)}")
        return ",".join(modes)

    @field_validator("claim_auto_approve_confidence")
    @classmethod
    def validate_confidence(cls, value: float) -> float:
        if value < 0 or value > 1:
            raise ValueError("claim_auto_approve_confidence must be between 0 and 1")
        return value

    @property
    def strategy_priority_list(self) -> list[str]:
        return [mode.strip() for mode in self.import_strategy_priority.split(",") if mode.strip()]

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
