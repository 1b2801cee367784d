"""Configuration management using pydantic-settings"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal
import json


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # API Settings
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    api_title: str = "sketchmatch - Draw a Sales Pattern"

    # CORS Settings
    cors_origins: str = '["http://localhost:8080", "http://127.0.0.1:8080"]'

    # Matching Settings
    resample_point_count: int = 20
    top_k: int = 10
    min_draw_points: int = 5
    min_support_periods: int = 5
    match_quality_scale: float = 20.0
    dtw_metric: Literal["abs", "squared"] = "abs"
    search_workers: int = 1  # 1이면 동기 처리

    # Data Preparation Settings
    data_dir: str = "data"
    time_frame: Literal["monthly", "weekly"] = "monthly"
    metric: Literal["sales", "profit"] = "sales"

    # Rate Limiting
    rate_limit_ingest: str = "5/minute"
    rate_limit_similar: str = "20/minute"

    # Log Level
    log_level: str = "INFO"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from JSON string"""
        try:
            return json.loads(self.cors_origins)
        except json.JSONDecodeError:
            return ["http://localhost:8080"]


# Global settings instance
settings = Settings()
