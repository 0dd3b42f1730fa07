from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    log_level: str = "INFO"
    default_locale: str = "pt-BR"

    position_high_accuracy_timeout_sec: float = Field(default=20.0, gt=0)
    position_low_accuracy_timeout_sec: float = Field(default=15.0, gt=0)
    position_max_cache_age_sec: float = Field(default=0.0, ge=0)
    position_watchdog_sec: float = Field(default=25.0, gt=0)
    low_accuracy_threshold_m: float = Field(default=100.0, ge=0)

    routing_provider: Literal["osrm", "mock"] = "osrm"
    osrm_base_url: str = "https://router.project-osrm.org"
    osrm_profile: Literal["driving", "walking", "cycling", "foot", "bike", "car"] = "driving"
    route_request_timeout_sec: float = Field(default=30.0, gt=0)
    mock_walking_speed_m_s: float = Field(default=1.3, gt=0)

    speech_rate: float = Field(default=1.0, gt=0)

    @field_validator("osrm_base_url", mode="before")
    @classmethod
    def strip_base_url(cls, value: object) -> str:
        return str(value or "").strip().rstrip("/")

    @field_validator("default_locale", mode="before")
    @classmethod
    def normalize_locale(cls, value: object) -> str:
        tag = str(value or "").strip().replace("_", "-")
        return tag or "en"

    @model_validator(mode="after")
    def require_osrm_url(self) -> "Settings":
        if self.routing_provider == "osrm" and not self.osrm_base_url:
            raise ValueError("osrm_base_url must be set when routing_provider is 'osrm'")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
