from pydantic import Field
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # Application
    APP_NAME: str = "LAN Scan"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # arp-scan invocation
    ARP_SCAN_BINARY: str = "arp-scan"
    SCAN_TIMEOUT: float = Field(5, gt=0)  # seconds, passed to arp-scan as -t in ms
    SCAN_WATCHDOG_BUFFER: float = Field(10, ge=0)  # extra seconds before the process is terminated
    SCAN_KILL_GRACE: float = Field(5, ge=0)  # seconds between SIGTERM and SIGKILL

    # Request defaults
    DEFAULT_INTERFACE: Optional[str] = None
    DEFAULT_SUBNET: Optional[str] = None

    # CORS
    CORS_ORIGINS: list[str] = ["*"]

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
