"""
Configuration management using Pydantic Settings.
Loads configuration from environment variables with validation.
"""
from pathlib import Path
from dotenv import load_dotenv
from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional

# Load .env file into os.environ so all nested BaseSettings pick up values
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path)


class ExporterSettings(BaseSettings):
    """Scrape loop and exposition configuration"""
    refresh_interval: int = Field(default=120, gt=0)
    addr: str = Field(default=":9183")
    metrics_prefix: str = Field(default="kos")
    cloud_conf: Optional[str] = Field(default=None)
    backoff_initial_seconds: float = Field(default=1.0, gt=0)
    backoff_max_seconds: float = Field(default=3600.0, gt=0)

    class Config:
        env_prefix = "KOSMOO_"


class KubernetesSettings(BaseSettings):
    """Kubernetes client configuration"""
    kubeconfig: Optional[str] = Field(default=None)

    class Config:
        env_prefix = ""


class LoggingSettings(BaseSettings):
    """Logging configuration"""
    level: str = Field(default="INFO")
    format: str = Field(default="json")

    class Config:
        env_prefix = "LOG_"


class Settings(BaseSettings):
    """Main settings aggregating all configuration sections"""
    exporter: ExporterSettings = Field(default_factory=ExporterSettings)
    kubernetes: KubernetesSettings = Field(default_factory=KubernetesSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    class Config:
        extra = "ignore"


# Singleton instance - import this in other modules
try:
    settings = Settings()
except Exception as e:
    # A malformed variable should not break imports; exporter.py refuses to start instead
    print(f"Warning: Could not load settings: {e}")
    settings = None
