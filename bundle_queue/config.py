"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    # HTTP
    api_port: int = 8001
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]
    max_upload_bytes: int = 20 * 1024 * 1024

    # Logging
    log_level: str = "INFO"

    # Bundle processing
    bundle_dir: Optional[str] = None  # defaults to <tempdir>/bundle_queue
    bundle_sniff_bytes: int = 64
    max_bundle_unpacked_bytes: int = 200 * 1024 * 1024

    # Queue
    shutdown_grace_seconds: float = 30.0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
