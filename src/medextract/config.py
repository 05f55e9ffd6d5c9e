"""Application settings loaded from environment variables."""

import logging

from pydantic_settings import BaseSettings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Settings(BaseSettings):
    """Central configuration — values come from .env or environment variables."""

    # Ollama
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.2-vision"

    # Object storage (signed URL recovery)
    aws_region: str = "ap-south-1"
    s3_bucket_name: str = "med-agent-scans"
    signed_url_expires_in: int = 3600

    # Document download
    http_timeout: float = 30.0
    max_document_bytes: int = 50 * 1024 * 1024

    # Logging
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Install a root handler for CLI and server entry points."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
    )
