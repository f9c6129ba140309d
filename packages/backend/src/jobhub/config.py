"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with JOBHUB_ prefix.
No config files, just env vars (12-factor app style).

Learn: the dispatcher keeps no durable state, so the only knobs are the
server binding, CORS, logging and the WebSocket frame limit.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All app configuration. Set via JOBHUB_* env vars."""

    # Server
    environment: str = "development"
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "info"

    # CORS
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    # Largest accepted WebSocket frame. Encoded image payloads are big.
    max_message_bytes: int = Field(default=16 * 1024 * 1024, ge=1024)

    model_config = {"env_prefix": "JOBHUB_"}


# Singleton: import this everywhere
settings = Settings()
