from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "cerberus"
    db_username: str = "cerberus"
    db_password: str = "secret"
    db_pool_max_size: int = 10
    db_connect_timeout_seconds: float = 10.0

    files_root: str = "/app/files"

    poll_interval_seconds: int = 10
    poll_batch_size: int = 10
    shutdown_grace_seconds: int = 5

    event_bus_backend: str = "redis"
    redis_url: str = "redis://localhost:6379/0"
    event_stream_prefix: str = "events"
    event_consumer_group: str = "artifact-worker"
    event_consumer_name: str = "worker-1"
    event_block_ms: int = 1000
    event_reconnect_seconds: int = 5

    pdf_engine: str = "pdfplumber"

    analysis_provider: str = "openai"
    analysis_api_key: str = ""
    analysis_model_name: str = "gpt-4o-mini"
    analysis_base_url: str | None = None
    analysis_timeout_seconds: int = 120
    analysis_temperature: float = 0.0
    analysis_max_content_chars: int = 100_000

    vision_api_key: str = ""
    vision_model_name: str = "gpt-4o-mini"
    vision_base_url: str | None = None
    vision_timeout_seconds: int = 120

    embeddings_api_key: str = ""
    embeddings_model_name: str = "text-embedding-3-small"
    embeddings_base_url: str | None = None
    embeddings_timeout_seconds: int = 60
    embeddings_max_chars: int = 24_000
