"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "AskMyNotes"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    # If database_url_override is set (e.g., for Neon with SSL), it takes precedence
    database_url_override: str | None = None
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "askmynotes"
    postgres_password: str = ""
    postgres_db: str = "askmynotes"

    @computed_field
    @property
    def database_url(self) -> str:
        """Get async database URL. Uses override if provided, otherwise constructs from parts."""
        if self.database_url_override:
            url = self.database_url_override
            # Replace scheme for async driver
            if url.startswith("postgresql://"):
                url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
            elif url.startswith("postgres://"):
                url = url.replace("postgres://", "postgresql+asyncpg://", 1)
            # asyncpg doesn't accept query params via URL
            if "?" in url:
                url = url.split("?")[0]
            return url
        return f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"

    @computed_field
    @property
    def database_url_sync(self) -> str:
        """Get sync database URL (for Alembic)."""
        if self.database_url_override:
            url = self.database_url_override
            if url.startswith("postgres://"):
                url = url.replace("postgres://", "postgresql://", 1)
            elif url.startswith("postgresql+asyncpg://"):
                url = url.replace("postgresql+asyncpg://", "postgresql://", 1)
            return url
        return f"postgresql://{self.postgres_user}:{self.postgres_password}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"

    # Connection pool
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # Auth / JWT
    jwt_secret_key: str  # Required - no default, must be set in .env
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7  # 7 days

    # Google OAuth
    google_client_id: str

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Set to true when frontend and backend are on different domains
    cookie_cross_domain: bool = False

    # Anthropic API (optional - chat degrades to a canned reply without it)
    anthropic_api_key: str | None = None

    # LLM Configuration
    llm_model: str = "claude-sonnet-4-20250514"
    llm_max_tokens: int = 2000
    llm_max_attempts: int = 3

    # Retrieval
    chunk_max_chars: int = Field(800, ge=1)
    retrieval_top_k: int = Field(5, ge=1)
    confidence_policy: Literal["strict", "lenient"] = "strict"
    max_context_chars: int = 20000
    verify_citations: bool = True

    # Study mode
    study_context_max_chars: int = 60000
    study_template_max_chunks: int = 20

    # Folders
    max_folders_per_user: int = 3

    # Uploads
    max_upload_size_bytes: int = 20 * 1024 * 1024  # 20MB

    # Hugging Face inference (speech)
    hf_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("hf_api_key", "huggingface_api_key"),
    )
    hf_stt_model: str = "openai/whisper-large-v3-turbo"
    hf_tts_model: str = "espnet/kan-bayashi_ljspeech_vits"
    hf_inference_base_url: str = "https://api-inference.huggingface.co/models"
    hf_timeout_seconds: float = 60.0


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def sanitize_error(error: Exception, *, generic_message: str = "An internal error occurred.") -> str:
    """
    Return a user-safe error message.

    In development, returns the full exception string for debugging.
    In staging/production, returns a generic message to avoid leaking internals.
    """
    settings = get_settings()
    if settings.environment == "development":
        return str(error)
    return generic_message
