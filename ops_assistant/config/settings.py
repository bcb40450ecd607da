"""Configuration management for the operations assistant."""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _sanitize_secret(value: str) -> str:
    """Remove BOM characters and whitespace from secrets.

    Secrets mounted from files or pasted into .env files may carry a BOM
    that breaks HTTP headers downstream.
    """
    if not value:
        return value
    return value.lstrip("\ufeff").strip()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Google AI API
    google_api_key: str = ""

    @field_validator("google_api_key", "fallback_ticket_url", mode="after")
    @classmethod
    def sanitize_secrets(cls, value: str) -> str:
        """Remove BOM and whitespace from secret values."""
        return _sanitize_secret(value)

    # Model settings
    llm_model: str = "gemini-2.0-flash"
    embedding_model: str = "gemini-embedding-001"
    llm_temperature: float = 0.3
    llm_max_tokens: int = 2048

    # Data sources
    data_dir: Path = Path("./data")
    knowledge_base_file: str = "knowledge_base.json"
    wiki_file: str = "wiki_pages.json"
    context_file: str = "context_documents.json"
    harvested_file: str = "harvested_solutions.json"
    feedback_db_path: Path = Path("./data/feedback.db")

    # Retrieval
    rrf_k: int = 60
    retrieval_top_k: int = 5
    semantic_min_similarity: float = 0.25
    parallel_similarity_threshold: int = 100
    relevance_threshold: float = 0.65
    keyword_only_confidence: float = 0.7

    # Context assembly
    max_items_per_tier: int = 5
    max_context_chars: int = 12000
    max_item_chars: int = 1500

    # Query understanding
    ambiguity_min_chars: int = 15
    ambiguity_max_tokens: int = 2
    max_query_length: int = 2000
    llm_routing_enabled: bool = True

    # Caching
    cache_enabled: bool = True
    exact_cache_ttl_seconds: float = 30 * 60
    exact_cache_sliding_seconds: float = 10 * 60
    semantic_cache_threshold: float = 0.95
    max_semantic_cache_entries: int = 500
    max_exact_cache_entries: int = 500

    # Timeouts and retries (seconds)
    embedding_timeout_seconds: float = 10.0
    source_timeout_seconds: float = 8.0
    llm_timeout_seconds: float = 60.0
    router_timeout_seconds: float = 5.0
    llm_max_retries: int = 3
    llm_retry_backoff_seconds: float = 1.0

    # Escalation
    fallback_ticket_url: str = "https://servicedesk.example.com/servicedesk/customer/portal/3"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("relevance_threshold", "semantic_cache_threshold", mode="after")
    @classmethod
    def validate_unit_interval(cls, value: float) -> float:
        """Similarity thresholds live in (0, 1]."""
        if not 0 < value <= 1:
            raise ValueError("threshold must be in (0, 1]")
        return value

    @field_validator(
        "rrf_k",
        "retrieval_top_k",
        "max_items_per_tier",
        "max_context_chars",
        "max_item_chars",
        "max_semantic_cache_entries",
        "max_exact_cache_entries",
        "llm_max_retries",
        mode="after",
    )
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("value must be positive")
        return value

    def source_path(self, file_name: str) -> Path:
        """Resolve a document source file inside the data directory."""
        return self.data_dir / file_name

    def ensure_directories(self) -> None:
        """Create all required directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.feedback_db_path.parent.mkdir(parents=True, exist_ok=True)


# Global settings instance
settings = Settings()
