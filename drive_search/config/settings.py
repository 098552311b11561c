from pydantic import model_validator
from pydantic_settings import BaseSettings

from ..core.errors import ConfigurationError


class Settings(BaseSettings):

    # Document source: "drive" or "local"
    document_source: str = "drive"
    drive_root_id: str = ""
    drive_access_token: str = ""
    drive_api_url: str = "https://www.googleapis.com/drive/v3"
    docs_path: str = "./docs"

    # Embeddings: "sentence_transformers" or "openai"
    embedding_backend: str = "sentence_transformers"
    embedding_model: str = "intfloat/multilingual-e5-base"
    embedding_base_url: str = "http://localhost:11434/v1"
    embedding_api_key: str = "ollama"

    llm_base_url: str = "http://localhost:11434/v1"
    llm_model: str = "qwen2.5:7b"
    llm_max_tokens: int = 256
    llm_temperature: float = 0.0
    understanding_enabled: bool = True

    chunk_size: int = 1000
    chunk_overlap: int = 200
    max_chars_per_document: int = 200_000

    index_ttl_seconds: int = 900
    embed_concurrency: int = 4

    top_k_chunks: int = 40
    top_k_docs: int = 10
    default_threshold: float = 0.35
    min_threshold: float = 0.1
    max_threshold: float = 0.9
    snippet_length: int = 240

    # Timeouts (seconds)
    source_timeout: float = 30.0
    embed_timeout: float = 20.0
    understanding_timeout: float = 8.0
    list_timeout: float = 600.0
    health_timeout: float = 120.0

    query_max_length: int = 200

    class Config:
        env_file = ".env"
        env_prefix = "DRIVE_SEARCH_"
        extra = "ignore"

    @model_validator(mode="after")
    def _check_ranges(self) -> "Settings":
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if not 0 <= self.chunk_overlap < self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be in [0, chunk_size={self.chunk_size})"
            )
        if self.min_threshold > self.max_threshold:
            raise ValueError("min_threshold must not exceed max_threshold")
        if self.embed_concurrency < 1:
            raise ValueError("embed_concurrency must be at least 1")
        return self

    @property
    def root_id(self) -> str:
        """Root container for the configured source."""
        return self.drive_root_id if self.document_source == "drive" else self.docs_path

    def require_root_id(self) -> str:
        """Return the root container id or raise ConfigurationError."""
        root_id = self.root_id
        if not root_id:
            raise ConfigurationError(
                "DRIVE_SEARCH_DRIVE_ROOT_ID is required when document_source=drive"
            )
        return root_id


settings = Settings()
