"""
Runtime configuration for proposal-copilot.

Values are read from environment variables prefixed with ``COPILOT_`` (or a
``.env`` file in the working directory) and can be overridden by passing
keyword arguments to :class:`CopilotSettings`.
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CopilotSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="COPILOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Chunking
    chunk_size: int = Field(default=1000, description="Chunk window size in characters")
    chunk_overlap: int = Field(default=200, description="Overlap between neighbouring chunks")

    # Vector search
    search_limit: int = Field(default=5, ge=1)
    search_threshold: float = Field(default=0.7, ge=-1.0, le=1.0)

    # Adaptive recall used by the dialogue
    retrieval_limit: int = Field(default=7, ge=1)
    retrieval_threshold: float = Field(default=0.55, ge=-1.0, le=1.0)
    retrieval_threshold_margin: float = Field(default=0.05, ge=0.0)
    retrieval_threshold_floor: float = Field(default=0.5, ge=-1.0, le=1.0)

    # Dialogue
    session_memory_ttl: float = Field(default=30 * 60, gt=0, description="Seconds")
    max_history_messages: int = Field(default=20, ge=2)
    interview_temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    drafting_temperature: float = Field(default=0.4, ge=0.0, le=2.0)
    enable_state_tracking: bool = True

    # Gateways
    embedding_timeout: Optional[float] = Field(default=30.0, gt=0)
    completion_timeout: Optional[float] = Field(default=120.0, gt=0)
    llm_provider: Literal["openai", "ollama"] = "openai"
    llm_model: str = "gpt-4o"
    llm_base_url: Optional[str] = None
    llm_api_key: Optional[str] = None
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: Optional[int] = None

    # Persistence
    data_dir: Path = Path("data")
    vector_blob_key: str = "vector_store"
    state_blob_prefix: str = "conversation_state"

    @model_validator(mode="after")
    def _check_chunking(self) -> "CopilotSettings":
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.chunk_overlap < 0 or self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap must be in [0, chunk_size), "
                f"got overlap={self.chunk_overlap} size={self.chunk_size}"
            )
        return self
