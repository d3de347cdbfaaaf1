"""Configuration management."""

import secrets
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Model gateway
    gateway_base_url: str = "https://ai.gateway.lovable.dev/v1"
    gateway_api_key: SecretStr = SecretStr("")
    chat_model: str = "google/gemini-3-flash-preview"
    embedding_model: str = "text-embedding-004"
    embedding_dimensions: int = 768
    gateway_timeout_seconds: float = 60.0

    # Store
    store_backend: Literal["neo4j", "memory"] = "neo4j"
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_user: str = "neo4j"
    neo4j_password: SecretStr = SecretStr("password")

    # Auth
    # Random per process unless RECALLION_JWT_SECRET is set
    jwt_secret: SecretStr = Field(default_factory=lambda: SecretStr(secrets.token_urlsafe(32)))
    jwt_algorithm: str = "HS256"
    jwt_audience: str | None = Field(default=None, description="Expected 'aud' claim, e.g. 'authenticated'")

    # Retrieval
    retrieval_top_k: int = Field(default=5, ge=1, le=20)
    retrieval_threshold: float = Field(default=0.3, ge=0.0, le=1.0)

    # Review
    review_batch_size: int = Field(default=20, ge=1)
    review_excerpt_chars: int = Field(default=200, ge=1)

    # Attachments
    blob_root: str = "./blobs"

    # App config
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = False
    assistant_name: str = Field(default="RECALLION", description="Persona name used in the chat system prompt")

    @field_validator("jwt_secret")
    @classmethod
    def jwt_secret_not_empty(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("jwt_secret must not be empty")
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="RECALLION_",
        extra="ignore",  # Ignore extra fields in .env file
        env_nested_delimiter="__",
    )


settings = Settings()
