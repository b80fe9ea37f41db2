from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings."""

    # Database
    database_url: str = Field(default="sqlite+aiosqlite:///./vitalguard.db")

    # Auth
    jwt_secret_key: str = Field(default="change-me-in-production")
    token_expire_seconds: int = Field(default=86400)

    # Identity / consent / audit storage. Empty path keeps everything in memory.
    storage_path: str = Field(default="")

    # AI capability: "bedrock" or "stub"
    ai_provider: str = Field(default="stub")

    # AWS Bedrock
    aws_access_key_id: str = Field(default="")
    aws_secret_access_key: str = Field(default="")
    aws_region: str = Field(default="us-east-1")
    aws_bedrock_model_id: str = Field(
        default="us.anthropic.claude-sonnet-4-5-20250929-v1:0",
    )

    # Demo convenience: give unassigned identities a patient round-robin
    auto_assign_patients: bool = Field(default=True)

    log_level: str = Field(default="INFO")
    cors_origins: list[str] = Field(default=["*"])

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
