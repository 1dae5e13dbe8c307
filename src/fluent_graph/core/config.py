"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Neo4j
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_user: str = "neo4j"
    neo4j_password: str = "password"
    neo4j_database: str | None = Field(default=None, description="Database name, None uses the server default")
    neo4j_max_connection_pool_size: int = 50
    neo4j_max_connection_lifetime: int = 3600

    # Models
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="strftime format for created_at, updated_at and deleted_at",
    )

    # App config
    log_level: str = "INFO"
    debug: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",  # Ignore extra fields in .env file
        env_nested_delimiter="__",
    )


settings = Settings()
