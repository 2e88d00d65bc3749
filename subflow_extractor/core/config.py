"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Extractor settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="SUBFLOW_",
    )

    # Expression detection
    expression_prefix: str = "="
    code_node_types: list[str] = ["n8n-nodes-base.code", "Code"]

    # Sub-workflow extraction
    default_start_node_name: str = "Start"
    trigger_node_type: str = "ExecuteWorkflowTrigger"
    execute_workflow_node_type: str = "ExecuteWorkflow"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
