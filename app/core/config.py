from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Vector store (Postgres + pgvector)
    DB_CONNECTION_STRING: str

    # Databricks SQL warehouse
    DATABRICKS_HOST: str
    DATABRICKS_HTTP_PATH: str
    DATABRICKS_ACCESS_TOKEN: str
    DATABRICKS_CATALOG: str
    DATABRICKS_SCHEMA: str

    # Embeddings (vector size is fixed by the table, see app.core.models)
    OPENAI_API_KEY: str
    EMBEDDING_MODEL: str = "text-embedding-3-small"

    # Host headers accepted on /api/mcp, e.g. '["mcp.example.com", "localhost:*"]'.
    # Empty accepts any host.
    MCP_ALLOWED_HOSTS: List[str] = []

    LOG_LEVEL: str = "INFO"
    SQL_ECHO: bool = False

    # This tells Pydantic to read from the .env file
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Missing required variables fail here, at import time
settings = Settings()
