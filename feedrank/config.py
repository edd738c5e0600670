"""
Configuration management using Pydantic BaseSettings.
All values can be overridden via environment variables or a .env file.

Nested scoring weights use a double-underscore delimiter, e.g.
  SCORING__SOCIAL_BOOST=60
  SCORING__RECENCY_WINDOW_HOURS=72
"""
from pydantic_settings import BaseSettings

from feedrank.ranking.scoring import ScoringConfig


class Settings(BaseSettings):
    # ── TiDB (MySQL-protocol compatible) ───────────────────────────────────
    tidb_host: str = "tidb"
    tidb_port: int = 4000
    tidb_user: str = "root"
    tidb_password: str = ""
    tidb_database: str = "social_feed"
    tidb_create_tables: bool = False     # create_all at startup; dev and tests only

    @property
    def tidb_url(self) -> str:
        return (
            f"mysql+aiomysql://{self.tidb_user}:{self.tidb_password}"
            f"@{self.tidb_host}:{self.tidb_port}/{self.tidb_database}"
        )

    # ── Redis (viewer profile cache) ───────────────────────────────────────
    redis_host: str = "redis"
    redis_port: int = 6379
    redis_profile_cache_enabled: bool = True
    redis_profile_ttl: int = 300         # 5 min — follows/bookmarks change often

    # ── Feed ───────────────────────────────────────────────────────────────
    candidate_limit: int = 200           # newest visible posts considered per request
    default_page_size: int = 10
    max_page_size: int = 50

    # ── Scoring ────────────────────────────────────────────────────────────
    scoring: ScoringConfig = ScoringConfig()

    # ── Observability ──────────────────────────────────────────────────────
    otel_enabled: bool = True
    otel_exporter_otlp_endpoint: str = "http://jaeger:4317"
    service_name: str = "feed-ranking"
    environment: str = "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_nested_delimiter = "__"


settings = Settings()
