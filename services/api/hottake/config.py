"""
Configuration management using Pydantic BaseSettings.
All values can be overridden via environment variables or a .env file.
"""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── TiDB (MySQL-protocol compatible) ───────────────────────────────────
    tidb_host: str = "tidb"
    tidb_port: int = 4000
    tidb_user: str = "root"
    tidb_password: str = ""
    tidb_database: str = "hottake"

    # Full SQLAlchemy URL — wins over the tidb_* fields when set
    # (e.g. sqlite+aiosqlite:///./hottake.db for local runs)
    database_url: Optional[str] = None

    @property
    def db_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"mysql+aiomysql://{self.tidb_user}:{self.tidb_password}"
            f"@{self.tidb_host}:{self.tidb_port}/{self.tidb_database}"
        )

    # ── Redis (live feed relay) ────────────────────────────────────────────
    redis_host: str = "redis"
    redis_port: int = 6379

    # ── Live feed broadcast ────────────────────────────────────────────────
    broadcast_backend: str = "redis"         # 'redis' | 'memory'
    broadcast_channel: str = "take_feed"
    broadcast_queue_size: int = 100          # per-subscriber buffer

    # ── Identity ───────────────────────────────────────────────────────────
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    jwt_ttl_days: int = 60

    # ── Posting gate ───────────────────────────────────────────────────────
    posting_weekday: int = 3                 # Monday=0 … Thursday=3
    posting_time_zones: list[str] = ["America/New_York", "America/Los_Angeles"]
    posting_gate_override: bool = False      # non-production only

    # ── Takes & feed ───────────────────────────────────────────────────────
    take_max_length: int = 169
    feed_window_hours_before: int = 27
    feed_window_hours_after: int = 3         # tolerate client clock skew

    # ── Observability ──────────────────────────────────────────────────────
    otel_enabled: bool = True
    otel_exporter_otlp_endpoint: str = "http://jaeger:4317"
    service_name: str = "hottake-api"
    environment: str = "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
