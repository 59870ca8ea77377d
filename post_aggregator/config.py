"""Application configuration loaded from environment variables."""

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration: reads from environment / .env file."""

    # Redis (unset = caching disabled)
    redis_url: str | None = None

    # Cache
    cache_backend: Literal["auto", "redis", "memory", "none"] = "auto"
    cache_ttl_seconds: int = 0                  # 0 = never expire
    memory_cache_maxsize: int = 1024

    # Upstream blog API
    upstream_base_url: str = "https://api.hatchways.io/assessment/blog/posts"
    upstream_timeout_seconds: int = 30
    upstream_max_retries: int = 0

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def resolved_cache_backend(self) -> str:
        """Backend actually used once `auto` is resolved against REDIS_URL."""
        if self.cache_backend == "auto":
            return "redis" if self.redis_url else "none"
        return self.cache_backend


settings = Settings()
