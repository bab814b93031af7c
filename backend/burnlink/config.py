from pydantic import ConfigDict, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Database
    database_url: str = "sqlite:///./secrets.db"

    # Cache
    cache_backend: str = "memory"  # "redis" | "memory" | "none"
    redis_url: str | None = None
    cache_key_prefix: str = "secret:"
    cache_socket_timeout_seconds: float = 0.5

    # Identifiers
    secret_id_bytes: int = 9  # 12 url-safe characters
    secret_id_max_attempts: int = 5

    # Limits
    default_ttl_seconds: int = 3600
    min_ttl_seconds: int = 1
    max_ttl_seconds: int = 7 * 24 * 3600
    max_ciphertext_size: int = 1_000_000  # 1MB
    max_iv_size: int = 64
    max_password_length: int = 1024

    # Password hashing (Argon2id, ~tens of ms per verification)
    argon2_time_cost: int = 3
    argon2_memory_cost: int = 65536  # 64MB
    argon2_parallelism: int = 4

    # Housekeeping
    cleanup_enabled: bool = True
    cleanup_interval_minutes: int = 15
    cleanup_grace_minutes: int = 60

    # Links handed back to the sender
    frontend_url: str = "http://localhost:5173"

    # Logging
    log_level: str = "info"
    log_format: str = "console"  # "console" | "json"

    # CORS
    cors_origins: list[str] | str = ["http://localhost:5173", "http://127.0.0.1:5173"]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("cache_backend")
    @classmethod
    def validate_cache_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in ("redis", "memory", "none"):
            raise ValueError("cache_backend must be one of: redis, memory, none")
        return v


settings = Settings()
