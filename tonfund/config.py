"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration.

    Values are read from environment variables (or a `.env` file).
    """

    # Supabase
    supabase_url: str
    supabase_service_key: str
    supabase_http_max_connections: int = 100
    supabase_http_max_keepalive_connections: int = 50
    supabase_postgrest_timeout_seconds: int = 30
    storage_bucket: str = "media"
    cdn_base: str = ""

    # Auth
    secret: str
    proof_domain: str = "grouche.com"
    payload_ttl_seconds: int = 15 * 60
    proof_ttl_seconds: int = 5 * 60
    access_token_expire_minutes: int = 15
    access_cookie_name: str = "access_token"
    access_cookie_secure: bool = True
    admin_wallets: str = ""

    # Chain API
    tonapi_key: str
    tonapi_base_url: str = "https://tonapi.io"
    tonapi_testnet_base_url: str = "https://testnet.tonapi.io"
    tonapi_timeout_seconds: float = 10.0
    tonapi_job_retries: int = 3
    burn_address: str = "0:" + "0" * 64
    jetton_master: str = "EQAu7qxfVgMg0tpnosBpARYOG--W1EUuX_5H_vOQtTVuHnrn"
    nft_collection: str = ""
    webhook_incoming_token: str = ""

    # Ledger and moderation
    initial_user_limit: int = 100
    voting_window_minutes: int = 30
    refund_grace_minutes: int = 10
    max_charity_images: int = 4

    # App
    app_name: str = "tonfund API"
    app_version: str = "1.0.0"
    environment: str = "development"
    log_level: str = "INFO"
    allowed_origins: str = "http://localhost:3000"
    enable_scheduler: bool = True

    # Scheduling
    timezone: str = "UTC"
    refund_job_minute: str = "*/5"
    burn_job_minute: str = "*/15"

    # Performance tuning
    slow_request_log_threshold_ms: int = 0
    slow_query_log_threshold_ms: int = 0

    @property
    def is_production(self) -> bool:
        """Return True when running in production."""
        return self.environment == "production"

    @property
    def origins_list(self) -> list[str]:
        """Parse comma-separated ALLOWED_ORIGINS into a list."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def admin_wallets_list(self) -> list[str]:
        """Parse comma-separated ADMIN_WALLETS into a list."""
        return [w.strip() for w in self.admin_wallets.split(",") if w.strip()]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()  # type: ignore[call-arg]
