"""Application configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.constants import LogLevel, SubscriptionTier


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = Field(default="SaaS Billing Backend", description="Service name")
    debug: bool = Field(default=False, description="Debug mode")
    version: str = Field(default="0.1.0", description="Application version")
    log_level: LogLevel = Field(
        default=LogLevel.INFO, description="Root log level", alias="LOG_LEVEL"
    )

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", alias="PORT")

    # Supabase Auth (bearer tokens issued to the front end)
    supabase_jwt_secret: str = Field(
        ..., description="Supabase JWT signing secret", alias="SUPABASE_JWT_SECRET"
    )
    supabase_jwt_audience: str = Field(
        default="authenticated",
        description="Expected audience claim on Supabase access tokens",
        alias="SUPABASE_JWT_AUDIENCE",
    )

    # Stripe Configuration
    stripe_secret_key: str = Field(
        ..., description="Stripe secret API key", alias="STRIPE_SECRET_KEY"
    )
    stripe_webhook_secret: str = Field(
        ..., description="Stripe webhook signing secret", alias="STRIPE_WEBHOOK_SECRET"
    )
    stripe_webhook_tolerance: int = Field(
        default=300,
        description="Maximum age in seconds of a signed webhook timestamp",
        alias="STRIPE_WEBHOOK_TOLERANCE",
    )
    stripe_price_id_pro: str = Field(
        default="", description="Stripe price ID for the Pro tier", alias="STRIPE_PRICE_ID_PRO"
    )
    stripe_price_id_enterprise: str = Field(
        default="",
        description="Stripe price ID for the Enterprise tier",
        alias="STRIPE_PRICE_ID_ENTERPRISE",
    )
    app_url: str = Field(
        default="http://localhost:4200",
        description="Front end origin used for checkout redirects when no Origin header is sent",
        alias="APP_URL",
    )

    # Resend (transactional email)
    resend_api_key: str = Field(default="", description="Resend API key", alias="RESEND_API_KEY")
    resend_from_email: str = Field(
        default="onboarding@resend.dev",
        description="Default sender address",
        alias="RESEND_FROM_EMAIL",
    )
    resend_api_url: str = Field(
        default="https://api.resend.com", description="Resend API base URL"
    )
    email_timeout_seconds: float = Field(
        default=10.0, description="Timeout for outbound email requests"
    )

    # Database Configuration (Supabase PostgreSQL)
    database_url: str = Field(
        ...,
        description="Database connection URL (service role)",
        alias="DATABASE_URL",
    )
    database_pool_size: int = Field(
        default=5, description="Database connection pool size"
    )
    database_max_overflow: int = Field(
        default=10, description="Database connection pool max overflow"
    )
    database_command_timeout: int = Field(
        default=30, description="Timeout in seconds for a single database command"
    )
    use_null_pool: bool = Field(
        default=True, description="Use NullPool for serverless deployments"
    )

    # CORS
    allowed_origins: list[str] = Field(
        default=[
            "http://localhost:4200",
            "http://127.0.0.1:4200",
        ],
        description="CORS allowed origins",
    )
    allowed_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        description="CORS allowed methods",
    )
    allowed_headers: list[str] = Field(
        default=["authorization", "x-client-info", "apikey", "content-type"],
        description="CORS allowed headers",
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @property
    def price_tiers(self) -> dict[str, SubscriptionTier]:
        """Configured price ID to tier mapping; unset price IDs are left out."""
        tiers: dict[str, SubscriptionTier] = {}
        if self.stripe_price_id_pro:
            tiers[self.stripe_price_id_pro] = SubscriptionTier.PRO
        # Enterprise wins if both tiers are configured with the same price
        if self.stripe_price_id_enterprise:
            tiers[self.stripe_price_id_enterprise] = SubscriptionTier.ENTERPRISE
        return tiers


# Global settings instance
settings = Settings()
