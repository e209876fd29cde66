"""
Unified Configuration
All environment variables and settings in one place

PLANS:
- `plans` is ordered from lowest to highest rank. When two accounts are
  merged, the surviving account gets the higher-ranked plan of the two.
"""
from typing import List, Optional
import logging
from pydantic_settings import BaseSettings
from pydantic import Field, model_validator

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Unified application settings.
    Validates all environment variables at startup.
    """

    # ============================================================================
    # SERVER
    # ============================================================================

    environment: str = Field(default="production", description="Environment: dev/staging/production")
    port: int = Field(default=8080, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")

    # ============================================================================
    # DOCUMENT STORE (Supabase / PostgREST)
    # ============================================================================

    supabase_url: Optional[str] = Field(default=None, description="Supabase project URL")
    supabase_anon_key: Optional[str] = Field(default=None, description="Supabase anonymous key (JWT validation)")
    supabase_service_key: Optional[str] = Field(default=None, description="Supabase service key (data access)")
    accounts_table: str = Field(default="users", description="Collection holding accounts")

    # ============================================================================
    # BACKGROUND JOBS (Dramatiq)
    # ============================================================================

    redis_url: Optional[str] = Field(default=None, description="Redis connection URL for the job queue")

    # ============================================================================
    # API KEYS
    # ============================================================================

    identity_api_key: Optional[str] = Field(default=None, description="API key for the profile callback endpoint")

    # ============================================================================
    # ACCOUNTS
    # ============================================================================

    plans: List[str] = Field(
        default=["free", "subscribed", "vip", "unlimited"],
        description="Quota plans, ordered by increasing rank"
    )
    default_plan: str = Field(default="free", description="Plan assigned to new accounts")
    default_role: str = Field(default="member", description="Role assigned to new accounts")
    root_role: str = Field(default="root", description="Role assigned to the very first account")
    name_suffix_attempts: int = Field(default=5, description="Attempts at finding a free account name")

    # ============================================================================
    # NOTIFICATIONS
    # ============================================================================

    mail_relay_url: Optional[str] = Field(default=None, description="HTTP mail relay for account notices")
    mail_relay_token: Optional[str] = Field(default=None, description="Bearer token for the mail relay")
    mail_sender: str = Field(default="noreply@vpdb.io", description="Sender address of account notices")

    # ============================================================================
    # PRODUCTION INFRASTRUCTURE
    # ============================================================================

    # Error tracking (Sentry)
    sentry_dsn: Optional[str] = Field(default=None, description="Sentry DSN for error tracking")

    @model_validator(mode='after')
    def check_plans(self):
        """The default plan must be one of the configured plans."""
        if not self.plans:
            raise ValueError("At least one quota plan must be configured.")
        if self.default_plan not in self.plans:
            raise ValueError(
                f"Default plan '{self.default_plan}' must exist in plans {self.plans}."
            )
        return self

    def plan_rank(self, plan: Optional[str]) -> int:
        """Rank of a plan, -1 for unknown plans."""
        try:
            return self.plans.index(plan)
        except ValueError:
            return -1

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()
