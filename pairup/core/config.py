# pairup/core/config.py
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - SUPABASE_URL
      - SUPABASE_KEY (anon key)
      - DATABASE_URL (Supabase Postgres connection string)
      - SUPABASE_JWT_SECRET (JWT signing secret from Supabase project settings)

    Optional:
      - SUPABASE_SERVICE_ROLE_KEY (storage uploads and admin auth calls)
      - GEMINI_API_KEY (pairing analysis; endpoint returns 500 without it)
      - AGE_TOKEN_SECRET (signs age-gate tokens; falls back to the JWT secret)
    """

    PROJECT_NAME: str = "PairUp API"
    API_V1_STR: str = "/api/v1"

    # Supabase / DB config
    SUPABASE_URL: str
    SUPABASE_KEY: str
    DATABASE_URL: str

    # JWT verification (backend-side)
    SUPABASE_JWT_SECRET: str
    SUPABASE_JWT_ALG: str = "HS256"

    # Service role key bypasses RLS (backend only)
    SUPABASE_SERVICE_ROLE_KEY: str | None = None

    # Storage buckets
    PAIRINGS_BUCKET: str = "pairings"
    AVATARS_BUCKET: str = "avatars"

    # Gemini image analysis
    GEMINI_API_KEY: str | None = None
    GEMINI_MODEL: str = "gemini-2.5-flash"

    # Per-operation timeouts (seconds)
    ANALYSIS_TIMEOUT_SECONDS: float = 60.0
    SUBMISSION_TIMEOUT_SECONDS: float = 15.0

    # Age gate
    AGE_TOKEN_SECRET: str | None = None
    AGE_TOKEN_TTL_MINUTES: int = 60
    MINIMUM_AGE: int = 21

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def age_token_secret(self) -> str:
        return self.AGE_TOKEN_SECRET or self.SUPABASE_JWT_SECRET


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
