"""Application settings loaded from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Runtime
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Supabase
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""

    # Identity provider (Keycloak realm)
    KEYCLOAK_URL: str = "http://localhost:8080"
    KEYCLOAK_REALM: str = "dragon"
    KEYCLOAK_CLIENT_ID: str = "dragon-backend"
    KEYCLOAK_CLIENT_SECRET: str = ""
    JWKS_CACHE_MAX_ENTRIES: int = 5
    JWKS_CACHE_MAX_AGE_SECONDS: int = 600
    IDENTITY_HTTP_TIMEOUT_SECONDS: float = 10.0

    # LLM
    GEMINI_API_KEYS: str = ""
    AI_PROVIDERS_CONFIG: str = ""
    TITLE_MODEL: str = "gemini-2.5-flash"

    # Object storage
    GCS_CREDENTIALS: str = ""
    GCS_BUCKET: str = "dragon-template-storage"

    # CORS
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def gemini_api_keys_list(self) -> list[str]:
        return [k.strip() for k in self.GEMINI_API_KEYS.split(",") if k.strip()]

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def issuer(self) -> str:
        return f"{self.KEYCLOAK_URL.rstrip('/')}/realms/{self.KEYCLOAK_REALM}"

    @property
    def token_url(self) -> str:
        return f"{self.issuer}/protocol/openid-connect/token"

    @property
    def jwks_url(self) -> str:
        return f"{self.issuer}/protocol/openid-connect/certs"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache()
def get_settings() -> Settings:
    return Settings()
