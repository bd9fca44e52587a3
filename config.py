from functools import lru_cache
from typing import List, Optional, Union

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "dev-change-me-amizero-local-signing-key"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ---- App ----
    app_env: str = "development"  # development|production
    port: int = 2000
    site_url: str = "http://localhost:2000"
    cors_allow_origins: Union[List[str], str] = ["*"]
    log_level: str = "INFO"

    # ---- MongoDB ----
    mongodb_uri: str = "mongodb://localhost:27017"
    database_name: str = "AMIZERORealEstate1"

    # ---- JWT ----
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = 60 * 24

    # ---- Bootstrap admin ----
    default_admin_email: str = "admin@amizerorealestate.com"
    default_admin_password: str = "admin123"
    default_admin_name: str = "AMIZERO Admin"

    # ---- Email (SendGrid) ----
    sendgrid_api_key: str = ""
    email_from: str = "amizerorealestate@gmail.com"
    admin_notify_email: str = "amizerorealestate@gmail.com"

    # ---- Media store (S3 compatible) ----
    media_bucket: str = ""
    media_endpoint_url: Optional[str] = None
    media_region: str = "us-east-1"
    media_access_key_id: Optional[str] = None
    media_secret_access_key: Optional[str] = None
    media_public_base_url: Optional[str] = None
    media_prefix: str = "amizero"

    @property
    def is_development(self) -> bool:
        return (self.app_env or "").strip().lower() in ("dev", "development", "local")

    @property
    def cors_origins_list(self) -> List[str]:
        val = self.cors_allow_origins
        if isinstance(val, str):
            v = val.strip()
            return ["*"] if v == "*" else [x.strip() for x in v.split(",") if x.strip()]
        return list(val) or ["*"]

    def model_post_init(self, __context) -> None:
        env = (self.app_env or "").strip().lower()
        if env in ("prod", "production") and self.jwt_secret == DEFAULT_JWT_SECRET:
            raise ValueError("SECURITY: JWT_SECRET must be set in production")


@lru_cache
def get_settings() -> Settings:
    return Settings()
