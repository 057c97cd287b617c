from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    APP_ENV: str = "local"
    APP_NAME: str = "wine-cockpit"

    DATABASE_URL: str
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 0
    DB_POOL_TIMEOUT: int = 5
    DB_POOL_RECYCLE_SECONDS: int = 1800
    DB_RETRY_ATTEMPTS: int = 3
    DB_RETRY_DELAY_SECONDS: float = 1.0

    JWT_SECRET: str = "change_me_cockpit"
    ADMIN_JWT_TTL_MINUTES: int = 24 * 60
    AUTH_VERIFY_TOKENS: bool = True
    AUTH_COOKIE_NAME: str = "auth_token"
    AUTH_COOKIE_SECURE: bool = False

    CORS_ORIGINS: str = (
        "http://localhost:3000,"
        "https://cockpit.mywine.info,"
        "https://mywine-cockpit.vercel.app"
    )

    MAX_PAGE_SIZE: int = 500

    SQL_SERVICE_URL: str = "https://fastapi.mywine.info"
    SQL_SERVICE_TIMEOUT_SECONDS: float = 30.0
    SQL_SERVICE_RETRIES: int = 3
    SQL_SERVICE_RETRY_DELAY_SECONDS: float = 1.0

    MEDIA_API_URL: str = "https://api.imagekit.io"
    MEDIA_PRIVATE_KEY: str = ""
    MEDIA_PUBLIC_KEY: str = ""
    MEDIA_URL_ENDPOINT: str = ""
    MEDIA_ROOT_PATH: str = "/wines"
    MEDIA_PAGE_SIZE: int = 1000
    MEDIA_MAX_ATTEMPTS: int = 5
    MEDIA_TIMEOUT_SECONDS: float = 15.0
    MEDIA_AUTH_TTL_SECONDS: int = 2400

    STATS_MAX_WORKERS: int = 4

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

settings = Settings()
