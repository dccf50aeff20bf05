from pydantic import BaseModel
import os
from dotenv import load_dotenv

load_dotenv()


def _env_list(name: str, default: str = "") -> list[str]:
    raw = os.getenv(name, default)
    return [item.strip().rstrip("/") for item in raw.split(",") if item.strip()]


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    DB_NAME: str = os.getenv("DB_NAME", "Volunteer-service")
    SERVER_SELECTION_TIMEOUT_MS: int = int(os.getenv("SERVER_SELECTION_TIMEOUT_MS", "5000"))
    CONNECT_ON_STARTUP: bool = _env_bool("CONNECT_ON_STARTUP", True)
    # bounded retry for the initial connection
    DB_CONNECT_ATTEMPTS: int = int(os.getenv("DB_CONNECT_ATTEMPTS", "3"))
    DB_RETRY_MIN_WAIT: float = float(os.getenv("DB_RETRY_MIN_WAIT", "1"))
    DB_RETRY_MAX_WAIT: float = float(os.getenv("DB_RETRY_MAX_WAIT", "10"))
    DB_RETRY_JITTER: float = float(os.getenv("DB_RETRY_JITTER", "1"))

    SECRET_KEY: str = os.getenv("SECRET_KEY", os.getenv("JWT_SECRET", "secret"))
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 1 day
    COOKIE_NAME: str = "token"
    COOKIE_SAMESITE: str = os.getenv("COOKIE_SAMESITE", "strict")
    COOKIE_SECURE: bool = _env_bool("COOKIE_SECURE", True)

    CORS_ORIGINS: list[str] = _env_list("CORS_ORIGINS", "http://localhost:5173")
    MAX_BODY_BYTES: int = int(os.getenv("MAX_BODY_BYTES", str(1024 * 1024)))

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


settings = Settings()
