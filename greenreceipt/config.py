"""Configuration management."""
import os
from dotenv import load_dotenv

load_dotenv()


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Config:
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

    # MongoDB
    MONGO_URI = os.getenv("MONGO_URI")
    MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "greenreceipt")
    MONGO_MAX_POOL_SIZE = int(os.getenv("MONGO_MAX_POOL_SIZE", "10"))
    MONGO_MIN_POOL_SIZE = int(os.getenv("MONGO_MIN_POOL_SIZE", "2"))
    MONGO_SERVER_SELECTION_TIMEOUT_MS = int(os.getenv("MONGO_SERVER_SELECTION_TIMEOUT_MS", "5000"))
    MONGO_SOCKET_TIMEOUT_MS = int(os.getenv("MONGO_SOCKET_TIMEOUT_MS", "45000"))

    # JWT
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
    REFRESH_TOKEN_SECRET = os.getenv("REFRESH_TOKEN_SECRET") or (
        f"{JWT_SECRET_KEY}_refresh" if JWT_SECRET_KEY else None
    )
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15"))
    REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "21"))

    # CORS / refresh cookie origin check
    ALLOWED_ORIGINS = _split_csv(
        os.getenv(
            "ALLOWED_ORIGINS",
            "http://localhost:5173,https://green-recipt.vercel.app",
        )
    )

    # i18n
    DEFAULT_LANGUAGE = os.getenv("DEFAULT_LANGUAGE", "en")

    # Analytics
    ANALYTICS_CACHE_TTL_SECONDS = int(os.getenv("ANALYTICS_CACHE_TTL_SECONDS", "300"))

    # Server
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "5000"))

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


config = Config()
