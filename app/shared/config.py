# app/shared/config.py
from pathlib import Path
from pydantic import BaseModel
import os

ROOT = Path(__file__).resolve().parents[2]   # project root
DEFAULT_DB_URL = f"sqlite:///{(ROOT / 'storage' / 'notes.db').as_posix()}"

class Settings(BaseModel):
    ENV: str = os.getenv("ENV", "dev")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    API_PREFIX: str = os.getenv("API_PREFIX", "/api/v1")
    DB_URL: str = os.getenv("DB_URL", DEFAULT_DB_URL)
    CORS_ORIGIN: str = os.getenv("CORS_ORIGIN", "http://localhost:5173")

    # JWT settings; access and refresh tokens are signed with different keys
    ACCESS_TOKEN_SECRET: str = os.getenv("ACCESS_TOKEN_SECRET", "dev-access-secret")
    REFRESH_TOKEN_SECRET: str = os.getenv("REFRESH_TOKEN_SECRET", "dev-refresh-secret")
    JWT_ALG: str = os.getenv("JWT_ALG", "HS256")
    JWT_ISS: str | None = os.getenv("JWT_ISS")
    JWT_AUD: str | None = os.getenv("JWT_AUD")
    ACCESS_TOKEN_EXPIRE_MIN: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MIN", "15"))
    REFRESH_TOKEN_EXPIRE_DAYS: int = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7"))

    # session cookies
    COOKIE_SECURE: bool = os.getenv("COOKIE_SECURE", "true").lower() == "true"
    COOKIE_SAMESITE: str = os.getenv("COOKIE_SAMESITE", "none")
    COOKIE_MAX_AGE_DAYS: int = int(os.getenv("COOKIE_MAX_AGE_DAYS", "7"))

    # summarizer (OpenAI-compatible); no key -> local extractive summaries
    SUMMARIZER_BASE_URL: str = os.getenv("SUMMARIZER_BASE_URL", "https://api.openai.com")
    SUMMARIZER_API_KEY: str | None = os.getenv("SUMMARIZER_API_KEY")
    SUMMARIZER_MODEL: str = os.getenv("SUMMARIZER_MODEL", "gpt-4o-mini")
    SUMMARIZER_TIMEOUT_S: float = float(os.getenv("SUMMARIZER_TIMEOUT_S", "20"))
    SUMMARIZER_MAX_CHARS: int = int(os.getenv("SUMMARIZER_MAX_CHARS", "20000"))

settings = Settings()
