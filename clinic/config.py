import os
from pathlib import Path
from dotenv import load_dotenv
from fastapi.security import APIKeyCookie, HTTPBearer

BASE_DIR = Path(__file__).resolve().parent.parent  # -> project root

# Load .env explicitly from project root
load_dotenv(BASE_DIR / ".env")


class Settings:
    PROJECT_NAME = "Clinic Portal"

    DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'clinic.db'}")

    SESSION_SECRET = os.getenv("SESSION_SECRET")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    SESSION_EXPIRE_MINUTES = int(os.getenv("SESSION_EXPIRE_MINUTES", 24 * 60))
    SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "clinic_session")
    SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() == "true"

    ADMIN_EMAIL = os.getenv("ADMIN_EMAIL")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")

    OTP_EXPIRE_MINUTES = int(os.getenv("OTP_EXPIRE_MINUTES", 10))

    EMAIL_BACKEND = os.getenv("EMAIL_BACKEND", "smtp").lower()
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", 587))
    SMTP_USER = os.getenv("SMTP_USER")
    SMTP_PASS = os.getenv("SMTP_PASS")
    FROM_EMAIL = os.getenv("FROM_EMAIL")
    GMAIL_TOKEN_FILE = os.getenv("GMAIL_TOKEN_FILE", "credentials/token.json")

    SPACES_REGION = os.getenv("SPACES_REGION")
    SPACES_ENDPOINT = os.getenv("SPACES_ENDPOINT")
    SPACES_KEY = os.getenv("SPACES_KEY")
    SPACES_SECRET = os.getenv("SPACES_SECRET")
    SPACES_NAME = os.getenv("SPACES_NAME")
    SPACES_CDN_URL = os.getenv("SPACES_CDN_URL")
    SPACES_BASE_PATH = (os.getenv("SPACES_BASE_PATH") or "clinic").strip("/")
    UPLOAD_TMP_DIR = Path(os.getenv("UPLOAD_TMP_DIR", BASE_DIR / "uploads" / "tmp"))
    MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", 5 * 1024 * 1024))

    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
    GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")
    GOOGLE_REDIRECT_URI = os.getenv("GOOGLE_REDIRECT_URI")

    LLM_API_URL = os.getenv("LLM_API_URL", "https://api.cerebras.ai/v1/chat/completions")
    LLM_API_KEY = os.getenv("LLM_API_KEY")
    LLM_MODEL = os.getenv("LLM_MODEL", "llama3.1-8b")
    LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", 30))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    SEED_DEMO_DOCTORS = os.getenv("SEED_DEMO_DOCTORS", "false").lower() == "true"

    bearer_scheme = HTTPBearer(auto_error=False)
    cookie_scheme = APIKeyCookie(name=SESSION_COOKIE_NAME, auto_error=False)
    cors_origins = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "*").split(",")
        if origin.strip()
    ]

    def require_secrets(self) -> None:
        if not self.SESSION_SECRET:
            raise RuntimeError("SESSION_SECRET is not set. Please configure it in the environment.")


settings = Settings()
