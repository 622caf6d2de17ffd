from pydantic import BaseModel
import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseModel):
    database_url: str
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = 60
    upload_dir: str = "uploads"
    max_document_bytes: int = 2 * 1024 * 1024
    public_base_url: str = "http://localhost:8000"
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_pass: str | None = None
    smtp_from: str | None = None
    smtp_timeout_seconds: float = 10.0
    admin_email: str = "admin@learnerlicense.com"
    frontend_base_url: str = "http://localhost:5173"
    mongo_uri: str | None = None
    mongo_db: str = "learner_license"
    mongo_collection_submissions: str = "submissions"
    mongo_timeout_ms: int = 5000
    seed_admin_username: str = "admin"
    seed_admin_email: str = "admin@learnerlicense.com"
    seed_admin_password: str | None = None
    log_level: str = "INFO"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        database_url = os.getenv("DATABASE_URL", "")
        jwt_secret_key = os.getenv("JWT_SECRET_KEY", "")
        if not jwt_secret_key:
            raise RuntimeError("JWT_SECRET_KEY is not set")
        _settings = Settings(
            database_url=database_url,
            jwt_secret_key=jwt_secret_key,
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            jwt_expires_minutes=int(os.getenv("JWT_EXPIRES_MINUTES", "60")),
            upload_dir=os.getenv("UPLOAD_DIR", "uploads"),
            max_document_bytes=int(os.getenv("MAX_DOCUMENT_BYTES", str(2 * 1024 * 1024))),
            public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:8000"),
            smtp_host=os.getenv("SMTP_HOST"),
            smtp_port=int(os.getenv("SMTP_PORT", "587")),
            smtp_user=os.getenv("SMTP_USER"),
            smtp_pass=os.getenv("SMTP_PASS"),
            smtp_from=os.getenv("SMTP_FROM"),
            smtp_timeout_seconds=float(os.getenv("SMTP_TIMEOUT_SECONDS", "10")),
            admin_email=os.getenv("ADMIN_EMAIL", "admin@learnerlicense.com"),
            frontend_base_url=os.getenv("FRONTEND_BASE_URL", "http://localhost:5173"),
            mongo_uri=os.getenv("MONGO_URI"),
            mongo_db=os.getenv("MONGO_DB", "learner_license"),
            mongo_collection_submissions=os.getenv("MONGO_COLLECTION_SUBMISSIONS", "submissions"),
            mongo_timeout_ms=int(os.getenv("MONGO_TIMEOUT_MS", "5000")),
            seed_admin_username=os.getenv("SEED_ADMIN_USERNAME", "admin"),
            seed_admin_email=os.getenv("SEED_ADMIN_EMAIL", "admin@learnerlicense.com"),
            seed_admin_password=os.getenv("SEED_ADMIN_PASSWORD"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
    return _settings
