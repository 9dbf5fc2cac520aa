import os
import logging
from pydantic import BaseModel, Field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()


class Config(BaseModel):
    app_name: str = "Performance Evaluation API"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"

    # Storage: "sql" uses SQLAlchemy (DATABASE_URL), "memory" keeps records in-process
    storage_backend: str = os.getenv("STORAGE_BACKEND", "sql").lower()
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./database.db")
    seed_file: Optional[str] = os.getenv("SEED_FILE") or None

    # Auth
    secret_key: str = os.getenv("SECRET_KEY", "dev-only-insecure-key-DO-NOT-USE-IN-PROD")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 12)))
    bcrypt_rounds: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # First-run HR account, created only when the user collection is empty
    bootstrap_admin: bool = os.getenv("BOOTSTRAP_ADMIN", "true").lower() == "true"
    admin_id: str = os.getenv("ADMIN_ID", "hr")
    admin_password: str = os.getenv("ADMIN_PASSWORD", "dev-only-change-me")

    version: str = "1.0.0"
    request_id_header: str = "X-Request-ID"

    # CORS: comma-separated origins loaded from env
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:5173,http://127.0.0.1:5173,"
                "http://localhost:3000,http://127.0.0.1:3000",
            ).split(",")
            if o.strip()
        ]
    )

    rate_limit_enabled: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    login_rate_limit: str = os.getenv("LOGIN_RATE_LIMIT", "10/minute")


settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
if settings.storage_backend not in ("sql", "memory"):
    raise RuntimeError(f"FATAL: Unknown STORAGE_BACKEND '{settings.storage_backend}'. Use 'sql' or 'memory'.")

if settings.environment not in ("development", "testing"):
    _critical_missing = []
    if "dev-only" in settings.secret_key:
        _critical_missing.append("SECRET_KEY")
    if settings.bootstrap_admin and "dev-only" in settings.admin_password:
        _critical_missing.append("ADMIN_PASSWORD")
    if _critical_missing:
        raise RuntimeError(
            f"FATAL: The following secrets must be set for non-development environments: "
            f"{', '.join(_critical_missing)}. Set them as environment variables."
        )
else:
    if "dev-only" in settings.secret_key:
        _logger.warning("⚠ Using insecure default SECRET_KEY (development only).")
