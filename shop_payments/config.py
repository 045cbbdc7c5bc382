import os
from dataclasses import dataclass, field
from pathlib import Path
from dotenv import load_dotenv

# Force-load .env (Windows-safe, reload-safe)
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=BASE_DIR / ".env")


def _env(name, default="", cast=str):
    return lambda: cast(os.getenv(name, default))


@dataclass
class Settings:
    database_url: str = field(default_factory=_env("DATABASE_URL", "sqlite:///./payments.db"))
    stripe_secret_key: str = field(default_factory=_env("STRIPE_SECRET_KEY"))
    stripe_webhook_secret: str = field(default_factory=_env("STRIPE_WEBHOOK_SECRET"))
    stripe_timeout_seconds: float = field(default_factory=_env("STRIPE_TIMEOUT_SECONDS", "10", float))
    webhook_tolerance_seconds: int = field(default_factory=_env("STRIPE_WEBHOOK_TOLERANCE_SECONDS", "300", int))
    jwt_secret: str = field(default_factory=_env("JWT_SECRET"))
    default_currency: str = field(default_factory=_env("DEFAULT_CURRENCY", "usd"))
    log_level: str = field(default_factory=_env("LOG_LEVEL", "INFO"))


def get_settings() -> Settings:
    return Settings()
