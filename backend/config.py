import os
from dataclasses import dataclass, field
from typing import Tuple


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class AppConfig:
    # Storage
    DATABASE_URL: str = "sqlite:///storefront.db"

    # HTTP
    API_PREFIX: str = "/api/v1"
    PORT: int = 8000
    DEBUG: bool = False
    CORS_ORIGINS: Tuple[str, ...] = field(default_factory=lambda: ("*",))

    # Observability
    LOG_LEVEL: str = "INFO"


def load_config() -> AppConfig:
    """
    Builds the application configuration from environment variables.

    Values are read at call time so a freshly loaded .env file (or a test
    monkeypatch) is always honoured.

    Returns:
        A frozen AppConfig instance.
    """
    origins = os.environ.get("CORS_ORIGINS", "*")
    return AppConfig(
        DATABASE_URL=os.environ.get("DATABASE_URL", AppConfig.DATABASE_URL),
        API_PREFIX=os.environ.get("API_PREFIX", AppConfig.API_PREFIX),
        PORT=int(os.environ.get("PORT", AppConfig.PORT)),
        DEBUG=_env_flag("FLASK_DEBUG"),
        CORS_ORIGINS=tuple(o.strip() for o in origins.split(",") if o.strip()) or ("*",),
        LOG_LEVEL=os.environ.get("LOG_LEVEL", AppConfig.LOG_LEVEL).upper(),
    )
