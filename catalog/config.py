import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return float(raw)


@dataclass
class Settings:
    # API settings
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "8000"))

    # Database settings
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///catalog.db")
    database_echo: bool = os.getenv("DATABASE_ECHO", "False").lower() in ("true", "1", "yes")

    # Client settings
    api_base_url: str = os.getenv("CATALOG_API_URL", f"http://{api_host}:{api_port}")
    client_timeout: Optional[float] = _optional_float("CATALOG_CLIENT_TIMEOUT")  # None = wait forever

    # Form placement
    mobile_breakpoint: int = int(os.getenv("MOBILE_BREAKPOINT", "768"))
    form_inset: int = int(os.getenv("FORM_INSET", "20"))
    form_gap: int = int(os.getenv("FORM_GAP", "8"))
    form_min_width: int = int(os.getenv("FORM_MIN_WIDTH", "300"))

    # Application settings
    app_name: str = os.getenv("APP_NAME", "Book Catalog")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "False").lower() in ("true", "1", "yes")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
