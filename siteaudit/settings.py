# siteaudit/settings.py
import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


class Settings:
    APP_VERSION: str = "1.0.0"
    CATALOG_VERSION: str = "nr18-v1"

    # --- CONFIG ---
    ENV = os.getenv("SITEAUDIT_ENV", "production")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./siteaudit.db")

    # --- REPORT ---
    REPORT_DATE_FORMAT = os.getenv("REPORT_DATE_FORMAT", "%d/%m/%Y")
    REPORT_DATETIME_FORMAT = os.getenv("REPORT_DATETIME_FORMAT", "%d/%m/%Y %H:%M:%S %Z")
    # IANA zone the report timestamp is printed in
    REPORT_TIMEZONE = os.getenv("REPORT_TIMEZONE", "UTC")

    # --- IMAGE INLINING LIMITS ---
    IMAGE_FETCH_TIMEOUT_SECONDS = float(os.getenv("IMAGE_FETCH_TIMEOUT_SECONDS", "10"))
    IMAGE_MAX_BYTES = int(os.getenv("IMAGE_MAX_BYTES", str(10 * 1024 * 1024)))


@lru_cache
def get_settings():
    return Settings()
