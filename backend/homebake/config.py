# backend/homebake/config.py
from __future__ import annotations
import os


def _int_env(name: str, default: int) -> int:
    value = os.environ.get(name)
    return int(value) if value not in (None, "") else default


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/homebake.sqlite3 unless DATABASE_URL is set
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///homebake.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Public URL of the web app, used for invite links and push click targets
    APP_URL = os.environ.get("APP_URL", "http://localhost:3000")
    CORS_ALLOWED_ORIGINS = [
        o.strip()
        for o in os.environ.get("CORS_ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
        if o.strip()
    ]

    # Bakery shifts: morning runs from MORNING_SHIFT_START_HOUR to NIGHT_SHIFT_START_HOUR local time
    BAKERY_TIMEZONE = os.environ.get("BAKERY_TIMEZONE", "Africa/Lagos")
    MORNING_SHIFT_START_HOUR = _int_env("MORNING_SHIFT_START_HOUR", 10)
    NIGHT_SHIFT_START_HOUR = _int_env("NIGHT_SHIFT_START_HOUR", 22)

    CURRENCY_CODE = os.environ.get("CURRENCY_CODE", "NGN")

    INVITE_TTL_HOURS = _int_env("INVITE_TTL_HOURS", 24)
    SESSION_ABSOLUTE_TIMEOUT_HOURS = _int_env("SESSION_ABSOLUTE_TIMEOUT_HOURS", 24)
    SESSION_IDLE_TIMEOUT_MINUTES = _int_env("SESSION_IDLE_TIMEOUT_MINUTES", 120)
    STAFF_ONLINE_WINDOW_MINUTES = _int_env("STAFF_ONLINE_WINDOW_MINUTES", 15)

    LOW_STOCK_THRESHOLD = _int_env("LOW_STOCK_THRESHOLD", 10)
    ENFORCE_STOCK_ON_SALE = os.environ.get("ENFORCE_STOCK_ON_SALE", "true").lower() == "true"

    # Web Push (VAPID). Push is disabled when either key is missing.
    VAPID_PUBLIC_KEY = os.environ.get("VAPID_PUBLIC_KEY")
    VAPID_PRIVATE_KEY = os.environ.get("VAPID_PRIVATE_KEY")
    VAPID_SUBJECT = os.environ.get("VAPID_SUBJECT", "mailto:admin@homebake.app")
    PUSH_TTL_SECONDS = _int_env("PUSH_TTL_SECONDS", 24 * 60 * 60)
