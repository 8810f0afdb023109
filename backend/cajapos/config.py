# backend/cajapos/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/cajapos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location (e.g. postgresql://...)
        "sqlite:///cajapos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    # bcrypt cost factor; tests drop this to keep the suite fast
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Session token lifetime
    SESSION_ABSOLUTE_TIMEOUT_HOURS = int(os.environ.get("SESSION_ABSOLUTE_TIMEOUT_HOURS", "8"))
    SESSION_IDLE_TIMEOUT_MINUTES = int(os.environ.get("SESSION_IDLE_TIMEOUT_MINUTES", "240"))

    # Receipts are always logged; with the printer enabled they are also
    # written to the device (e.g. a USB thermal printer)
    PRINTER_ENABLED = _env_flag("PRINTER_ENABLED", False)
    PRINTER_DEVICE = os.environ.get("PRINTER_DEVICE", "/dev/usb/lp0")

    # When on, sale lines are priced from the catalog instead of the client
    ENFORCE_CATALOG_PRICES = _env_flag("ENFORCE_CATALOG_PRICES", False)

    # Audit entries are written on a background worker; off means inline
    AUDIT_ASYNC = _env_flag("AUDIT_ASYNC", True)

    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "5"))
    EXPIRING_SOON_DAYS = int(os.environ.get("EXPIRING_SOON_DAYS", "30"))

    CORS_ALLOWED_ORIGINS = set(
        filter(None, os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:5174",
        ).split(","))
    )
