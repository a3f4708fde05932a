# backend/toko/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/toko.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///toko.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Seconds a checkout commit may take before it is rolled back
    CHECKOUT_TIMEOUT_SECONDS = float(os.environ.get("CHECKOUT_TIMEOUT_SECONDS", "10"))

    # Session resolution retries on transient lookup errors before failing closed
    SESSION_RESOLVE_ATTEMPTS = int(os.environ.get("SESSION_RESOLVE_ATTEMPTS", "3"))
    SESSION_RESOLVE_BACKOFF = float(os.environ.get("SESSION_RESOLVE_BACKOFF", "0.05"))

    # Cashier dashboard "low stock" cut-off
    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "10"))

    CORS_ALLOWED_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if origin.strip()
    }
