# backend/stockgrid/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/stockgrid.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///stockgrid.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Upper bound for one multi-step ledger mutation (sale/delivery/transfer).
    LEDGER_TX_TIMEOUT_SECONDS = float(os.environ.get("LEDGER_TX_TIMEOUT_SECONDS", "20"))

    # 1 = no automatic retry; the caller decides whether to resubmit.
    LEDGER_TX_RETRY_ATTEMPTS = int(os.environ.get("LEDGER_TX_RETRY_ATTEMPTS", "1"))

    # Column count for sheets created lazily on first use.
    GRID_DEFAULT_COLUMNS = int(os.environ.get("GRID_DEFAULT_COLUMNS", "10"))

    # Stock may go negative by default; False turns decrements into
    # conditional updates that fail when the result would drop below zero.
    ALLOW_NEGATIVE_STOCK = _env_bool("ALLOW_NEGATIVE_STOCK", True)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
