# backend/salonpos/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/salonpos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///salonpos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Invoice corrections retry only on storage conflicts (stale version / lock errors)
    CORRECTION_RETRY_ATTEMPTS = int(os.environ.get("CORRECTION_RETRY_ATTEMPTS", "3"))
    CORRECTION_RETRY_BACKOFF = float(os.environ.get("CORRECTION_RETRY_BACKOFF", "0.1"))

    # Front-desk dev servers allowed to call the API from the browser
    CORS_ALLOWED_ORIGINS = (
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:4173",
        "http://127.0.0.1:4173",
    )
