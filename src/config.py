"""
Runtime configuration for the School Portal client.

Values come from environment variables so the same build can point at a
local backend during development and at the institute server in production.
"""

import logging
import os

API_BASE_URL = os.getenv("SCHOOL_API_URL", "http://localhost:5000").rstrip("/")
DB_PATH = os.getenv("SCHOOL_DB_PATH", "school_session.db")
REQUEST_TIMEOUT = float(os.getenv("SCHOOL_REQUEST_TIMEOUT", "15"))
LOG_LEVEL = os.getenv("SCHOOL_LOG_LEVEL", "INFO").upper()
EXPORT_DIR = os.getenv("SCHOOL_EXPORT_DIR", ".")

STATISTICS_ENDPOINT = "/api/enquiries/statistics"


def configure_logging(level: str = LOG_LEVEL):
    """Configure root logging once for the whole app."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
