"""
Runtime configuration.

Values come from environment variables; a local .env file is loaded first
so the Streamlit process picks up GEMINI_API_KEY without extra setup.
"""

import os
import logging
from dotenv import load_dotenv


# Load .env so keys are available even when running via Streamlit
load_dotenv()

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DATA_DIR = os.path.join(BASE_DIR, "data")

DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{os.path.join(DATA_DIR, 'emergency.db')}")
UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join(DATA_DIR, "uploads"))

GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
GEMINI_ENDPOINT = os.getenv("GEMINI_ENDPOINT", "https://generativelanguage.googleapis.com")
GEMINI_TIMEOUT = float(os.getenv("GEMINI_TIMEOUT", "30"))

GEOLOCATION_URL = os.getenv("GEOLOCATION_URL", "https://ipapi.co/json/")

# Operator dashboard polling interval (seconds)
DASHBOARD_REFRESH_SECONDS = int(os.getenv("DASHBOARD_REFRESH_SECONDS", "5"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def get_api_key():
    return os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY")


def configure_logging(level: str | None = None):
    """Configure root logging once for the Streamlit process."""
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
