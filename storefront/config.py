"""Configuration management."""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Application configuration."""

    # Remote store API
    API_URL = os.getenv(
        "STOREFRONT_API_URL",
        "https://bookstore-backend-production-5d76.up.railway.app/api"
    )

    # Session slot
    SESSION_FILE = os.getenv(
        "STOREFRONT_SESSION_FILE",
        os.path.join(os.path.expanduser("~"), ".storefront", "session.json")
    )

    # Defaults
    DEFAULT_TIMEOUT = int(os.getenv("DEFAULT_TIMEOUT", "10"))
    DEFAULT_MAX_RETRIES = int(os.getenv("DEFAULT_MAX_RETRIES", "3"))
    DEFAULT_MAX_CONCURRENT = int(os.getenv("DEFAULT_MAX_CONCURRENT", "5"))
    SEARCH_DEBOUNCE_SECONDS = float(os.getenv("SEARCH_DEBOUNCE_SECONDS", "0.5"))
