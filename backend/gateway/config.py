"""Configuration module for the gateway backend.

Handles environment variables, constants, and global configuration.
Provides basic logging setup.
"""

import os
import sys
import logging
from typing import List
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Configure logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid {name} '{raw}', defaulting to {default}")
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Invalid {name} '{raw}', defaulting to {default}")
        return default


# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = _env_int("PORT", 3000)
API_BASE_PATH = "/" + os.getenv("API_BASE_PATH", "/api2").strip("/")

# CORS (the frontend dev server runs on :5173)
CORS_ORIGINS: List[str] = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    if o.strip()
]
CORS_METHODS = ["GET", "POST", "PATCH", "PUT", "DELETE", "HEAD"]

# Testing and development flags
is_testing = os.getenv("PYTEST_CURRENT_TEST") is not None or "pytest" in sys.modules
ENABLE_REQUEST_LOGGING = os.getenv("ENABLE_REQUEST_LOGGING", "false").lower() == "true"

# Dialogflow configuration
# PROJECT_ID, GOOGLE_CLIENT_EMAIL and GOOGLE_PRIVATE_KEY are read at
# initialization time by gateway.credentials, not here.
CHATBOT_REQUIRED_VARIABLES = ("PROJECT_ID", "GOOGLE_CLIENT_EMAIL", "GOOGLE_PRIVATE_KEY")
DIALOGFLOW_LANGUAGE_CODE = os.getenv("DIALOGFLOW_LANGUAGE_CODE", "en-US")
GOOGLE_TOKEN_URI = os.getenv("GOOGLE_TOKEN_URI", "https://oauth2.googleapis.com/token")
NLU_INIT_MAX_ATTEMPTS = _env_int("NLU_INIT_MAX_ATTEMPTS", 3)
NLU_INIT_RETRY_DELAY_SECONDS = _env_float("NLU_INIT_RETRY_DELAY_SECONDS", 1.0)
NLU_REQUEST_TIMEOUT_SECONDS = _env_float("NLU_REQUEST_TIMEOUT_SECONDS", 30.0)

# Stripe configuration
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "inr").lower()

if not STRIPE_SECRET_KEY and not is_testing:
    logger.warning("STRIPE_SECRET_KEY not set; payment requests will fail until it is configured")
