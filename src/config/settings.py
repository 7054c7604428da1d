"""
Configuration settings for the Garage Users API
"""

import os
import logging

logger = logging.getLogger(__name__)


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Environment configuration
ENV = os.getenv("ENV", "PROD")  # PROD or QA
DATABASE_URL = os.getenv("DATABASE_URL")
PORT = int(os.getenv("PORT", 8080))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Connection pool configuration
DB_POOL_MIN_SIZE = int(os.getenv("DB_POOL_MIN_SIZE", 2))
DB_POOL_MAX_SIZE = int(os.getenv("DB_POOL_MAX_SIZE", 10))
DB_COMMAND_TIMEOUT = float(os.getenv("DB_COMMAND_TIMEOUT", 60))  # seconds per statement
DB_APPLY_SCHEMA = _get_bool("DB_APPLY_SCHEMA", False)

# Aggregate cars with json_agg in SQL; when disabled a second batched query is used instead
RELATIONS_JSON_AGGREGATION = _get_bool("RELATIONS_JSON_AGGREGATION", True)

# Pagination
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", 10))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", 100))
# Largest page number whose offset still fits a bigint
MAX_PAGE = (2 ** 63 - 1) // MAX_PAGE_SIZE

# CORS settings
ALLOWED_ORIGINS = [origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",") if origin.strip()]

logger.info(f"Environment: {ENV}")

# Validate required environment variables
if not DATABASE_URL:
    raise ValueError("DATABASE_URL environment variable is required")
if DEFAULT_PAGE_SIZE > MAX_PAGE_SIZE:
    raise ValueError("DEFAULT_PAGE_SIZE must not exceed MAX_PAGE_SIZE")
