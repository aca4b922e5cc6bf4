"""Environment variable loading and validation."""

import os
import sys
from dotenv import load_dotenv

load_dotenv()

REQUIRED_VARS = [
    "YNAB_ACCESS_TOKEN",
]

OPTIONAL_VARS = [
    "YNAB_BUDGET_ID",
    "YNAB_API_BASE_URL",
    "CACHE_TTL_SECONDS",
    "ANALYSIS_TOLERANCE_MILLIUNITS",
    "INCLUDE_HIDDEN_CATEGORIES",
    "INCLUDE_DELETED_CATEGORIES",
    "MINIMUM_ASSIGNMENT_THRESHOLD",
    "LOG_LEVEL",
]


def _load_env():
    missing = [v for v in REQUIRED_VARS if not os.getenv(v)]
    if missing:
        print(f"Missing required environment variables: {', '.join(missing)}", file=sys.stderr)
        print("Copy .env.example to .env and fill in all values.", file=sys.stderr)
        sys.exit(1)


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


_load_env()

# YNAB
YNAB_ACCESS_TOKEN: str = os.environ["YNAB_ACCESS_TOKEN"]
YNAB_BUDGET_ID: str = os.environ.get("YNAB_BUDGET_ID", "")  # optional default budget
YNAB_API_BASE_URL: str = os.environ.get("YNAB_API_BASE_URL", "https://api.ynab.com/v1")
CACHE_TTL_SECONDS: int = int(os.environ.get("CACHE_TTL_SECONDS", "300"))

# Analysis defaults (milliunits)
ANALYSIS_TOLERANCE_MILLIUNITS: int = int(os.environ.get("ANALYSIS_TOLERANCE_MILLIUNITS", "1000"))
INCLUDE_HIDDEN_CATEGORIES: bool = _env_bool("INCLUDE_HIDDEN_CATEGORIES")
INCLUDE_DELETED_CATEGORIES: bool = _env_bool("INCLUDE_DELETED_CATEGORIES")
MINIMUM_ASSIGNMENT_THRESHOLD: int = int(os.environ.get("MINIMUM_ASSIGNMENT_THRESHOLD", "0"))

LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()


def configuration_status() -> dict:
    """Which variables are set, without exposing their values."""
    missing = [v for v in REQUIRED_VARS if not os.getenv(v)]
    return {
        "valid": not missing,
        "missing_vars": missing,
        "optional_set": [v for v in OPTIONAL_VARS if os.getenv(v)],
    }
