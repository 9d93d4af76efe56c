"""
Unified configuration for genericdao.

Values come from the process environment; a `.env` file at the project root
is loaded first when present.

Environment variables:
- DB: GENERICDAO_DATABASE_URL, GENERICDAO_DB_ECHO, GENERICDAO_DB_POOL_SIZE,
  GENERICDAO_DB_MAX_OVERFLOW, GENERICDAO_DB_POOL_TIMEOUT, GENERICDAO_DB_POOL_RECYCLE
- Search: GENERICDAO_MAX_RESULTS_LIMIT
"""

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv


# =============================================================================
# 1. Environment Loading
# =============================================================================
def get_project_root() -> Path:
    """Walk up from this file until a directory holding `.env` or `.git` is found."""
    current_path = Path(__file__).resolve()
    for parent in current_path.parents:
        if (parent / ".env").exists() or (parent / ".git").exists():
            return parent
    return current_path.parents[2]  # Fallback


PROJECT_ROOT = get_project_root()
ENV_PATH = PROJECT_ROOT / ".env"

if ENV_PATH.exists():
    load_dotenv(ENV_PATH)
else:
    load_dotenv()


# =============================================================================
# 2. Helper Functions
# =============================================================================
def get_env(key: str, default: Any = None, cast_to: type = str) -> Any:
    """Read an environment variable and cast it, falling back to `default`."""
    value = os.getenv(key)
    if value is None:
        return default

    if cast_to is bool:
        return value.lower() in ("true", "1", "yes", "on")
    if cast_to is list:
        return [x.strip() for x in value.split(",") if x.strip()]
    try:
        return cast_to(value)
    except (ValueError, TypeError):
        return default


# =============================================================================
# 3. Database Configuration
# =============================================================================
DB_CONFIG = {
    "url": get_env("GENERICDAO_DATABASE_URL", "sqlite:///:memory:"),
    "echo": get_env("GENERICDAO_DB_ECHO", False, bool),
    "pool_size": get_env("GENERICDAO_DB_POOL_SIZE", 5, int),
    "max_overflow": get_env("GENERICDAO_DB_MAX_OVERFLOW", 10, int),
    "pool_timeout": get_env("GENERICDAO_DB_POOL_TIMEOUT", 30, int),
    "pool_recycle": get_env("GENERICDAO_DB_POOL_RECYCLE", 3600, int),
}

# =============================================================================
# 4. Search Configuration
# =============================================================================
SEARCH_CONFIG = {
    # Upper bound applied to Search.max_results (0 = no cap)
    "max_results_limit": get_env("GENERICDAO_MAX_RESULTS_LIMIT", 0, int),
}

if SEARCH_CONFIG["max_results_limit"] < 0:
    raise RuntimeError(
        f"Invalid GENERICDAO_MAX_RESULTS_LIMIT: {SEARCH_CONFIG['max_results_limit']}. Must be >= 0"
    )
