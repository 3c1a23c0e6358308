"""
Environment configuration.
Values come from the process environment, optionally seeded from a .env file.
"""

import os
from typing import List

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

HOST_PORT = os.getenv("HOST_PORT", "8000")

# Largest number of sale + return records accepted in one calculation request.
# Callers bound their input size; the engine itself has no timeout.
MAX_RECORDS_PER_CALCULATION = int(os.getenv("MAX_RECORDS_PER_CALCULATION", "50000"))

DEFAULT_CALCULATION_MODE = os.getenv("DEFAULT_CALCULATION_MODE", "dry_run")

if DEFAULT_CALCULATION_MODE not in ("dry_run", "commit"):
    raise ValueError(
        f"DEFAULT_CALCULATION_MODE must be 'dry_run' or 'commit', got {DEFAULT_CALCULATION_MODE!r}"
    )


def get_cors_origins() -> List[str]:
    """
    Build the list of allowed CORS origins.

    Always includes the local dev front-ends (ports 3000 and 3001). Extra
    origins come from CORS_ORIGINS as a comma-separated list, e.g.
        CORS_ORIGINS=https://backoffice.example.com,https://preview.example.com

    Duplicates are removed while preserving order.
    """
    always_included = [
        "http://localhost:3000",
        "http://localhost:3001",
    ]

    extra_origins: List[str] = []
    cors_env = os.getenv("CORS_ORIGINS", "").strip()
    if cors_env:
        extra_origins = [o.strip() for o in cors_env.split(",") if o.strip()]

    seen: set = set()
    origins: List[str] = []
    for origin in always_included + extra_origins:
        if origin not in seen:
            seen.add(origin)
            origins.append(origin)

    return origins
