"""Run settings read from the environment (and a local .env file, if present)."""

import os

from dotenv import load_dotenv

from src.configs.sources import DEFAULT_EXCLUDED_STATES

load_dotenv()


def _parse_states(raw: str | None) -> tuple[str, ...]:
    if raw is None:
        return DEFAULT_EXCLUDED_STATES
    return tuple(s.strip().upper() for s in raw.split(",") if s.strip())


# environment variables
BASE_PATH = os.getenv("COUNTY_DATA_BASE_PATH")
EXCLUDED_STATES = _parse_states(os.getenv("EXCLUDED_STATES"))
CORRELATION_CONFIDENCE = float(os.getenv("CORRELATION_CONFIDENCE", "0.95"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
