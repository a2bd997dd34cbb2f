"""Runtime settings for gedline, read from the environment (and a .env file)."""

import logging
import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger("gedline.config")

LINE_TERMINATORS = {
    "lf": "\n",
    "crlf": "\r\n",
}


class Settings(BaseModel):
    """Settings shared by the writer, the validator and the HTTP backend."""
    log_level: str = Field(default="INFO")
    line_terminator: str = Field(default="\n")
    validate_before_write: bool = Field(default=True)
    # When False, finding collections start out as None and are created on first use
    collection_initialization: bool = Field(default=True)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    logger.warning(f"Ignoring unrecognised boolean for {name}: {raw!r}")
    return default


def load_settings() -> Settings:
    """Build a Settings object from environment variables."""
    load_dotenv()

    terminator_name = os.getenv("GEDLINE_LINE_TERMINATOR", "lf").strip().lower()
    if terminator_name not in LINE_TERMINATORS:
        logger.warning(f"Unknown line terminator '{terminator_name}', using 'lf'")
        terminator_name = "lf"

    return Settings(
        log_level=os.getenv("GEDLINE_LOG_LEVEL", "INFO").strip().upper() or "INFO",
        line_terminator=LINE_TERMINATORS[terminator_name],
        validate_before_write=_env_bool("GEDLINE_VALIDATE_BEFORE_WRITE", True),
        collection_initialization=_env_bool("GEDLINE_COLLECTION_INITIALIZATION", True),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, read once."""
    return load_settings()
