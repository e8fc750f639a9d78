from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

_env_path = Path(__file__).resolve().parents[1] / ".env"
if _env_path.is_file():
    load_dotenv(_env_path, override=False)

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass
class MolrwSettings:
    """Configuration loaded from MOLRW_* environment variables.

    Logging:
      MOLRW_LOG_LEVEL=INFO

    Text decoding (reads and writes):
      MOLRW_ENCODING=utf-8
      MOLRW_ENCODING_ERRORS=replace

    Reader behaviour:
      MOLRW_STRICT=false          raise on the first unparsable record
      MOLRW_DEFAULT_FORMAT=       fallback tag for the CLI when guessing fails
    """

    log_level: str = "INFO"
    encoding: str = "utf-8"
    encoding_errors: str = "replace"
    strict: bool = False
    default_format: Optional[str] = None


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() in ("true", "1", "yes")


def load_settings() -> MolrwSettings:
    """Load settings from environment variables."""
    level = os.environ.get("MOLRW_LOG_LEVEL", "INFO").upper()
    if level not in _LOG_LEVELS:
        level = "INFO"

    return MolrwSettings(
        log_level=level,
        encoding=os.environ.get("MOLRW_ENCODING", "utf-8"),
        encoding_errors=os.environ.get("MOLRW_ENCODING_ERRORS", "replace"),
        strict=_env_flag("MOLRW_STRICT"),
        default_format=os.environ.get("MOLRW_DEFAULT_FORMAT") or None,
    )
