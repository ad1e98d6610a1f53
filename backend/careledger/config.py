"""
Centralised configuration and environment helpers.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigurationError

load_dotenv()

# ── Defaults ─────────────────────────────────────────────────────────
DEFAULT_DATA_PATH = Path(__file__).resolve().parent / "data"
STORAGE_KINDS = {"memory", "file"}

DOCTORS_FILE = "doctors.json"
PATIENTS_FILE = "patients.json"
AUDIT_FILE = "audit.json"
KEY_FILE = "store.key"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass
class Settings:
    data_path: Path = DEFAULT_DATA_PATH
    storage: str = "file"
    encryption_key: Optional[str] = None
    enforce_all_mutations: bool = False
    log_level: str = "INFO"


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


def load_settings() -> Settings:
    """Build Settings from CARELEDGER_* environment variables."""
    storage = os.getenv("CARELEDGER_STORAGE", "file").strip().lower()
    if storage not in STORAGE_KINDS:
        raise ConfigurationError(
            f"CARELEDGER_STORAGE must be one of {sorted(STORAGE_KINDS)}, got {storage!r}"
        )
    data_dir = os.getenv("CARELEDGER_DATA_DIR")
    return Settings(
        data_path=Path(data_dir) if data_dir else DEFAULT_DATA_PATH,
        storage=storage,
        encryption_key=os.getenv("CARELEDGER_ENCRYPTION_KEY") or None,
        enforce_all_mutations=_env_flag("CARELEDGER_ENFORCE_ALL_MUTATIONS", False),
        log_level=os.getenv("CARELEDGER_LOG_LEVEL", "INFO").upper(),
    )
