# File: config.py
# snaplog - runtime configuration

from __future__ import annotations
import os
from pathlib import Path

from dotenv import load_dotenv

# optional overrides from a .env file in the working directory
load_dotenv()

# -------- helpers --------
def _env(name: str, default: str) -> str:
    v = os.getenv(name)
    return v if v not in (None, "") else default

def _env_int(name: str, default: int) -> int:
    try:
        return int(_env(name, str(default)))
    except ValueError:
        return default

def _env_bool(name: str, default: bool) -> bool:
    v = _env(name, str(default)).strip().lower()
    return v in ("1", "true", "yes", "y", "on") if v else default

def _env_path(name: str, default: str) -> Path:
    return Path(_env(name, default)).expanduser()

# ---- Feature Flags ----
DEBUG_MODE = _env_bool("DEBUG_MODE", True)           # verbose console logs

# ---- Paths ----
LOG_DIR         = _env_path("LOG_DIR", "logs")
EXPRESSIONS_DIR = _env_path("SNAPLOG_EXPRESSIONS_DIR", "expressions")   # *.ptExp output
CONVERSIONS_DIR = _env_path("SNAPLOG_CONVERSIONS_DIR", "conversions")   # imported expression files

# JSON file of {"pattern_name": "regex"} overrides. Empty = built-in patterns only.
PATTERN_FILE = os.getenv("SNAPLOG_PATTERN_FILE") or None

# ---- Expression files ----
SEPARATOR_WIDTH = _env_int("SNAPLOG_SEPARATOR_WIDTH", 100)
EXPRESSION_FILE_SUFFIX = ".ptExp"

# ---- Batch generation ----
# 0 = one worker per logical CPU
WORKER_COUNT = _env_int("SNAPLOG_WORKERS", 0)

# ---- Local API ----
API_HOST = _env("API_HOST", "127.0.0.1")
API_PORT = _env_int("API_PORT", 8734)

# ---- Logging ----
LOG_LEVEL = "DEBUG" if DEBUG_MODE else "INFO"
