"""Static configuration for termhistory.

User-editable settings (database location, logging) live in a single JSON
file. A .env file may override the database path for local setups.
"""

import json
import os

from dotenv import load_dotenv

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def resolve_path(path: str) -> str:
    """Resolve a configured path against the project root."""

    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


load_dotenv()

_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Where to store the SQLite database. TERMHISTORY_DB_PATH wins over config.json.
_database = _CONFIG.get("database", {})
DB_PATH = resolve_path(os.getenv("TERMHISTORY_DB_PATH") or _database.get("path", "termhistory.db"))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
