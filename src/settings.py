"""Static configuration for telescrape.

Bot settings (prefix, paths, fetch limits, admins, heartbeat, logging) live in
a single JSON file for quick edits without touching Python. Scrape rules live
in their own file, pointed to by ``scrapers_path``.
"""

import json
import os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.environ.get("TELESCRAPE_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


def _normalize_admins(raw_admins: list[dict]) -> list[tuple[str, str]]:
    """Return (chat_id, username) pairs, dropping incomplete entries."""

    admins: list[tuple[str, str]] = []
    for entry in raw_admins:
        chat_id = entry.get("chat_id")
        user = str(entry.get("user", "")).lstrip("@").lower()
        if chat_id is None or not user:
            continue
        admins.append((str(chat_id), user))
    return admins


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Commands look like "<prefix><trigger> <arguments>".
COMMAND_PREFIX = _CONFIG.get("command_prefix", "!")

# Scrape rules file; an example is written here when it is missing.
SCRAPERS_PATH = _resolve_path(_CONFIG.get("scrapers_path", "scrapers.json"))

# Where to store the SQLite database (admin permissions).
DB_PATH = _resolve_path(_CONFIG.get("db_path", os.path.join("src", "telescrape.db")))

# Transport limits for the content fetcher.
_fetch = _CONFIG.get("fetch", {})
FETCH_TIMEOUT_SECONDS = float(_fetch.get("timeout_seconds", 15))
FETCH_USER_AGENT = _fetch.get("user_agent", "telescrape/1.0")

# Admins seeded into storage at startup, as (chat_id, username) pairs.
ADMINS = _normalize_admins(_CONFIG.get("admins", []))

# Optional liveness message posted to one chat.
_heartbeat = _CONFIG.get("heartbeat", {})
HEARTBEAT_ENABLED = bool(_heartbeat.get("enabled", False))
HEARTBEAT_SECONDS = float(_heartbeat.get("seconds", 3600))
HEARTBEAT_CHAT_ID = _heartbeat.get("chat_id")
HEARTBEAT_TEXT = _heartbeat.get("text", "Still alive.")

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
