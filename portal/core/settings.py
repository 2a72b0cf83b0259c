"""
Environment-backed settings.

Values are read on call so tests can monkeypatch the environment.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_SHEET_CACHE_TTL_SECONDS = 300
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MiB
DEFAULT_CORS_ORIGINS = ("http://localhost:5173", "http://127.0.0.1:5173")


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_json(name: str, default: Any) -> Any:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("invalid_json_setting name=%s", name)
        return default


def log_level() -> str:
    return os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"


def cors_origins() -> list[str]:
    raw = os.environ.get("CORS_ORIGINS", "").strip()
    if not raw:
        return list(DEFAULT_CORS_ORIGINS)
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def sheet_cache_ttl_seconds() -> int:
    value = env_int("SHEET_CACHE_TTL_SECONDS", DEFAULT_SHEET_CACHE_TTL_SECONDS)
    if value < 1:
        logger.warning("invalid_sheet_cache_ttl value=%s using=1", value)
        return 1
    if value != DEFAULT_SHEET_CACHE_TTL_SECONDS:
        logger.warning("sheet_cache_ttl_overridden value=%s default=%s", value, DEFAULT_SHEET_CACHE_TTL_SECONDS)
    return value


def max_upload_bytes() -> int:
    value = env_int("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES)
    return value if value > 0 else DEFAULT_MAX_UPLOAD_BYTES


def drive_folder_id() -> str | None:
    return os.environ.get("GOOGLE_DRIVE_FOLDER_ID", "").strip() or None


def service_account_info() -> dict[str, Any]:
    info = env_json("GOOGLE_SERVICE_ACCOUNT_JSON", None)
    if not isinstance(info, dict):
        raise RuntimeError("GOOGLE_SERVICE_ACCOUNT_JSON is not set or is not a JSON object.")
    return info


def static_sheet_configs() -> dict[str, dict[str, str]]:
    """
    Fallback report locations from GOOGLE_SHEETS_CONFIG.

    Shape: {"<report_key>": {"sheetId": "...", "range": "Tab!A1:Z"}}.
    Entries without both values are skipped.
    """
    raw = env_json("GOOGLE_SHEETS_CONFIG", {})
    if not isinstance(raw, dict):
        logger.warning("invalid_static_sheet_config type=%s", type(raw).__name__)
        return {}

    configs: dict[str, dict[str, str]] = {}
    for report_key, entry in raw.items():
        if not isinstance(entry, dict):
            continue
        sheet_id = str(entry.get("sheetId") or entry.get("sheet_id") or "").strip()
        range_ = str(entry.get("range") or "").strip()
        if sheet_id and range_:
            configs[str(report_key)] = {"sheet_id": sheet_id, "range": range_}
    return configs
