"""Constants used across the handy-client package."""

from __future__ import annotations

from pathlib import Path

APP_NAME = "handy-client"
DEFAULT_CONFIG_FILENAME = f"{APP_NAME}.cfg"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / APP_NAME / DEFAULT_CONFIG_FILENAME

DEFAULT_API_BASE_URL = "https://www.handyfeeling.com/api/v1"
DEFAULT_UPLOAD_URL = "https://www.handyfeeling.com/api/sync/upload"
UPLOAD_FIELD_NAME = "syncFile"

DEFAULT_REQUEST_TIMEOUT_SECONDS = 10.0
DEFAULT_UPLOAD_TIMEOUT_SECONDS = 120.0
DEFAULT_SYNC_TRIPS = 30
DEFAULT_PREPARE_TIMEOUT_MS = 30000

# Raw speed reported by stepSpeed is four times too large on API v1.0.0.
DEFAULT_SPEED_CORRECTION_FACTOR = 0.25

MAX_SPEED_MM_PER_S = 400.0
MAX_STROKE_MM = 200.0
STROKE_MM_PER_PERCENT = MAX_STROKE_MM / 100.0

PATTERN_HEADER = '#{"type":"handy"}'
GENERATED_FILE_PREFIX = "HandyClientGenerated"
