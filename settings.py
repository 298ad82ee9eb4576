# settings.py
# JSON file standing in for browser local storage (daily target, running timer).
from __future__ import annotations
import json
import logging
import math
import os
import threading
from pathlib import Path

logger = logging.getLogger(__name__)

DAILY_TARGET_KEY = "daily_target_hours"
DEFAULT_DAILY_TARGET = 9.0


class KeyValueStore:
    """String keys to JSON values, stored in a single file."""
    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring unreadable settings file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)

    def get(self, key: str, default=None):
        with self._lock:
            return self._read().get(key, default)

    def set(self, key: str, value) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)


def parse_daily_target(raw) -> float | None:
    """Positive finite float, or None when `raw` is not one."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def default_daily_target() -> float:
    """DAILY_TARGET_HOURS from the environment when valid, else 9.0."""
    return parse_daily_target(os.getenv("DAILY_TARGET_HOURS")) or DEFAULT_DAILY_TARGET


def load_daily_target(store: KeyValueStore) -> float:
    raw = store.get(DAILY_TARGET_KEY)
    value = parse_daily_target(raw)
    if value is None:
        if raw is not None:
            logger.warning(f"Invalid stored daily target {raw!r}, using default")
        return default_daily_target()
    return value


def save_daily_target(store: KeyValueStore, hours) -> float:
    """Persists a valid target (or the default if `hours` is invalid) and returns it."""
    value = parse_daily_target(hours)
    if value is None:
        value = default_daily_target()
    store.set(DAILY_TARGET_KEY, value)
    return value
