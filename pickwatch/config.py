"""Application configuration — environment variables and defaults.

The backend URL and the polling cadence live HERE.
Persistent sync settings are stored in user_config/sync_config.json.
"""

import json
import os
from pathlib import Path
from typing import Any


class Settings:
    """Central configuration pulled from environment with safe defaults."""

    # Paths
    BASE_DIR: Path = Path(__file__).resolve().parent.parent
    LOGS_DIR: Path = Path(os.getenv("PICKWATCH_LOGS_DIR", str(BASE_DIR / "logs")))
    USER_CONFIG_DIR: Path = Path(__file__).resolve().parent / "user_config"

    # ── Backend actor ──────────────────────────────────────────────
    # Empty URL means no actor handle: reads fall back to "no data",
    # the manual scan trigger fails immediately.
    BACKEND_URL: str = os.getenv("BACKEND_URL", "")
    BACKEND_TIMEOUT_SECONDS: float = float(os.getenv("BACKEND_TIMEOUT_SECONDS", "10"))

    # ── Sync cadence ───────────────────────────────────────────────
    POLL_INTERVAL_MS: int = int(os.getenv("POLL_INTERVAL_MS", "30000"))
    STALE_AFTER_MS: int = int(os.getenv("STALE_AFTER_MS", "25000"))

    # Exchange the picks are scanned for (NSE/BSE, fixed UTC+5:30)
    EXCHANGE_TZ: str = os.getenv("EXCHANGE_TZ", "Asia/Kolkata")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_KEEP_RUNS: int = int(os.getenv("LOG_KEEP_RUNS", "10"))

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # ── Sync config JSON path ─────────────────────────────────────
    SYNC_CONFIG_PATH: Path = USER_CONFIG_DIR / "sync_config.json"

    def __init__(self) -> None:
        """Ensure runtime directories exist and load persisted sync config."""
        self.LOGS_DIR.mkdir(parents=True, exist_ok=True)
        self.load_sync_config()

    @property
    def backend_configured(self) -> bool:
        """True when a backend URL is set (an actor handle can be built)."""
        return bool(self.BACKEND_URL.strip())

    # ── Persistent sync configuration ─────────────────────────────

    def load_sync_config(self) -> None:
        """Load sync settings from sync_config.json, overriding env-var defaults."""
        if not self.SYNC_CONFIG_PATH.exists():
            return
        try:
            data = json.loads(self.SYNC_CONFIG_PATH.read_text(encoding="utf-8"))
            self._apply_sync_config(data)
        except (json.JSONDecodeError, OSError, ValueError):
            pass  # Corrupted file, fall back to defaults

    def _apply_sync_config(self, data: dict[str, Any]) -> None:
        """Apply a config dict to the running settings instance."""
        if "backend_url" in data:
            self.BACKEND_URL = str(data["backend_url"])
        if "backend_timeout_seconds" in data:
            self.BACKEND_TIMEOUT_SECONDS = float(data["backend_timeout_seconds"])
        if "poll_interval_ms" in data:
            self.POLL_INTERVAL_MS = int(data["poll_interval_ms"])
        if "stale_after_ms" in data:
            self.STALE_AFTER_MS = int(data["stale_after_ms"])

    def update_sync_config(self, data: dict[str, Any]) -> dict[str, Any]:
        """Write new sync settings to disk and hot-patch the running singleton.

        Cadence changes take effect the next time the scheduler is started.
        Returns the saved config dict.
        """
        # Merge with existing file (so partial updates work)
        existing: dict[str, Any] = {}
        if self.SYNC_CONFIG_PATH.exists():
            try:
                existing = json.loads(
                    self.SYNC_CONFIG_PATH.read_text(encoding="utf-8")
                )
            except (json.JSONDecodeError, OSError):
                pass

        merged = {**existing, **data}
        self.SYNC_CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        self.SYNC_CONFIG_PATH.write_text(
            json.dumps(merged, indent=4) + "\n", encoding="utf-8"
        )

        self._apply_sync_config(merged)
        return merged

    def get_sync_config(self) -> dict[str, Any]:
        """Return the current sync configuration as a dict."""
        return {
            "backend_url": self.BACKEND_URL,
            "backend_timeout_seconds": self.BACKEND_TIMEOUT_SECONDS,
            "poll_interval_ms": self.POLL_INTERVAL_MS,
            "stale_after_ms": self.STALE_AFTER_MS,
        }


settings = Settings()
