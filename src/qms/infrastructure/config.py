"""Runtime settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

# When installed in editable mode the project root is the repo root.
_DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


@dataclass(frozen=True)
class Settings:

    data_dir: Path = _DEFAULT_DATA_DIR
    inventory_url: str | None = None
    lookup_timeout: float = 5.0
    event_backend: str = "memory"
    redis_url: str = "redis://localhost:6379"
    consumer_group: str = "inventory"
    consumer_name: str = "inventory-1"
    log_level: str = "INFO"

    @staticmethod
    def from_env() -> Settings:
        env = os.environ
        return Settings(
            data_dir=Path(env.get("QMS_DATA_DIR", str(_DEFAULT_DATA_DIR))),
            inventory_url=env.get("QMS_INVENTORY_URL") or None,
            lookup_timeout=float(env.get("QMS_LOOKUP_TIMEOUT", "5.0")),
            event_backend=env.get("QMS_EVENT_BACKEND", "memory").lower(),
            redis_url=env.get("QMS_REDIS_URL", "redis://localhost:6379"),
            consumer_group=env.get("QMS_CONSUMER_GROUP", "inventory"),
            consumer_name=env.get("QMS_CONSUMER_NAME", "inventory-1"),
            log_level=env.get("QMS_LOG_LEVEL", "INFO").upper(),
        )
