"""Runtime settings read from ``XOARENA_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 8000
    # Seconds the AI "thinks" before replying (min, max)
    ai_think_delay: Tuple[float, float] = (0.3, 0.7)
    stats_path: Optional[Path] = None
    log_level: str = "INFO"


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if env is None else env
    delay_min = float(env.get("XOARENA_AI_DELAY_MIN", "0.3"))
    delay_max = float(env.get("XOARENA_AI_DELAY_MAX", "0.7"))
    if delay_max < delay_min:
        raise ValueError("XOARENA_AI_DELAY_MAX must not be below XOARENA_AI_DELAY_MIN")
    stats_path = env.get("XOARENA_STATS_PATH")
    return Settings(
        host=env.get("XOARENA_HOST", "0.0.0.0"),
        port=int(env.get("XOARENA_PORT", "8000")),
        ai_think_delay=(delay_min, delay_max),
        stats_path=Path(stats_path) if stats_path else None,
        log_level=env.get("XOARENA_LOG_LEVEL", "INFO").upper(),
    )
