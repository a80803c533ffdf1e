"""Project-level configuration, thresholds and path helpers."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_DB_PATH = DATA_DIR / "snapshots.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

NS_PER_SECOND = 1_000_000_000
NS_PER_MS = 1_000_000

# Connection health
WARN_PENDING = 10
CRIT_PENDING = 25
WARN_STALE_NS = 15 * NS_PER_SECOND
CRIT_STALE_NS = 60 * NS_PER_SECOND

# Query caps
STUCK_REQUEST_LIMIT = 500
MAX_QUERY_ROWS = 5000

# Timeline
DEFAULT_TIMELINE_PAGE_SIZE = 50
TIMELINE_ORIGIN_MAX_SKEW_NS = 30 * 24 * 60 * 60 * NS_PER_SECOND
DEFAULT_RECENT_WINDOW_SECONDS = 300


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        DATA_DIR.mkdir(parents=True, exist_ok=True)
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class HealthThresholds:
    """Pending-count and staleness limits used to classify connection legs."""

    warn_pending: int = WARN_PENDING
    crit_pending: int = CRIT_PENDING
    warn_stale_ns: int = WARN_STALE_NS
    crit_stale_ns: int = CRIT_STALE_NS

    @classmethod
    def from_env(cls) -> "HealthThresholds":
        """Build thresholds, letting SNAPINSPECT_* variables override defaults."""
        return cls(
            warn_pending=_env_int("SNAPINSPECT_WARN_PENDING", WARN_PENDING),
            crit_pending=_env_int("SNAPINSPECT_CRIT_PENDING", CRIT_PENDING),
            warn_stale_ns=_env_int("SNAPINSPECT_WARN_STALE_MS", WARN_STALE_NS // NS_PER_MS)
            * NS_PER_MS,
            crit_stale_ns=_env_int("SNAPINSPECT_CRIT_STALE_MS", CRIT_STALE_NS // NS_PER_MS)
            * NS_PER_MS,
        )


DEFAULT_THRESHOLDS = HealthThresholds()
