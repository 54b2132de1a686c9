import os
from pathlib import Path

from dotenv import load_dotenv

# Client-side settings: sync behaviour and view switches.
# Infrastructure connection settings live under `backend/infrastructure/config/`.
load_dotenv(override=True)


def _get_env_int(key: str, default: int) -> int:
    """读取整型环境变量，未设置时返回默认值"""
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"环境变量 {key} 需要整数值，但实际为 {raw}") from exc


def _get_env_choice(key: str, default: str, choices: set[str]) -> str:
    """读取枚举型环境变量，取值不在 choices 中时报错"""
    raw = (os.getenv(key) or "").strip().lower()
    if raw == "":
        return default
    if raw not in choices:
        raise ValueError(f"环境变量 {key} 需要为 {sorted(choices)} 之一，但实际为 {raw}")
    return raw


# ===== View projection =====

SYNC_PAGE_SIZE = _get_env_int("SYNC_PAGE_SIZE", 9)
if SYNC_PAGE_SIZE <= 0:
    raise ValueError(f"环境变量 SYNC_PAGE_SIZE 需要为正整数，但实际为 {SYNC_PAGE_SIZE}")

SYNC_DEFAULT_SORT_MODE = _get_env_choice(
    "SYNC_DEFAULT_SORT_MODE",
    "newest",
    {"newest", "oldest", "rating_high", "rating_low", "user_rating_high", "user_rating_low"},
)

# Where the selected sort mode is remembered between runs.
SYNC_VIEW_PREFERENCES_PATH = Path(
    os.getenv("SYNC_VIEW_PREFERENCES_PATH", Path.home() / ".movietracker" / "view.yaml")
).expanduser()

# ===== Pending request badge =====
#
# remote: read the server's count endpoint (may briefly disagree with Incoming).
# derived: recompute from the Incoming collection whenever it is replaced.

SYNC_PENDING_COUNT_SOURCE = _get_env_choice("SYNC_PENDING_COUNT_SOURCE", "remote", {"remote", "derived"})
