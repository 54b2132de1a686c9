import os
import warnings
from typing import Optional

from dotenv import load_dotenv

# 统一加载环境变量，确保配置来源一致。
# 注意：项目根目录的 .env 优先级高于外部 shell 环境变量。
load_dotenv(override=True)


def _get_env_int(key: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"环境变量 {key} 需要整数值，但当前为 {raw}") from exc


def _get_env_float(key: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"环境变量 {key} 需要浮点值，但当前为 {raw}") from exc


# ===== Remote gateway (movie/friends REST API) =====
#
# NOTE: This module is infrastructure-side config and may read env directly.
# Client-side feature switches live under `backend/config/settings.py`.

# Gateway provider selection: http or memory
SYNC_GATEWAY_PROVIDER = os.getenv("SYNC_GATEWAY_PROVIDER", "http").strip().lower()

SYNC_API_BASE_URL = os.getenv("SYNC_API_BASE_URL", "").strip()
SYNC_API_TOKEN = os.getenv("SYNC_API_TOKEN", "").strip()

_DEFAULT_API_TIMEOUT_S = 15.0
_raw_timeout = _get_env_float("SYNC_API_TIMEOUT_S", _DEFAULT_API_TIMEOUT_S)
if _raw_timeout is None or _raw_timeout <= 0:
    warnings.warn(
        "SYNC_API_TIMEOUT_S must be a positive number; using default.",
        RuntimeWarning,
        stacklevel=2,
    )
    _raw_timeout = _DEFAULT_API_TIMEOUT_S
SYNC_API_TIMEOUT_S = _raw_timeout

# Path prefixes, overridable when the API is mounted behind a proxy.
SYNC_MOVIES_PATH = os.getenv("SYNC_MOVIES_PATH", "/movies").strip() or "/movies"
SYNC_FRIENDS_PATH = os.getenv("SYNC_FRIENDS_PATH", "/friends").strip() or "/friends"

# Seed user for the in-memory provider (dev only).
SYNC_MEMORY_USER_ID = _get_env_int("SYNC_MEMORY_USER_ID", 1) or 1
