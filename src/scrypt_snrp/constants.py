"""Constant values used across the scrypt parameter calibrator."""

import os


def _load_target() -> int:
    """Return calibration target from ``SNRP_TARGET_USECONDS``.

    Raises:
        RuntimeError: When the value is not a positive integer.

    Returns:
        int: Target duration of one derivation in microseconds.
    """

    env = os.getenv("SNRP_TARGET_USECONDS")
    if env is None:
        return 250_000
    try:
        value = int(env)
    except ValueError as exc:
        raise RuntimeError("SNRP_TARGET_USECONDS must be an integer") from exc
    if value <= 0:
        raise RuntimeError("SNRP_TARGET_USECONDS must be positive")
    return value


def _load_network() -> str:
    """Return default network name from ``SNRP_NETWORK``."""

    value = os.getenv("SNRP_NETWORK", "mainnet").strip().lower()
    if not value:
        raise RuntimeError("SNRP_NETWORK must not be empty")
    return value


TARGET_USECONDS = _load_target()
DEFAULT_NETWORK = _load_network()

SALT_BYTES = 32

# Parameters the server derives with; changing them breaks login
SERVER_N = 16384
SERVER_R = 1
SERVER_P = 1

# Baseline used for the calibration benchmark
DEFAULT_SHIFT = 14
DEFAULT_R = 1
DEFAULT_P = 1

MIN_R = 8
MIN_SHIFT = 1
MAX_SHIFT = 17

# 0x1F400000 bytes, the "512MB" ceiling deployed clients enforce
MEMORY_LIMIT = 0x1F400000
# 2^30, scrypt rejects r * p at or above this
OVERFLOW_LIMIT = 0x40000000

# Cached calibrations are refreshed monthly
DEFAULT_CACHE_TTL = 30 * 24 * 60 * 60

MAX_HASH_BYTES = 1024
