"""Redis-backed storage for calibrated parameter sets."""

import logging
import os
import ssl
from typing import Any, Callable

from .constants import DEFAULT_CACHE_TTL
from .core import ParameterSet, create

logger = logging.getLogger(__name__)

KEY_PREFIX = "snrp:"


class RedisCache:
    def __init__(self, client, prefix: str = KEY_PREFIX):
        """Initialize wrapper around a Redis client.

        Args:
            client: Redis client instance.
            prefix: Namespace prepended to every key.

        Returns:
            None
        """

        self.client = client
        self.prefix = prefix

    def get_or_set(
        self,
        key: str,
        ttl: int,
        producer: Callable[[], bytes],
        decode: Callable[[bytes], Any] = bytes,
    ) -> Any:
        """Return decoded cached value, or compute, store and decode it.

        A cached value that ``decode`` rejects is discarded and replaced.

        Args:
            key: Cache key, without the namespace prefix.
            ttl: Time-to-live in seconds.
            producer: Callable producing the raw value.
            decode: Turns raw bytes into the returned object; raises
                ``ValueError``, ``TypeError`` or ``KeyError`` on bad input.

        Returns:
            Any: Decoded cached or newly produced value.
        """

        if not isinstance(ttl, int) or ttl <= 0:
            raise ValueError("ttl must be a positive integer")

        full_key = self.prefix + key
        cached = self.client.get(full_key)
        if cached:
            try:
                return decode(cached)
            except (ValueError, TypeError, KeyError) as exc:
                logger.warning("discarding unreadable entry %s: %s", full_key, exc)
        value = producer()
        self.client.setex(full_key, ttl, value)
        return decode(value)


def create_cached(
    cache: RedisCache, key: str, ttl: int = DEFAULT_CACHE_TTL, **create_kwargs: Any
) -> ParameterSet:
    """Return the calibration stored under ``key``, calibrating on a miss.

    Args:
        cache: Cache holding serialized parameter sets.
        key: Cache key, usually identifying the device.
        ttl: Seconds before the device is recalibrated.
        **create_kwargs: Forwarded to :func:`scrypt_snrp.core.create`.

    Returns:
        ParameterSet: Cached or freshly calibrated parameters.
    """

    def _producer() -> bytes:
        logger.info("no usable calibration for %s, benchmarking", key)
        return create(**create_kwargs).to_json()

    return cache.get_or_set(key, ttl, _producer, decode=ParameterSet.from_json)


def _int_env(name: str, default: str, low: int, high: int) -> int:
    raw = os.environ.get(name, default)
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer") from exc
    if not low <= value <= high:
        raise RuntimeError(f"{name} must be between {low} and {high}")
    return value


def connect_redis() -> RedisCache:
    """Return :class:`RedisCache` configured from the environment.

    Reads ``REDIS_HOST``, ``REDIS_PORT``, ``REDIS_DB``, ``REDIS_PASSWORD``,
    ``REDIS_TLS`` and ``REDIS_CERT_REQS``. TLS is on unless ``REDIS_TLS`` is
    ``0``, ``false`` or ``no``.

    Raises:
        RuntimeError: If a variable is missing or invalid.
    """
    import redis  # type: ignore

    host = os.environ.get("REDIS_HOST")
    if not host:
        raise RuntimeError("REDIS_HOST is required for the calibration cache")

    opts: dict[str, Any] = {
        "host": host,
        "port": _int_env("REDIS_PORT", "6379", 1, 65535),
    }
    db = _int_env("REDIS_DB", "0", 0, 15)
    if db:
        opts["db"] = db
    if os.environ.get("REDIS_PASSWORD"):
        opts["password"] = os.environ["REDIS_PASSWORD"]

    if os.environ.get("REDIS_TLS", "1").lower() not in {"0", "false", "no"}:
        cert_reqs = {
            "optional": ssl.CERT_OPTIONAL,
            "required": ssl.CERT_REQUIRED,
        }.get(os.environ.get("REDIS_CERT_REQS", "required").lower())
        if cert_reqs is None:
            raise RuntimeError("REDIS_CERT_REQS must be 'required' or 'optional'")
        opts["ssl"] = True
        opts["ssl_cert_reqs"] = cert_reqs

    logger.debug("connecting to redis at %s:%d db=%d", host, opts["port"], db)
    return RedisCache(redis.Redis(**opts))
