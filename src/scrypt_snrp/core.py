"""Scrypt parameter sets, the timed derivation and device calibration.

A :class:`ParameterSet` bundles a salt with the scrypt cost parameters
``N``, ``r`` and ``p``. :func:`create` benchmarks the running device once and
returns a set tuned to take roughly :data:`TARGET_USECONDS` per derivation,
while :func:`run_once` performs a single derivation and reports how long it
took. The scrypt primitive and the clock are injectable so callers can swap
in a different implementation or a fake.
"""

import hashlib
import json
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Protocol

from .calibrate import OverflowCheck, calibrate, memory_cost
from .constants import (
    DEFAULT_P,
    DEFAULT_R,
    DEFAULT_SHIFT,
    MAX_SHIFT,
    MEMORY_LIMIT,
    MIN_SHIFT,
    SALT_BYTES,
)

logger = logging.getLogger(__name__)

# hashlib rejects maxmem above INT_MAX
_MAX_MAXMEM = 2**31 - 1


class DerivationError(RuntimeError):
    """The scrypt primitive rejected the parameters or failed internally."""


class EntropyError(RuntimeError):
    """Random salt bytes could not be generated."""


class Primitive(Protocol):
    def derive(
        self, password: bytes, salt: bytes, n: int, r: int, p: int, dklen: int
    ) -> bytes:
        """Return ``dklen`` bytes of scrypt output.

        Implementations raise on invalid parameters or resource exhaustion.
        """


@dataclass
class ScryptPrimitive:
    """Scrypt backed by :func:`hashlib.scrypt`."""

    def derive(
        self, password: bytes, salt: bytes, n: int, r: int, p: int, dklen: int
    ) -> bytes:
        """Return scrypt digest of ``password``.

        Args:
            password: Input key material.
            salt: Salt bytes.
            n: CPU/memory cost, a power of two.
            r: Block size factor.
            p: Parallelization factor.
            dklen: Output length in bytes.

        Returns:
            bytes: Derived key.
        """

        # V plus the p blocks of B, with headroom for OpenSSL bookkeeping
        maxmem = min(128 * r * (n + p + 2) + 1024 * 1024, _MAX_MAXMEM)
        return hashlib.scrypt(
            password, salt=salt, n=n, r=r, p=p, maxmem=maxmem, dklen=dklen
        )


@dataclass(frozen=True)
class ParameterSet:
    """Salt plus scrypt cost parameters (``N = 2**shift``).

    Instances are immutable; recalibrating produces a new one.
    """

    salt: bytes
    shift: int
    r: int
    p: int

    def __post_init__(self) -> None:
        """Validate field types and bounds.

        Raises:
            TypeError: If a field has the wrong type.
            ValueError: If a field is out of range or the set needs more
                than :data:`MEMORY_LIMIT` bytes.
        """

        if not isinstance(self.salt, (bytes, bytearray)):
            raise TypeError("salt must be bytes")
        if len(self.salt) != SALT_BYTES:
            raise ValueError(f"salt must be {SALT_BYTES} bytes")
        for name in ("shift", "r", "p"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"{name} must be an integer")
        if not MIN_SHIFT <= self.shift <= MAX_SHIFT:
            raise ValueError(f"shift must be between {MIN_SHIFT} and {MAX_SHIFT}")
        if self.r < 1 or self.p < 1:
            raise ValueError("r and p must be positive")
        if memory_cost(self.shift, self.r) > MEMORY_LIMIT:
            raise ValueError("N and r exceed the memory limit")
        object.__setattr__(self, "salt", bytes(self.salt))

    @property
    def n(self) -> int:
        return 1 << self.shift

    @classmethod
    def from_n(cls, salt: bytes, n: int, r: int, p: int) -> "ParameterSet":
        """Return ``ParameterSet`` for an explicit cost ``n``.

        Raises:
            ValueError: If ``n`` is not a power of two above 1.
        """

        if not isinstance(n, int) or isinstance(n, bool):
            raise TypeError("n must be an integer")
        if n < 2 or n & (n - 1):
            raise ValueError("n must be a power of two greater than 1")
        return cls(salt=salt, shift=n.bit_length() - 1, r=r, p=p)

    def to_dict(self) -> dict[str, Any]:
        return {"salt": self.salt.hex(), "n": self.n, "r": self.r, "p": self.p}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ParameterSet":
        """Return ``ParameterSet`` built from ``data``.

        Args:
            data: Mapping with keys ``"salt"`` (hex), ``"n"``, ``"r"``, ``"p"``.

        Returns:
            ParameterSet: Parsed parameters.

        Raises:
            KeyError: If a required field is missing.
            TypeError: If ``data`` is not a mapping or a value has the wrong
                type.
            ValueError: If the salt is not hex or a value is out of range.
        """
        if not isinstance(data, Mapping):
            raise TypeError("parameters must be a mapping")
        try:
            salt_hex = data["salt"]
            n, r, p = data["n"], data["r"], data["p"]
        except KeyError as exc:
            raise KeyError(f"missing field: {exc.args[0]}") from exc
        if not isinstance(salt_hex, str):
            raise TypeError("salt must be a hex string")
        salt = bytes.fromhex(salt_hex)
        return cls.from_n(salt, n, r, p)

    def to_json(self) -> bytes:
        return json.dumps(self.to_dict(), sort_keys=True).encode()

    @classmethod
    def from_json(cls, raw: bytes | str) -> "ParameterSet":
        return cls.from_dict(json.loads(raw))

    def hash(
        self,
        data: bytes,
        size: int = 32,
        primitive: Primitive | None = None,
        clock: Callable[[], int] | None = None,
    ) -> tuple[bytes, int]:
        """Derive ``size`` bytes from ``data``; see :func:`run_once`."""

        return run_once(self, data, size, primitive=primitive, clock=clock)

    def derive(
        self, data: bytes, size: int = 32, primitive: Primitive | None = None
    ) -> bytes:
        digest, _ = run_once(self, data, size, primitive=primitive)
        return digest


def run_once(
    params: ParameterSet,
    data: bytes,
    size: int = 32,
    primitive: Primitive | None = None,
    clock: Callable[[], int] | None = None,
) -> tuple[bytes, int]:
    """Run one scrypt derivation and time it.

    Args:
        params: Salt and cost parameters.
        data: Input key material.
        size: Output length in bytes.
        primitive: Scrypt implementation; defaults to :class:`ScryptPrimitive`.
        clock: Monotonic clock returning nanoseconds; defaults to
            :func:`time.perf_counter_ns`.

    Returns:
        tuple[bytes, int]: Derived bytes and elapsed microseconds.

    Raises:
        ValueError: If ``size`` is not positive.
        DerivationError: If the primitive fails.
    """

    if not isinstance(size, int) or size <= 0:
        raise ValueError("size must be a positive integer")
    if primitive is None:
        primitive = ScryptPrimitive()
    if clock is None:
        clock = time.perf_counter_ns

    start = clock()
    try:
        digest = primitive.derive(
            bytes(data), params.salt, params.n, params.r, params.p, size
        )
    except Exception as exc:
        elapsed = (clock() - start) // 1000
        logger.debug(
            "hash Nrp=%d %d %d failed after %d us",
            params.n,
            params.r,
            params.p,
            elapsed,
        )
        raise DerivationError(f"error calculating scrypt hash: {exc}") from exc
    elapsed = (clock() - start) // 1000
    logger.debug("hash Nrp=%d %d %d time=%d", params.n, params.r, params.p, elapsed)
    if len(digest) != size:
        raise DerivationError("scrypt returned a digest of the wrong length")
    return digest, elapsed


def _random_salt(random_bytes: Callable[[int], bytes]) -> bytes:
    try:
        salt = random_bytes(SALT_BYTES)
    except (OSError, NotImplementedError) as exc:
        raise EntropyError(f"random salt unavailable: {exc}") from exc
    if not isinstance(salt, (bytes, bytearray)) or len(salt) != SALT_BYTES:
        raise EntropyError(f"random source must return {SALT_BYTES} bytes")
    return bytes(salt)


def create(
    primitive: Primitive | None = None,
    clock: Callable[[], int] | None = None,
    random_bytes: Callable[[int], bytes] | None = None,
    check: OverflowCheck = OverflowCheck.COST_EXPONENT,
) -> ParameterSet:
    """Benchmark this device and return a calibrated parameter set.

    Blocks for one scrypt run at the baseline cost, which can be slow on
    weak hardware; call it away from latency-sensitive threads.

    Args:
        primitive: Scrypt implementation used for the benchmark.
        clock: Monotonic nanosecond clock used for the benchmark.
        random_bytes: Salt source; defaults to :func:`secrets.token_bytes`.
        check: Overflow product the calibrator enforces.

    Returns:
        ParameterSet: Fresh salt with calibrated ``N``, ``r`` and ``p``.

    Raises:
        EntropyError: If the salt cannot be generated.
        DerivationError: If the benchmark derivation fails.
    """

    if random_bytes is None:
        random_bytes = secrets.token_bytes
    salt = _random_salt(random_bytes)
    baseline = ParameterSet(salt=salt, shift=DEFAULT_SHIFT, r=DEFAULT_R, p=DEFAULT_P)
    _, elapsed = run_once(baseline, b"", primitive=primitive, clock=clock)
    shift, r, p = calibrate(elapsed, check=check)
    return ParameterSet(salt=salt, shift=shift, r=r, p=p)
