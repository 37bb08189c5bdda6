"""Map one benchmark duration to scrypt cost parameters.

A single derivation at the baseline parameters (``N = 2**DEFAULT_SHIFT``,
``r = p = 1``) is timed and extrapolated linearly to :data:`TARGET_USECONDS`.
Headroom goes to ``r`` first, then to ``N`` and finally to ``p``. Two search
passes then pull the result back under the memory and overflow ceilings.

Elapsed time is assumed to scale linearly with ``r`` and with the exponent
step of ``N``. Real scrypt timings only roughly follow that, so the result is
an estimate of the target, never a guarantee.
"""

import enum
import logging
from typing import NamedTuple

from .constants import (
    DEFAULT_P,
    DEFAULT_SHIFT,
    MAX_SHIFT,
    MEMORY_LIMIT,
    MIN_R,
    OVERFLOW_LIMIT,
    TARGET_USECONDS,
)

logger = logging.getLogger(__name__)

# Number of exponent steps the estimate may add on top of DEFAULT_SHIFT - 1
MAX_STEPS = 1 + MAX_SHIFT - DEFAULT_SHIFT


class OverflowCheck(enum.Enum):
    """Product compared against :data:`OVERFLOW_LIMIT`.

    ``COST_EXPONENT`` multiplies ``r`` by the exponent of ``N``, which is what
    deployed clients have always computed. ``PARALLELISM`` multiplies ``r`` by
    ``p``, the limit scrypt itself enforces.
    """

    COST_EXPONENT = "cost_exponent"
    PARALLELISM = "parallelism"


class Calibration(NamedTuple):
    shift: int
    r: int
    p: int


def memory_cost(shift: int, r: int) -> int:
    """Return bytes of scratch memory scrypt needs for ``N = 2**shift``."""

    return 128 * (1 << shift) * r


def overflow_product(shift: int, r: int, p: int, check: OverflowCheck) -> int:
    if check is OverflowCheck.PARALLELISM:
        return r * p
    return r * shift


def fit_memory_bound(shift: int, r: int, limit: int = MEMORY_LIMIT) -> tuple[int, int]:
    """Return the first ``(shift, r)`` that fits in ``limit`` bytes.

    Equivalent to a descending search that lowers ``r`` down to 1 before it
    lowers ``shift``, with ``r`` restarting at 1 for every smaller shift.

    Args:
        shift: Starting exponent of ``N``.
        r: Starting block size factor.
        limit: Memory ceiling in bytes.

    Returns:
        tuple[int, int]: Feasible ``(shift, r)``, or ``(1, 1)`` when the
        search runs out of exponents.
    """

    r = max(r, 1)
    while shift > 1:
        largest_r = limit // memory_cost(shift, 1)
        if largest_r >= 1:
            if largest_r < r:
                logger.debug("N*r too high, lowering r=%d to %d", r, largest_r)
            return shift, min(r, largest_r)
        logger.debug("N*r too high, lowering shift=%d", shift)
        shift -= 1
        r = 1
    return shift, r


def fit_overflow_bound(
    shift: int,
    r: int,
    p: int,
    check: OverflowCheck = OverflowCheck.COST_EXPONENT,
    limit: int = OVERFLOW_LIMIT,
) -> tuple[int, int]:
    """Return the first ``(r, p)`` whose overflow product stays below ``limit``.

    Equivalent to a descending search that lowers ``p`` down to 1 before it
    lowers ``r``, with ``p`` restarting at 1 for every smaller ``r``. The
    search stops at ``r == 1`` without checking it.

    Args:
        shift: Exponent of ``N``; held fixed.
        r: Starting block size factor.
        p: Starting parallelization factor.
        check: Which product to bound.
        limit: Exclusive ceiling for the product.

    Returns:
        tuple[int, int]: Feasible ``(r, p)``.
    """

    p = max(p, 1)
    if r <= 1:
        return r, p
    if check is OverflowCheck.PARALLELISM:
        if r < limit:
            largest_p = (limit - 1) // r
            if largest_p < p:
                logger.debug("p*r too high, lowering p=%d to %d", p, largest_p)
            return r, min(p, largest_p)
        largest_r = limit - 1
    else:
        if overflow_product(shift, r, p, check) < limit:
            return r, p
        largest_r = (limit - 1) // shift
    # p restarts at 1 once r has to give way
    largest_r = max(largest_r, 1)
    logger.debug("p*r too high, lowering r=%d to %d", r, largest_r)
    return largest_r, 1


def calibrate(
    measured_us: float,
    target: int | None = None,
    check: OverflowCheck = OverflowCheck.COST_EXPONENT,
) -> Calibration:
    """Return cost parameters aiming one derivation at ``target`` microseconds.

    Args:
        measured_us: Duration of one baseline derivation in microseconds.
        target: Desired duration; defaults to :data:`TARGET_USECONDS`.
        check: Overflow product to enforce, see :class:`OverflowCheck`.

    Returns:
        Calibration: ``(shift, r, p)`` with ``N = 2**shift``.

    Raises:
        ValueError: If ``measured_us`` is negative.
    """

    if measured_us < 0:
        raise ValueError("measured_us must not be negative")
    if target is None:
        target = TARGET_USECONDS
    # clocks with coarse resolution may report a zero-length run
    elapsed = float(max(measured_us, 1))
    logger.debug("calibrating target:%d timing:%d", target, measured_us)

    steps = 1.0
    fr = target / elapsed
    fp = float(DEFAULT_P)
    remainder = int(fr) % MIN_R
    logger.debug("ideal r=%f remainder=%d", fr, remainder)

    if fr > MIN_R:
        fr = float(MIN_R)
        elapsed *= MIN_R
        steps = target / elapsed
        if steps < 2.0:
            fr += remainder
        if steps > MAX_STEPS:
            steps = float(MAX_STEPS)
            elapsed *= MAX_STEPS
            fp = target / elapsed
    else:
        fr = float(MIN_R)
    steps = max(steps, 1.0)

    shift = DEFAULT_SHIFT - 1 + int(steps)
    r = int(fr)
    p = int(fp)

    shift, r = fit_memory_bound(shift, r)
    r, p = fit_overflow_bound(shift, r, p, check)
    result = Calibration(shift=max(shift, 1), r=max(r, 1), p=max(p, 1))
    logger.debug(
        "calibrated time=%d Nrp=%d %d %d",
        measured_us,
        1 << result.shift,
        result.r,
        result.p,
    )
    return result
