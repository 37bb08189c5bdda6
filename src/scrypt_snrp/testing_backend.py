import hashlib

__all__ = ["TestPrimitive", "StepClock"]
__test__ = False


class TestPrimitive:
    """Deterministic stand-in for scrypt."""

    __test__ = False

    def __init__(self, error: Exception | None = None):
        """Initialize primitive.

        Args:
            error: Exception raised by every call instead of deriving.
        """

        self.error = error
        self.calls: list[tuple[bytes, bytes, int, int, int, int]] = []

    def derive(
        self, password: bytes, salt: bytes, n: int, r: int, p: int, dklen: int
    ) -> bytes:
        """Return ``dklen`` bytes of SHAKE-256 over the inputs.

        Raises:
            Exception: ``self.error`` when set.
        """

        self.calls.append((password, salt, n, r, p, dklen))
        if self.error is not None:
            raise self.error
        header = f"{n}:{r}:{p}:".encode()
        return hashlib.shake_256(header + salt + password).digest(dklen)


class StepClock:
    """Fake monotonic clock advancing ``step_us`` microseconds per reading."""

    def __init__(self, step_us: int, start_ns: int = 0):
        self.step_ns = step_us * 1000
        self.now = start_ns

    def __call__(self) -> int:
        reading = self.now
        self.now += self.step_ns
        return reading
