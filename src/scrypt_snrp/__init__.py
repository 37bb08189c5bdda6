"""Device-calibrated scrypt parameters."""

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
import re

from .calibrate import Calibration, OverflowCheck, calibrate
from .core import (
    DerivationError,
    EntropyError,
    ParameterSet,
    ScryptPrimitive,
    create,
    run_once,
)
from .networks import NETWORKS, lookup
from .cache import RedisCache, create_cached
from .cli import main as cli
from .testing_backend import StepClock, TestPrimitive

_pyproject = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"


def _read_version(path: Path) -> str:
    text = path.read_text(encoding="utf-8")
    match = re.search(r'^version\s*=\s*"([^"]+)"', text, flags=re.MULTILINE)
    if not match:
        raise RuntimeError("version not found in pyproject.toml")
    return match.group(1)


try:
    __version__ = version("scrypt-snrp")
except PackageNotFoundError:
    __version__ = _read_version(_pyproject)

__all__ = [
    "Calibration",
    "OverflowCheck",
    "calibrate",
    "DerivationError",
    "EntropyError",
    "ParameterSet",
    "ScryptPrimitive",
    "create",
    "run_once",
    "NETWORKS",
    "lookup",
    "RedisCache",
    "create_cached",
    "cli",
    "TestPrimitive",
    "StepClock",
    "__version__",
]
