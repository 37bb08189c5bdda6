"""Fixed scrypt parameter sets shared with the login server.

Values derived with these sets must match what the server computes on its
side, so none of them may change.
"""

from types import MappingProxyType
from typing import Mapping

from .constants import SERVER_N, SERVER_P, SERVER_R
from .core import ParameterSet

MAINNET_SALT = bytes(
    [
        0xB5, 0x86, 0x5F, 0xFB, 0x9F, 0xA7, 0xB3, 0xBF,
        0xE4, 0xB2, 0x38, 0x4D, 0x47, 0xCE, 0x83, 0x1E,
        0xE2, 0x2A, 0x4A, 0x9D, 0x5C, 0x34, 0xC7, 0xEF,
        0x7D, 0x21, 0x46, 0x7C, 0xC7, 0x58, 0xF8, 0x1B,
    ]
)

TESTNET_SALT = bytes(
    [
        0xA5, 0x96, 0x3F, 0x3B, 0x9C, 0xA6, 0xB3, 0xBF,
        0xE4, 0xB2, 0x36, 0x42, 0x37, 0xFE, 0x87, 0x1E,
        0xF2, 0x2A, 0x4A, 0x9D, 0x4C, 0x34, 0xA7, 0xEF,
        0x3D, 0x21, 0x47, 0x8C, 0xC7, 0x58, 0xF8, 0x1B,
    ]
)

_TABLE: Mapping[str, ParameterSet] = MappingProxyType(
    {
        "mainnet": ParameterSet.from_n(MAINNET_SALT, SERVER_N, SERVER_R, SERVER_P),
        "testnet": ParameterSet.from_n(TESTNET_SALT, SERVER_N, SERVER_R, SERVER_P),
    }
)

NETWORKS = tuple(_TABLE)


def lookup(network: str) -> ParameterSet:
    """Return the fixed parameter set for ``network``.

    Args:
        network: Network name, ``"mainnet"`` or ``"testnet"``.

    Returns:
        ParameterSet: Server-compatible parameters.

    Raises:
        KeyError: If ``network`` is unknown.
    """

    try:
        return _TABLE[network.strip().lower()]
    except KeyError:
        raise KeyError(f"unknown network: {network}") from None
