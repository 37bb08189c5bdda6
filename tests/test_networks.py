import pytest

import scrypt_snrp
from scrypt_snrp import networks

MAINNET_HEX = "b5865ffb9fa7b3bfe4b2384d47ce831ee22a4a9d5c34c7ef7d21467cc758f81b"
TESTNET_HEX = "a5963f3b9ca6b3bfe4b2364237fe871ef22a4a9d4c34a7ef3d21478cc758f81b"


def test_mainnet():
    params = scrypt_snrp.lookup("mainnet")
    assert params.salt.hex() == MAINNET_HEX
    assert (params.n, params.r, params.p) == (16384, 1, 1)


def test_testnet():
    params = scrypt_snrp.lookup("testnet")
    assert params.salt.hex() == TESTNET_HEX
    assert (params.n, params.r, params.p) == (16384, 1, 1)


def test_lookup_case_insensitive():
    assert scrypt_snrp.lookup(" MainNet ") is scrypt_snrp.lookup("mainnet")


def test_unknown_network():
    with pytest.raises(KeyError):
        scrypt_snrp.lookup("regtest")


def test_table_read_only():
    with pytest.raises(TypeError):
        networks._TABLE["mainnet"] = networks._TABLE["testnet"]


def test_networks_listed():
    assert scrypt_snrp.NETWORKS == ("mainnet", "testnet")


def test_lookup_never_benchmarks(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("lookup must not calibrate")

    monkeypatch.setattr(scrypt_snrp.core, "run_once", fail)
    monkeypatch.setattr(scrypt_snrp.core, "calibrate", fail)
    assert scrypt_snrp.lookup("mainnet").n == 16384


def test_mainnet_matches_reference_scrypt():
    import hashlib

    params = scrypt_snrp.lookup("mainnet")
    expected = hashlib.scrypt(b"alice", salt=params.salt, n=16384, r=1, p=1, dklen=32)
    assert params.derive(b"alice") == expected
