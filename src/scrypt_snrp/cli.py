"""Command-line interface for calibrating and using scrypt parameters."""

import argparse
import json
import logging

import scrypt_snrp

from .cache import connect_redis, create_cached
from .constants import DEFAULT_CACHE_TTL, DEFAULT_NETWORK, MAX_HASH_BYTES
from .core import ParameterSet, create
from .networks import NETWORKS, lookup


def _params_from_json(text: str) -> ParameterSet:
    try:
        return ParameterSet.from_json(text)
    except (KeyError, TypeError, ValueError) as exc:
        raise argparse.ArgumentTypeError(f"invalid value for --params: {exc}") from exc


def main(argv: list[str] | None = None) -> int:
    """Parse arguments and calibrate, look up or hash.

    Args:
        argv: Optional list of command-line arguments.

    Returns:
        int: ``0`` on success.
    """

    parser = argparse.ArgumentParser(prog="scrypt-snrp")
    parser.add_argument("--version", action="version", version=scrypt_snrp.__version__)
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="cmd", required=True)

    c = sub.add_parser("calibrate")
    c.add_argument("--cache", metavar="KEY")
    c.add_argument("--ttl", type=int, default=DEFAULT_CACHE_TTL)

    lk = sub.add_parser("lookup")
    lk.add_argument("network", nargs="?", default=DEFAULT_NETWORK)

    h = sub.add_parser("hash")
    h.add_argument("password")
    source = h.add_mutually_exclusive_group()
    source.add_argument("--network")
    source.add_argument("--params")
    h.add_argument("--size", type=int, default=32)
    h.add_argument("--time", action="store_true")

    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if args.cmd == "calibrate":
        if args.ttl <= 0:
            parser.error("--ttl must be positive")
        if args.cache:
            try:
                cache = connect_redis()
            except RuntimeError as exc:
                parser.error(str(exc))
            params = create_cached(cache, args.cache, args.ttl)
        else:
            params = create()
        print(json.dumps(params.to_dict(), sort_keys=True))
        return 0

    if args.cmd == "lookup":
        if args.network.strip().lower() not in NETWORKS:
            parser.error(f"network must be one of: {', '.join(NETWORKS)}")
        print(json.dumps(lookup(args.network).to_dict(), sort_keys=True))
        return 0

    if not (1 <= args.size <= MAX_HASH_BYTES):
        parser.error(f"--size must be between 1 and {MAX_HASH_BYTES}")
    if args.params is not None:
        params = _params_from_json(args.params)
    else:
        network = args.network or DEFAULT_NETWORK
        if network.strip().lower() not in NETWORKS:
            parser.error(f"network must be one of: {', '.join(NETWORKS)}")
        params = lookup(network)
    digest, elapsed = params.hash(args.password.encode(), args.size)
    if args.time:
        print(f"{digest.hex()} {elapsed}")
    else:
        print(digest.hex())
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
