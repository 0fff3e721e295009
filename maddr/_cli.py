"""maddr command-line interface.

Usage:
    python3 -m maddr protocols [--protocols FILE]
    python3 -m maddr lookup ip4
    python3 -m maddr lookup 421
    python3 -m maddr path /ip4/tcp [--protocols FILE]
    python3 -m maddr varint encode 300
    python3 -m maddr varint decode ac02
    python3 -m maddr version
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from . import (
    MaddrError,
    Protocol,
    Registry,
    UnknownProtocolCode,
    UnknownProtocolName,
    __version__,
    decode_uvarint,
    encode_uvarint,
    protocols_from_json,
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="maddr",
        description="maddr: protocol registry and varint codec for self-describing addresses",
    )
    sub = parser.add_subparsers(dest="command")

    table = argparse.ArgumentParser(add_help=False)
    table.add_argument("--protocols", "-p", metavar="FILE",
                       help="Register extra protocols from a JSON table")

    # ── protocols ──
    sub.add_parser("protocols", parents=[table], help="List registered protocols")

    # ── lookup ──
    lookup_p = sub.add_parser("lookup", parents=[table],
                              help="Show one protocol by name or code")
    lookup_p.add_argument("key", metavar="NAME_OR_CODE")

    # ── path ──
    path_p = sub.add_parser("path", parents=[table],
                            help="Resolve a slash-delimited list of protocol names")
    path_p.add_argument("path", metavar="STRING")

    # ── varint ──
    varint_p = sub.add_parser("varint", help="Encode or decode an unsigned varint")
    varint_sub = varint_p.add_subparsers(dest="varint_command", required=True)
    enc_p = varint_sub.add_parser("encode", help="Integer to hex varint")
    enc_p.add_argument("value", type=int)
    dec_p = varint_sub.add_parser("decode", help="Hex varint to integer")
    dec_p.add_argument("hex", metavar="HEX")

    # ── version ──
    sub.add_parser("version", help="Print version and exit")

    return parser


def _load_registry(filepath: Optional[str]) -> Registry:
    reg = Registry()
    if filepath:
        with open(filepath, "rb") as f:
            reg.register_all(protocols_from_json(f.read()))
    return reg


def _size_label(proto: Protocol) -> str:
    return "var" if proto.is_length_prefixed else str(proto.size)


def _format_row(proto: Protocol) -> str:
    return "{:>6}  {:<10} {:>5}  {:<4}  {}".format(
        proto.code, proto.name, _size_label(proto),
        "path" if proto.path else "-", proto.vcode.hex())


def _cmd_protocols(args: argparse.Namespace) -> None:
    reg = _load_registry(args.protocols)
    print("{:>6}  {:<10} {:>5}  {:<4}  {}".format("CODE", "NAME", "SIZE", "PATH", "TAG"))
    for proto in reg:
        print(_format_row(proto))


def _cmd_lookup(args: argparse.Namespace) -> None:
    reg = _load_registry(args.protocols)
    if args.key.isdecimal():
        code = int(args.key)
        proto = reg.lookup_by_code(code)
        if proto is None:
            raise UnknownProtocolCode(code)
    else:
        proto = reg.lookup_by_name(args.key)
        if proto is None:
            raise UnknownProtocolName(args.key)
    print(_format_row(proto))


def _cmd_path(args: argparse.Namespace) -> None:
    reg = _load_registry(args.protocols)
    for proto in reg.parse_path_string(args.path):
        print(_format_row(proto))


def _cmd_varint(args: argparse.Namespace) -> None:
    if args.varint_command == "encode":
        print(encode_uvarint(args.value).hex())
        return
    try:
        raw = bytes.fromhex(args.hex)
    except ValueError:
        print("maddr: not a hex string: {!r}".format(args.hex), file=sys.stderr)
        sys.exit(2)
    value, n = decode_uvarint(raw)
    print("{} ({} bytes)".format(value, n))


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "version":
        print(f"maddr {__version__}")
        return

    try:
        if args.command == "protocols":
            _cmd_protocols(args)
        elif args.command == "lookup":
            _cmd_lookup(args)
        elif args.command == "path":
            _cmd_path(args)
        elif args.command == "varint":
            _cmd_varint(args)
    except MaddrError as e:
        print(f"maddr: error [{e.code}]: {e}", file=sys.stderr)
        sys.exit(2)
    except OSError as e:
        print(f"maddr: cannot read protocol table: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
