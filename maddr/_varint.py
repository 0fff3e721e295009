"""Unsigned LEB128 varints.

Each byte carries 7 payload bits, least-significant group first.  The high
bit (0x80) is set on every byte except the last:

    1     -> 01
    127   -> 7f
    128   -> 80 01
    300   -> ac 02

Encoding is always minimal.  Decoding accepts any well-formed varint up to
the uint64 limit and raises MalformedVarint otherwise; it never truncates
silently, because the input is usually untrusted address bytes off the
network.

Everything here is pure and stateless.
"""

from __future__ import annotations

from typing import Tuple, Union

from ._constants import (
    MAX_VARINT_LEN64,
    UINT64_MAX,
    VARINT_CONTINUATION,
    VARINT_PAYLOAD_MASK,
)
from ._errors import (
    ERR_VARINT_OVERFLOW,
    ERR_VARINT_TRUNCATED,
    MalformedVarint,
    VarintRangeError,
)

BytesLike = Union[bytes, bytearray, memoryview]


def encode_uvarint(value: int) -> bytes:
    """Encode a non-negative integer below 2**64 as a minimal varint."""
    # bool is an int subclass; True would otherwise encode as 01.
    if isinstance(value, bool) or not isinstance(value, int):
        raise VarintRangeError(
            "varint value must be an int, not {}".format(type(value).__name__))
    if value < 0 or value > UINT64_MAX:
        raise VarintRangeError("varint value {} outside uint64 range".format(value))

    out = bytearray()
    while value >= VARINT_CONTINUATION:
        out.append((value & VARINT_PAYLOAD_MASK) | VARINT_CONTINUATION)
        value >>= 7
    out.append(value)
    return bytes(out)


def decode_uvarint(buf: BytesLike, offset: int = 0) -> Tuple[int, int]:
    """Read one varint starting at buf[offset].

    Returns (value, bytes_consumed).  Trailing bytes after the varint are
    left alone; the caller advances by bytes_consumed.
    """
    if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
        raise MalformedVarint(ERR_VARINT_TRUNCATED,
                              "invalid varint offset {!r}".format(offset))
    view = memoryview(buf)
    value = 0
    shift = 0
    for i in range(MAX_VARINT_LEN64):
        pos = offset + i
        if pos >= len(view):
            raise MalformedVarint(ERR_VARINT_TRUNCATED,
                                  "buffer ends inside varint", offset)
        b = view[pos]
        if i == MAX_VARINT_LEN64 - 1 and b > 1:
            # Either a continuation bit on the 10th byte or payload above
            # bit 63.  Both need more than 64 bits.
            raise MalformedVarint(ERR_VARINT_OVERFLOW,
                                  "varint exceeds 64 bits", offset)
        value |= (b & VARINT_PAYLOAD_MASK) << shift
        if b < VARINT_CONTINUATION:
            return value, i + 1
        shift += 7

    # Unreachable: the 10th byte either terminates or raises above.
    raise MalformedVarint(ERR_VARINT_OVERFLOW, "varint exceeds 64 bits", offset)


# ── Protocol-code helpers ────────────────────────────────────
# Thin names for the address layer, which thinks in protocol codes
# rather than integers.

def code_to_varint(code: int) -> bytes:
    """Return the binary tag for a protocol code."""
    return encode_uvarint(code)


def read_varint_code(buf: BytesLike, offset: int = 0) -> Tuple[int, int]:
    """Read a protocol code from the head of a binary address.

    Returns (code, bytes_read).
    """
    return decode_uvarint(buf, offset)


def varint_to_code(buf: BytesLike) -> int:
    """Decode the protocol code at the start of buf, discarding the length."""
    code, _n = decode_uvarint(buf)
    return code
