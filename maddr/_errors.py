"""Error codes, exception classes, and reporting precedence.

Every failure in this package is a MaddrError carrying a stable string
code.  Callers that only care about the category can catch the subclass
(RegistrationError, UnknownProtocolName, MalformedVarint, ...); callers
that need to tell cases apart compare `.code`.

When one operation detects several violations at once, it reports the
highest-precedence code.  Registration relies on this: a descriptor that
collides on both code and name is reported as ERR_DUPLICATE_CODE.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from ._protocols import Protocol

# ── Error codes (ordered by precedence) ──────────────────────

ERR_DUPLICATE_CODE: str = "ERR_DUPLICATE_CODE"      # code already registered
ERR_DUPLICATE_NAME: str = "ERR_DUPLICATE_NAME"      # name already registered
ERR_PROTOCOL_INVALID: str = "ERR_PROTOCOL_INVALID"  # bad descriptor fields
ERR_UNKNOWN_NAME: str = "ERR_UNKNOWN_NAME"          # path segment not registered
ERR_UNKNOWN_CODE: str = "ERR_UNKNOWN_CODE"          # code not registered
ERR_VARINT_RANGE: str = "ERR_VARINT_RANGE"          # encode input outside uint64
ERR_VARINT_OVERFLOW: str = "ERR_VARINT_OVERFLOW"    # decoded value exceeds uint64
ERR_VARINT_TRUNCATED: str = "ERR_VARINT_TRUNCATED"  # buffer ends mid-varint
ERR_TABLE: str = "ERR_TABLE"                        # bad JSON protocol table

# Precedence: index 0 wins.
PRECEDENCE: List[str] = [
    ERR_DUPLICATE_CODE,
    ERR_DUPLICATE_NAME,
    ERR_PROTOCOL_INVALID,
    ERR_UNKNOWN_NAME,
    ERR_UNKNOWN_CODE,
    ERR_VARINT_RANGE,
    ERR_VARINT_OVERFLOW,
    ERR_VARINT_TRUNCATED,
    ERR_TABLE,
]

_PREC_INDEX = {code: idx for idx, code in enumerate(PRECEDENCE)}


class MaddrError(Exception):
    """Base exception.  `.code` is one of the ERR_* strings above."""

    def __init__(self, code: str, msg: str = "") -> None:
        super().__init__(msg or code)
        self.code = code


class RegistrationError(MaddrError):
    """A descriptor collided with one already in the registry.

    `.existing` is the registered descriptor that won the collision.
    """

    def __init__(self, code: str, msg: str, protocol: "Protocol",
                 existing: "Protocol") -> None:
        super().__init__(code, msg)
        self.protocol = protocol
        self.existing = existing


class InvalidProtocol(MaddrError, ValueError):
    def __init__(self, msg: str) -> None:
        super().__init__(ERR_PROTOCOL_INVALID, msg)


class UnknownProtocolName(MaddrError, LookupError):
    """A path segment did not name a registered protocol."""

    def __init__(self, segment: str) -> None:
        super().__init__(ERR_UNKNOWN_NAME,
                         "no protocol with name: {}".format(segment))
        self.segment = segment


class UnknownProtocolCode(MaddrError, LookupError):
    def __init__(self, code: int) -> None:
        super().__init__(ERR_UNKNOWN_CODE,
                         "no protocol with code: {}".format(code))
        self.protocol_code = code


class MalformedVarint(MaddrError, ValueError):
    """Raised by varint decoding.

    `.code` is ERR_VARINT_TRUNCATED when the buffer ended before a
    terminating byte, ERR_VARINT_OVERFLOW when the value needs more than
    64 bits.  `.offset` is where the varint started.
    """

    def __init__(self, code: str, msg: str, offset: Optional[int] = None) -> None:
        super().__init__(code, msg)
        self.offset = offset


class VarintRangeError(MaddrError, ValueError):
    def __init__(self, msg: str) -> None:
        super().__init__(ERR_VARINT_RANGE, msg)


class TableError(MaddrError, ValueError):
    def __init__(self, msg: str) -> None:
        super().__init__(ERR_TABLE, msg)


def choose_reported_error(errors: List[str]) -> str:
    """Given multiple detected violations, return the highest-precedence code."""
    return min(errors, key=lambda e: _PREC_INDEX.get(e, 10_000))
