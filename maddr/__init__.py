"""maddr — protocol registry and varint codec for self-describing addresses.

An address is a sequence of protocol/value segments, e.g.
/ip4/1.2.3.4/tcp/80.  This package holds the part every address depends
on: the table of protocols (code, name, payload shape, path flag) and the
unsigned varint encoding used for protocol codes on the wire.

Quick start:
    >>> from maddr import Registry, encode_uvarint, decode_uvarint
    >>> reg = Registry()
    >>> [p.name for p in reg.parse_path_string("/ip4/tcp")]
    ['ip4', 'tcp']
    >>> reg.lookup_by_name("sctp").vcode
    b'\\x84\\x01'
    >>> decode_uvarint(encode_uvarint(300))
    (300, 2)

Registries are plain objects.  There is no process-wide instance; build one
with Registry() and hand it to whatever needs it.
"""

from __future__ import annotations

from ._constants import (
    LENGTH_PREFIXED_VAR_SIZE,
    MAX_VARINT_LEN64,
    P_DCCP,
    P_HTTP,
    P_HTTPS,
    P_IP4,
    P_IP6,
    P_IPFS,
    P_ONION,
    P_SCTP,
    P_TCP,
    P_UDP,
    P_UDT,
    P_UNIX,
    P_UTP,
    PATH_DELIMITER,
    UINT64_MAX,
)
from ._errors import (
    ERR_DUPLICATE_CODE,
    ERR_DUPLICATE_NAME,
    ERR_PROTOCOL_INVALID,
    ERR_TABLE,
    ERR_UNKNOWN_CODE,
    ERR_UNKNOWN_NAME,
    ERR_VARINT_OVERFLOW,
    ERR_VARINT_RANGE,
    ERR_VARINT_TRUNCATED,
    InvalidProtocol,
    MaddrError,
    MalformedVarint,
    RegistrationError,
    TableError,
    UnknownProtocolCode,
    UnknownProtocolName,
    VarintRangeError,
)
from ._json_adapter import protocol_to_json, protocols_from_json
from ._protocols import BUILTIN_PROTOCOLS, Protocol, Registry, Transcoder
from ._varint import (
    code_to_varint,
    decode_uvarint,
    encode_uvarint,
    read_varint_code,
    varint_to_code,
)

__version__ = "0.1.0"

__all__ = [
    # Registry
    "Registry",
    "Protocol",
    "Transcoder",
    "BUILTIN_PROTOCOLS",
    "protocols_from_json",
    "protocol_to_json",
    # Varint codec
    "encode_uvarint",
    "decode_uvarint",
    "code_to_varint",
    "read_varint_code",
    "varint_to_code",
    # Constants
    "LENGTH_PREFIXED_VAR_SIZE",
    "MAX_VARINT_LEN64",
    "PATH_DELIMITER",
    "UINT64_MAX",
    "P_IP4",
    "P_TCP",
    "P_UDP",
    "P_DCCP",
    "P_IP6",
    "P_SCTP",
    "P_UTP",
    "P_UDT",
    "P_UNIX",
    "P_IPFS",
    "P_HTTP",
    "P_HTTPS",
    "P_ONION",
    # Exceptions
    "MaddrError",
    "RegistrationError",
    "InvalidProtocol",
    "UnknownProtocolName",
    "UnknownProtocolCode",
    "MalformedVarint",
    "VarintRangeError",
    "TableError",
    # Error codes
    "ERR_DUPLICATE_CODE",
    "ERR_DUPLICATE_NAME",
    "ERR_PROTOCOL_INVALID",
    "ERR_UNKNOWN_NAME",
    "ERR_UNKNOWN_CODE",
    "ERR_VARINT_RANGE",
    "ERR_VARINT_OVERFLOW",
    "ERR_VARINT_TRUNCATED",
    "ERR_TABLE",
]
