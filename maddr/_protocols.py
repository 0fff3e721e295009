"""Protocol descriptors and the protocol registry.

A Protocol describes one segment type of an address: its numeric code,
its name in the textual form, the shape of its payload, and the
transcoder that converts the payload between text and bytes.

A Registry holds the known descriptors.  It is seeded with the built-in
table and may grow through register(); entries are never replaced or
removed.  Codes and names are unique across the registry.

Concurrency model: the registry's state is one immutable snapshot (a tuple
of descriptors plus two dict indices).  Writers build a new snapshot under
a lock and publish it with a single attribute assignment.  Readers take no
lock; they read the attribute once and work against that snapshot, so
they see either the old state or the new one, never a half-inserted entry.
"""

from __future__ import annotations

import dataclasses
import threading
import typing
from typing import (
    Any,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    NamedTuple,
    Optional,
    Tuple,
)

from ._constants import (
    LENGTH_PREFIXED_VAR_SIZE,
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
    InvalidProtocol,
    RegistrationError,
    UnknownProtocolName,
    choose_reported_error,
)
from ._varint import code_to_varint


@typing.runtime_checkable
class Transcoder(typing.Protocol):
    """Converts one protocol's value between textual and binary form.

    Implementations live outside this package.  The registry only stores
    a reference; the address layer calls these methods.  Both should raise
    ValueError on input they cannot convert.
    """

    def string_to_bytes(self, text: str) -> bytes: ...

    def bytes_to_string(self, raw: bytes) -> str: ...


# ── Descriptor ────────────────────────────────────────────────

@dataclasses.dataclass(frozen=True)
class Protocol:
    """One registered address-segment type.

    `size` is the payload width in bits, 0 for no payload, or
    LENGTH_PREFIXED_VAR_SIZE for a payload that carries its own varint
    length.  `path` marks protocols whose textual value swallows the rest
    of the address, delimiters included.

    `vcode` is the varint encoding of `code`.  It is derived here and
    cannot be passed in.
    """

    code: int
    name: str
    size: int
    path: bool = False
    transcoder: Optional[Transcoder] = dataclasses.field(
        default=None, compare=False)
    vcode: bytes = dataclasses.field(init=False, repr=False)

    def __post_init__(self) -> None:
        # bool before int, everywhere: True is an int in Python.
        if isinstance(self.code, bool) or not isinstance(self.code, int):
            raise InvalidProtocol("protocol code must be an int")
        if self.code < 0 or self.code > UINT64_MAX:
            raise InvalidProtocol(
                "protocol code {} outside uint64 range".format(self.code))
        if not isinstance(self.name, str) or not self.name:
            raise InvalidProtocol("protocol name must be a non-empty string")
        if PATH_DELIMITER in self.name:
            raise InvalidProtocol(
                "protocol name {!r} contains {!r}".format(self.name, PATH_DELIMITER))
        if isinstance(self.size, bool) or not isinstance(self.size, int):
            raise InvalidProtocol("protocol size must be an int")
        if self.size < LENGTH_PREFIXED_VAR_SIZE:
            raise InvalidProtocol("protocol size {} is negative".format(self.size))
        if not isinstance(self.path, bool):
            raise InvalidProtocol("protocol path flag must be a bool")
        object.__setattr__(self, "vcode", code_to_varint(self.code))

    @property
    def is_length_prefixed(self) -> bool:
        return self.size == LENGTH_PREFIXED_VAR_SIZE

    @property
    def has_payload(self) -> bool:
        return self.size != 0

    @property
    def byte_size(self) -> Optional[int]:
        """Fixed payload length in bytes, or None if length-prefixed."""
        if self.is_length_prefixed:
            return None
        return (self.size + 7) // 8

    def __str__(self) -> str:
        return self.name


BUILTIN_PROTOCOLS: Tuple[Protocol, ...] = (
    Protocol(P_IP4, "ip4", 32),
    Protocol(P_TCP, "tcp", 16),
    Protocol(P_UDP, "udp", 16),
    Protocol(P_DCCP, "dccp", 16),
    Protocol(P_IP6, "ip6", 128),
    # these need a multi-byte varint tag:
    Protocol(P_SCTP, "sctp", 16),
    Protocol(P_ONION, "onion", 96),
    Protocol(P_UTP, "utp", 0),
    Protocol(P_UDT, "udt", 0),
    Protocol(P_HTTP, "http", 0),
    Protocol(P_HTTPS, "https", 0),
    Protocol(P_IPFS, "ipfs", LENGTH_PREFIXED_VAR_SIZE),
    Protocol(P_UNIX, "unix", LENGTH_PREFIXED_VAR_SIZE, path=True),
)


# ── Registry ──────────────────────────────────────────────────

class _Snapshot(NamedTuple):
    protocols: Tuple[Protocol, ...]
    by_code: Dict[int, Protocol]
    by_name: Dict[str, Protocol]


_EMPTY = _Snapshot((), {}, {})


def _collision(snap: _Snapshot, proto: Protocol) -> Optional[RegistrationError]:
    """Return the error to report if proto collides with snap, else None."""
    found: Dict[str, Protocol] = {}
    if proto.code in snap.by_code:
        found[ERR_DUPLICATE_CODE] = snap.by_code[proto.code]
    if proto.name in snap.by_name:
        found[ERR_DUPLICATE_NAME] = snap.by_name[proto.name]
    if not found:
        return None

    code = choose_reported_error(list(found))
    existing = found[code]
    if code == ERR_DUPLICATE_CODE:
        msg = "protocol code {} already taken by {!r}".format(proto.code, existing.name)
    else:
        msg = "protocol by the name {!r} already exists".format(proto.name)
    return RegistrationError(code, msg, proto, existing)


def _extend(snap: _Snapshot, protos: Iterable[Protocol]) -> _Snapshot:
    """Build a new snapshot with protos appended.  snap is not modified."""
    items = list(snap.protocols)
    new = _Snapshot((), dict(snap.by_code), dict(snap.by_name))
    for proto in protos:
        err = _collision(new, proto)
        if err is not None:
            raise err
        items.append(proto)
        new.by_code[proto.code] = proto
        new.by_name[proto.name] = proto
    return new._replace(protocols=tuple(items))


def _normalize(proto: Any) -> Protocol:
    if not isinstance(proto, Protocol):
        raise InvalidProtocol(
            "expected a Protocol, got {}".format(type(proto).__name__))
    # replace() re-runs __post_init__, so vcode is always recomputed from
    # code here no matter what was done to the instance beforehand.
    return dataclasses.replace(proto)


class Registry:
    """The set of protocols an address layer knows about.

    Registry() starts from BUILTIN_PROTOCOLS.  Pass `protocols` to start
    from a different table (an empty list gives an empty registry), and
    `transcoders` to attach value codecs to the seed entries by name.
    """

    def __init__(self, protocols: Optional[Iterable[Protocol]] = None,
                 transcoders: Optional[Mapping[str, Transcoder]] = None) -> None:
        self._lock = threading.Lock()
        self._snap = _EMPTY

        seed = list(BUILTIN_PROTOCOLS if protocols is None else protocols)
        if transcoders:
            unmatched = sorted(set(transcoders) - {getattr(p, "name", None) for p in seed})
            if unmatched:
                raise InvalidProtocol(
                    "transcoders given for unknown protocols: {}".format(", ".join(unmatched)))
            seed = [
                dataclasses.replace(p, transcoder=transcoders[p.name])
                if isinstance(p, Protocol) and p.name in transcoders else p
                for p in seed
            ]
        self.register_all(seed)

    # ----- mutation -----

    def register(self, proto: Protocol) -> Protocol:
        """Add one protocol.

        Raises RegistrationError with ERR_DUPLICATE_CODE if the code is
        taken, else ERR_DUPLICATE_NAME if the name is taken.  On failure
        the registry is unchanged.  Returns the stored descriptor.
        """
        proto = _normalize(proto)
        with self._lock:
            self._snap = _extend(self._snap, [proto])
        return proto

    def register_all(self, protos: Iterable[Protocol]) -> List[Protocol]:
        """Add several protocols, all or nothing.

        Collisions within the batch are detected as well as collisions
        with existing entries.
        """
        batch = [_normalize(p) for p in protos]
        with self._lock:
            self._snap = _extend(self._snap, batch)
        return batch

    # ----- lookups -----

    def lookup_by_name(self, name: str) -> Optional[Protocol]:
        return self._snap.by_name.get(name)

    def lookup_by_code(self, code: int) -> Optional[Protocol]:
        if isinstance(code, bool) or not isinstance(code, int):
            return None
        return self._snap.by_code.get(code)

    def parse_path_string(self, s: str) -> List[Protocol]:
        """Resolve a slash-delimited list of protocol names.

        "/ip4/tcp" -> [ip4, tcp].  Leading and trailing delimiters are
        ignored and an empty string gives an empty list.  Raises
        UnknownProtocolName on the first segment that is not registered.
        """
        snap = self._snap
        s = s.strip(PATH_DELIMITER)
        if not s:
            return []

        out: List[Protocol] = []
        for segment in s.split(PATH_DELIMITER):
            proto = snap.by_name.get(segment)
            if proto is None:
                raise UnknownProtocolName(segment)
            out.append(proto)
        return out

    # ----- snapshot views -----

    def protocols(self) -> Tuple[Protocol, ...]:
        """All descriptors in registration order."""
        return self._snap.protocols

    def __iter__(self) -> Iterator[Protocol]:
        return iter(self._snap.protocols)

    def __len__(self) -> int:
        return len(self._snap.protocols)

    def __contains__(self, key: object) -> bool:
        snap = self._snap
        if isinstance(key, str):
            return key in snap.by_name
        if isinstance(key, int) and not isinstance(key, bool):
            return key in snap.by_code
        if isinstance(key, Protocol):
            return snap.by_code.get(key.code) == key
        return False

    def __repr__(self) -> str:
        return "Registry({})".format(", ".join(p.name for p in self))
