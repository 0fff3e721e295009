"""Protocol tables from JSON.

Lets a plugin or a CLI user describe extra protocols in a file instead of
code.  The document shape is:

    {"protocols": [
        {"code": 9999, "name": "custom", "size": 0},
        {"code": 777, "name": "blob", "size": "var"},
        {"code": 778, "name": "fs", "size": "var", "path": true}
    ]}

"size" is a bit width, or the string "var" for a length-prefixed payload.
"path" is optional and defaults to false.

Parsing is strict: floats, nulls, duplicate keys and unknown fields are
rejected rather than guessed at.  A table either parses completely or
raises TableError; nothing is registered here.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Union

from ._constants import LENGTH_PREFIXED_VAR_SIZE, UINT64_MAX
from ._errors import InvalidProtocol, TableError
from ._protocols import Protocol

VAR_SIZE_TOKEN = "var"

_REQUIRED = ("code", "name", "size")
_ALLOWED = frozenset(_REQUIRED + ("path",))
_UINT64_DIGITS = len(str(UINT64_MAX))


def _intercept_float(s: str) -> float:
    """Called by json.loads for any number with '.' or 'e'/'E'."""
    raise TableError("float not allowed: {}".format(s))


def _intercept_int(s: str) -> int:
    """Called by json.loads for integer-shaped number tokens.

    Range-checks against uint64 before int() sees an arbitrarily long token.
    """
    if len(s.lstrip("-")) > _UINT64_DIGITS:
        raise TableError("integer outside uint64 range: {}...".format(s[:24]))
    val = int(s)
    if abs(val) > UINT64_MAX:
        raise TableError("integer outside uint64 range: {}".format(s))
    return val


def _pairs_hook(pairs: list) -> dict:
    result: dict = {}
    for key, value in pairs:
        if key in result:
            raise TableError("duplicate key {!r}".format(key))
        result[key] = value
    return result


def _reject_constant(token: str) -> Any:
    raise TableError("JSON constant not allowed: {}".format(token))


def parse_table(raw: Union[bytes, str]) -> Any:
    """Parse raw JSON under the strict rules above."""
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            raise TableError("invalid UTF-8 in protocol table")
    try:
        return json.loads(
            raw,
            object_pairs_hook=_pairs_hook,
            parse_float=_intercept_float,
            parse_int=_intercept_int,
            parse_constant=_reject_constant,
        )
    except TableError:
        raise
    except json.JSONDecodeError as e:
        raise TableError("JSON parse error: {}".format(e))
    except RecursionError:
        raise TableError("protocol table nested too deeply")
    except ValueError as e:
        raise TableError("JSON parse error: {}".format(e))


def _entry_to_protocol(idx: int, entry: Any) -> Protocol:
    if not isinstance(entry, dict):
        raise TableError("protocols[{}] must be an object".format(idx))
    missing = [k for k in _REQUIRED if k not in entry]
    if missing:
        raise TableError("protocols[{}] missing {}".format(idx, ", ".join(missing)))
    unknown = sorted(set(entry) - _ALLOWED)
    if unknown:
        raise TableError("protocols[{}] unknown field {}".format(idx, ", ".join(unknown)))
    if any(v is None for v in entry.values()):
        raise TableError("protocols[{}] null not allowed".format(idx))

    size = entry["size"]
    if size == VAR_SIZE_TOKEN:
        size = LENGTH_PREFIXED_VAR_SIZE
    elif isinstance(size, int) and not isinstance(size, bool) and size < 0:
        # -1 is an internal marker; the file format spells it "var".
        raise TableError("protocols[{}] size must be >= 0 or \"var\"".format(idx))

    try:
        return Protocol(entry["code"], entry["name"], size, entry.get("path", False))
    except InvalidProtocol as e:
        raise TableError("protocols[{}]: {}".format(idx, e))


def protocols_from_json(raw: Union[bytes, str]) -> List[Protocol]:
    """Parse a JSON protocol table into descriptors, in file order."""
    doc = parse_table(raw)
    if not isinstance(doc, dict) or set(doc) != {"protocols"}:
        raise TableError("table must be an object with a single \"protocols\" key")
    entries = doc["protocols"]
    if not isinstance(entries, list):
        raise TableError("\"protocols\" must be a list")
    return [_entry_to_protocol(i, e) for i, e in enumerate(entries)]


def protocol_to_json(proto: Protocol) -> Dict[str, Any]:
    """Inverse of one table entry, for display and export."""
    out: Dict[str, Any] = {
        "code": proto.code,
        "name": proto.name,
        "size": VAR_SIZE_TOKEN if proto.is_length_prefixed else proto.size,
    }
    if proto.path:
        out["path"] = True
    return out
