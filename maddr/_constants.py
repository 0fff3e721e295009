"""Wire constants, well-known protocol codes, and decoding limits.

The protocol codes are part of the binary address format.  Changing one
breaks every address already encoded with it, so they are written out
here rather than loaded from a table at runtime.
"""

from __future__ import annotations

# ── Unsigned varint limits ───────────────────────────────────
# A uint64 needs at most ceil(64 / 7) = 10 bytes.  The 10th byte may
# only carry the single remaining high bit, so its value must be 0 or 1.
UINT64_MAX: int = 2**64 - 1
MAX_VARINT_LEN64: int = 10

VARINT_CONTINUATION: int = 0x80
VARINT_PAYLOAD_MASK: int = 0x7F

# ── Textual address form ─────────────────────────────────────
PATH_DELIMITER: str = "/"

# ── Size classes ─────────────────────────────────────────────
# size >= 0 is a fixed payload width in bits (0 = no payload).
# LENGTH_PREFIXED_VAR_SIZE marks a payload preceded by its own varint
# byte length.
LENGTH_PREFIXED_VAR_SIZE: int = -1

# ── Well-known protocol codes ────────────────────────────────
P_IP4: int = 4
P_TCP: int = 6
P_UDP: int = 17
P_DCCP: int = 33
P_IP6: int = 41
P_SCTP: int = 132
P_UTP: int = 301
P_UDT: int = 302
P_UNIX: int = 400
P_IPFS: int = 421
P_HTTPS: int = 443
P_ONION: int = 444
P_HTTP: int = 480
