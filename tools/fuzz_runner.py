#!/usr/bin/env python3
# tools/fuzz_runner.py
#
# Randomized checks for the varint codec and the registry.
#
# Three fuzz categories:
#   A) random uint64 values -> encode -> decode round-trip + minimal length
#   B) random byte strings -> decode must return or raise MalformedVarint,
#      and a successful decode must re-read the same bytes
#   C) threaded registration races -> uniqueness invariant holds
#
# Any violation prints a minimal repro payload and exits non-zero.

import os, sys, json, random, threading
from typing import Any, Dict, List

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from maddr import (
    UINT64_MAX,
    MalformedVarint,
    Protocol,
    RegistrationError,
    Registry,
    decode_uvarint,
    encode_uvarint,
)

SEED = int(os.environ.get("MADDR_SEED", "4242"))
ROUNDS = int(os.environ.get("MADDR_FUZZ_ROUNDS", "5000"))
RACE_THREADS = int(os.environ.get("MADDR_RACE_THREADS", "8"))

random.seed(SEED)

def violation(label: str, ctx: Dict[str, Any]) -> None:
    print("VIOLATION:", label)
    print("CTX:", json.dumps(ctx)[:4000])
    raise SystemExit(1)

def min_len(v: int) -> int:
    return max(1, (v.bit_length() + 6) // 7)

# --- generators ---

def rand_uint64() -> int:
    # Bias towards byte-length boundaries, where off-by-one bugs live.
    r = random.random()
    if r < 0.3:
        k = random.randint(1, 9)
        return min(UINT64_MAX, 2 ** (7 * k) + random.randint(-2, 1))
    if r < 0.6:
        return random.getrandbits(random.randint(1, 64))
    return random.randint(0, 1 << 16)

def rand_bytes() -> bytes:
    n = random.randint(0, 14)
    if random.random() < 0.5:
        # mostly continuation bytes, so long and overlong varints show up
        return bytes(random.randint(0x80, 0xFF) for _ in range(n)) + bytes(random.getrandbits(8) for _ in range(random.randint(0, 2)))
    return bytes(random.getrandbits(8) for _ in range(n))

# --- checks ---

def check_round_trip(i: int) -> None:
    v = rand_uint64()
    enc = encode_uvarint(v)
    if len(enc) != min_len(v):
        violation("A non-minimal encoding", {"round": i, "value": v, "hex": enc.hex()})
    got = decode_uvarint(enc + b"\xff\x00")
    if got != (v, len(enc)):
        violation("A round-trip", {"round": i, "value": v, "got": list(got)})

def check_decode_bytes(i: int) -> None:
    raw = rand_bytes()
    try:
        v, n = decode_uvarint(raw)
    except MalformedVarint:
        return
    if not (0 <= v <= UINT64_MAX) or not (1 <= n <= len(raw)):
        violation("B out-of-range decode", {"round": i, "hex": raw.hex(), "value": v, "n": n})
    if decode_uvarint(raw[:n]) != (v, n):
        violation("B prefix re-read", {"round": i, "hex": raw.hex()})

def check_race(i: int) -> None:
    reg = Registry()
    base = 10_000 + i
    barrier = threading.Barrier(RACE_THREADS)
    winners: List[int] = []

    def worker(t: int) -> None:
        barrier.wait()
        # half the threads fight over one code, half over one name
        proto = Protocol(base if t % 2 else base + 1 + t, "race{}".format(i) if t % 2 == 0 else "r{}_{}".format(i, t), 0)
        try:
            reg.register(proto)
            winners.append(t)
        except RegistrationError:
            pass

    threads = [threading.Thread(target=worker, args=(t,)) for t in range(RACE_THREADS)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    codes = [p.code for p in reg]
    names = [p.name for p in reg]
    if len(codes) != len(set(codes)) or len(names) != len(set(names)):
        violation("C uniqueness", {"round": i, "winners": winners})
    if len(winners) != 2:
        violation("C winner count", {"round": i, "winners": winners})

def main() -> int:
    for i in range(ROUNDS):
        r = random.random()
        if r < 0.45:
            check_round_trip(i)
        elif r < 0.95:
            check_decode_bytes(i)
        else:
            check_race(i)

    print(f"OK: fuzz rounds={ROUNDS} seed={SEED} (no violations)")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
