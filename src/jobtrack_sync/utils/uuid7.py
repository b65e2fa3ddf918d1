"""
uuid7.py - UUID v7 generation.

Implements UUID v7 (time-ordered) creation using standard library.
Record ids sort roughly by creation time, which keeps SQLite
primary-key inserts local.
"""

import os
import time
import uuid


def generate_uuid_v7(t_ms: int | None = None) -> bytes:
    """
    Generate a UUID v7 (time-ordered) as raw 16 bytes.

    Structure:
    - 48 bits: Timestamp (ms)
    - 4 bits: Version (7)
    - 12 bits: rand_a
    - 2 bits: Variant (10)
    - 62 bits: rand_b
    """
    if t_ms is None:
        t_ms = int(time.time() * 1000)

    # 48 bits time (6 bytes)
    t_bytes = (t_ms & 0xFFFFFFFFFFFF).to_bytes(6, byteorder="big")

    # 10 random bytes
    r = bytearray(os.urandom(10))

    # Byte 6 of the final result is the version byte (index 0 in r)
    r[0] = (r[0] & 0x0F) | 0x70

    # Byte 8 of the final result is the variant byte (index 2 in r)
    r[2] = (r[2] & 0x3F) | 0x80

    return t_bytes + bytes(r)


def uuid7_str(t_ms: int | None = None) -> str:
    """Canonical 36-character text form of a fresh UUID v7."""
    return str(uuid.UUID(bytes=generate_uuid_v7(t_ms)))
