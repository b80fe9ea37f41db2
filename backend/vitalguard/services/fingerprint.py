"""
Content fingerprints used for audit decoration and record verification.

This is a DJB2-style 32-bit string hash dressed up to look like a 256-bit
digest. It is NOT cryptographic and offers no tamper evidence beyond
"the same input produced the same output". Two equal fingerprints mean
"same logical input", nothing stronger.
"""

from datetime import datetime
from typing import Optional
from vitalguard.clock import epoch_millis, utc_now

SEED = 5381
MASK = 0xFFFFFFFF


def _code_units(text: str):
    # Hash UTF-16 code units so astral characters hash as surrogate pairs
    # and lone surrogates hash as themselves.
    data = text.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        yield data[i] | (data[i + 1] << 8)


def fingerprint(text: str) -> str:
    """Deterministic digest of ``text``: 8 hex digits repeated 4 times, ``0x`` prefixed."""
    h = SEED
    for unit in _code_units(text):
        h = ((h * 33) ^ unit) & MASK
    digest = f"{h:08x}"
    return "0x" + digest * 4


def transaction_id(seed: str, now: Optional[datetime] = None) -> str:
    """Time-salted fingerprint for display only. Never compare these for integrity."""
    moment = now or utc_now()
    return fingerprint(f"{seed}-{epoch_millis(moment)}")
