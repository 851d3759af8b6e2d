"""Process-independent seed derivation.

Python's built-in ``hash`` of strings is salted per process, so it cannot key
reproducible pseudo-randomness. Seeds here are the first eight bytes
(big-endian, unsigned) of SHA-256 over the ``"|"``-joined string form of the
parts. Datetimes are rendered with ``isoformat()`` and collections must be
sorted by the caller.
"""

from __future__ import annotations

import hashlib
from datetime import date, datetime


SEED_SEPARATOR = "|"


def _render(part: object) -> str:
    if isinstance(part, (datetime, date)):
        return part.isoformat()
    if isinstance(part, (list, tuple)):
        return ",".join(_render(item) for item in part)
    return str(part)


def derive_seed(*parts: object) -> int:
    payload = SEED_SEPARATOR.join(_render(part) for part in parts)
    digest = hashlib.sha256(payload.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], byteorder="big", signed=False)


def derive_request_seed(
    attendees: list[str],
    window_start: datetime,
    window_end: datetime,
    duration_minutes: int,
) -> int:
    return derive_seed(sorted(attendees), window_start, window_end, duration_minutes)
