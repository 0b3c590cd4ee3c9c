"""Payment request identifiers."""
from __future__ import annotations

import random
from typing import Optional

HEX_DIGITS = "0123456789ABCDEF"
ID_LENGTH = 32


class RequestIdGenerator:
    """
    Random 32-character uppercase hex ids for `PUT /paymentrequests/{id}`.
    Pass a seeded `random.Random` in tests; defaults to the OS entropy source.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.SystemRandom()

    def next(self) -> str:
        return "".join(self._rng.choice(HEX_DIGITS) for _ in range(ID_LENGTH))
