"""
Single-use MFA recovery codes.

Codes look like ``A1B2-C3D4``. Only SHA-256 hashes of the formatted code are
stored. The vault locates a matching hash; removing it (so the code cannot be
replayed) is the caller's job and must happen before the login is accepted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Sequence

from shared.crypto import digests_equal, hash_token
from shared.generators import generate_backup_code

DEFAULT_BACKUP_CODE_COUNT = 10

_NON_ALPHANUMERIC = re.compile(r"[^A-Z0-9]")


@dataclass(frozen=True)
class BackupCodeBatch:
    codes: list[str]
    hashes: list[str]


def normalize_backup_code(code: str) -> str:
    """Uppercase, drop separators and whitespace, restore the ``XXXX-XXXX`` form.

    Input that does not reduce to exactly eight characters is returned
    uppercased but otherwise untouched, so it simply fails to match.
    """
    upper = code.upper()
    stripped = _NON_ALPHANUMERIC.sub("", upper)
    if len(stripped) == 8:
        return f"{stripped[:4]}-{stripped[4:]}"
    return upper


class BackupCodeVault:
    def generate(self, count: int = DEFAULT_BACKUP_CODE_COUNT) -> BackupCodeBatch:
        codes = [generate_backup_code() for _ in range(count)]
        return BackupCodeBatch(codes=codes, hashes=[hash_token(c) for c in codes])

    def verify(self, code: str, stored_hashes: Sequence[str]) -> Optional[int]:
        """Return the index of the matching stored hash, or None."""
        if not code:
            return None
        candidate = hash_token(normalize_backup_code(code))

        # Walk the whole list so the timing does not depend on the position.
        found: Optional[int] = None
        for index, stored in enumerate(stored_hashes):
            if digests_equal(candidate, stored) and found is None:
                found = index
        return found
