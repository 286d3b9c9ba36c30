# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple

from cartas.auth.passwords import verify_password
from cartas.config import Settings
from cartas.errors import ConfigurationError


class Identity(str, Enum):
    """The two principals of the application. The set is closed."""

    USER_1 = "user_1"
    USER_2 = "user_2"


class CredentialVerifier:
    """Maps a submitted password to one of the two identities.

    Each identity owns one argon2 hash. Candidates are checked against
    ``user_1`` first, then ``user_2``; the first match wins.
    """

    def __init__(self, settings: Settings):
        self._hashes: Tuple[Tuple[Identity, str], ...] = (
            (Identity.USER_1, settings.user_1_password_hash),
            (Identity.USER_2, settings.user_2_password_hash),
        )

    def is_configured(self) -> bool:
        return all(h for _, h in self._hashes)

    def verify(self, candidate: str) -> Optional[Identity]:
        if not self.is_configured():
            raise ConfigurationError("Faltan los hashes de contraseña (USER_1/USER_2)")
        for identity, hash_value in self._hashes:
            if verify_password(hash_value, candidate):
                return identity
        return None
