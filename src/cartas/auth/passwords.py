# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from cartas.errors import ConfigurationError

_PH = PasswordHasher()


def hash_password(plain: str) -> str:
    if not plain:
        raise ValueError("Password vacío")
    return _PH.hash(plain)


def verify_password(hash_value: str, plain: str) -> bool:
    """Check ``plain`` against an argon2 hash.

    A hash that argon2 cannot parse is a configuration problem, not a wrong
    password, so it raises ``ConfigurationError``.
    """
    if not hash_value or not plain:
        return False
    try:
        return _PH.verify(hash_value, plain)
    except VerifyMismatchError:
        return False
    except InvalidHashError as e:
        raise ConfigurationError("Hash de contraseña con formato inválido") from e
    except VerificationError:
        return False
