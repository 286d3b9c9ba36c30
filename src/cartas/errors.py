# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy.

Every error carries the HTTP status it maps to and a message that is safe to
show to the client. Internal details go to the log, never into ``message``.
"""

from __future__ import annotations

from typing import Optional

GENERIC_SERVER_ERROR = "Error interno del servidor"


class CartasError(Exception):
    status_code = 500

    def __init__(self, message: str = GENERIC_SERVER_ERROR):
        super().__init__(message)
        self.message = message


class ConfigurationError(CartasError):
    """Missing or unusable secrets. Never reported as an authentication failure."""

    status_code = 500


class AuthenticationError(CartasError):
    status_code = 401

    def __init__(self, message: str = "No autenticado"):
        super().__init__(message)


class AuthorizationError(CartasError):
    status_code = 403

    def __init__(self, message: str, *, reason: Optional[str] = None):
        super().__init__(message)
        self.reason = reason


class ValidationError(CartasError):
    status_code = 400

    def __init__(self, message: str, *, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(CartasError):
    status_code = 404

    def __init__(self, message: str = "Carta no encontrada"):
        super().__init__(message)


class StoreError(CartasError):
    status_code = 500


def public_message(exc: CartasError) -> str:
    if isinstance(exc, ConfigurationError):
        return GENERIC_SERVER_ERROR
    return exc.message
