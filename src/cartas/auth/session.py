# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from itsdangerous import BadData, URLSafeTimedSerializer
from starlette.responses import Response

from cartas.auth.users import Identity
from cartas.config import Settings
from cartas.errors import ConfigurationError

logger = logging.getLogger(__name__)

SESSION_MAX_AGE = timedelta(hours=24)
SESSION_MAX_AGE_SECONDS = int(SESSION_MAX_AGE.total_seconds())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SessionData:
    identity: Identity
    issued_at: datetime
    expires_at: datetime


class SessionManager:
    """Issues and validates stateless signed session tokens.

    The token payload is ``{"u": identity, "iat": ts, "exp": ts}`` signed with
    the server secret. Nothing is stored server-side, so revoking only removes
    the cookie from the client that asked for it.
    """

    def __init__(self, settings: Settings, *, clock: Callable[[], datetime] = utcnow):
        if not settings.secret_key:
            raise ConfigurationError("Falta CARTAS_SECRET_KEY (o SECRET_KEY) en entorno")
        self._serializer = URLSafeTimedSerializer(
            secret_key=settings.secret_key, salt=settings.session_salt
        )
        self._clock = clock
        self.cookie_name = settings.cookie_name
        self.cookie_secure = settings.cookie_secure

    def issue(self, identity: Identity) -> str:
        now = self._clock()
        payload = {
            "u": Identity(identity).value,
            "iat": now.timestamp(),
            "exp": (now + SESSION_MAX_AGE).timestamp(),
        }
        return self._serializer.dumps(payload)

    def validate(self, token: Optional[str]) -> Optional[SessionData]:
        """Return the session behind ``token`` or None.

        Absent, tampered, malformed and expired tokens all look the same to
        the caller.
        """
        if not token:
            return None
        try:
            data = self._serializer.loads(token, max_age=SESSION_MAX_AGE_SECONDS)
            identity = Identity(data["u"])
            issued_at = datetime.fromtimestamp(float(data["iat"]), tz=timezone.utc)
            expires_at = datetime.fromtimestamp(float(data["exp"]), tz=timezone.utc)
        except (BadData, KeyError, TypeError, ValueError) as e:
            logger.debug("Sesión rechazada: %s", type(e).__name__)
            return None
        if self._clock() >= expires_at:
            logger.debug("Sesión rechazada: expirada")
            return None
        return SessionData(identity=identity, issued_at=issued_at, expires_at=expires_at)

    def cookie_settings(self) -> dict:
        return {
            "httponly": True,
            "samesite": "lax",
            "secure": self.cookie_secure,
            "path": "/",
        }

    def attach(self, response: Response, identity: Identity) -> str:
        token = self.issue(identity)
        response.set_cookie(
            self.cookie_name,
            token,
            max_age=SESSION_MAX_AGE_SECONDS,
            **self.cookie_settings(),
        )
        return token

    def revoke(self, response: Response) -> None:
        response.delete_cookie(
            self.cookie_name,
            path="/",
            secure=self.cookie_secure,
            httponly=True,
            samesite="lax",
        )
