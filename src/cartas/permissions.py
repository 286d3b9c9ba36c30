# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse

from cartas.auth.session import SessionManager
from cartas.auth.users import Identity
from cartas.errors import AuthenticationError

PUBLIC_READS = {"/letters"}
SAFE_METHODS = {"GET", "HEAD"}


def _sessions(request: Request) -> SessionManager:
    return request.app.state.sessions


def identity_from_request(request: Request) -> Optional[Identity]:
    sessions = _sessions(request)
    sess = sessions.validate(request.cookies.get(sessions.cookie_name, ""))
    if not sess:
        return None
    return sess.identity


def require_identity(request: Request) -> Identity:
    """Dependency for handlers that mutate state. Resolves the identity itself."""
    identity = identity_from_request(request)
    if identity is None:
        raise AuthenticationError()
    return identity


def is_public(request: Request) -> bool:
    path = request.url.path
    if path.startswith("/login"):
        return True
    if path == "/auth" or path.startswith("/auth/"):
        return True
    return request.method in SAFE_METHODS and path.rstrip("/") in PUBLIC_READS


def _wants_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "")


async def access_gate(request: Request, call_next):
    """Turn away requests without any valid session.

    Only answers "is somebody logged in"; which letter they may touch is
    decided by the handlers. Identity is not forwarded: handlers resolve it
    again from the cookie.
    """
    if is_public(request) or identity_from_request(request) is not None:
        return await call_next(request)

    if _wants_html(request):
        next_url = request.url.path
        if request.url.query:
            next_url += "?" + request.url.query
        return RedirectResponse(url=f"/login?next={quote(next_url, safe='/')}", status_code=303)
    return JSONResponse({"success": False, "error": AuthenticationError().message}, status_code=401)
