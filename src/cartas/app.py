# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import urlsplit

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from starlette.concurrency import run_in_threadpool

from cartas.auth.session import SessionManager, utcnow
from cartas.auth.users import CredentialVerifier, Identity
from cartas.config import Settings, load_settings
from cartas.core.authorization import mutable_until
from cartas.core.logger import setup_logger
from cartas.errors import (
    AuthenticationError,
    AuthorizationError,
    CartasError,
    ConfigurationError,
    NotFoundError,
    StoreError,
    ValidationError,
    public_message,
)
from cartas.infra.letter_repo import InMemoryLetterRepo, LetterRepo, YamlLetterRepo
from cartas.permissions import access_gate, identity_from_request, require_identity
from cartas.services.letter_service import create_letter, delete_letter, parse_draft, update_letter

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

router = APIRouter()


def _repo(request: Request) -> LetterRepo:
    return request.app.state.repo


def _now(request: Request) -> datetime:
    return request.app.state.clock()


async def _json_body(request: Request):
    try:
        return await request.json()
    except ValueError:
        return None


def _safe_next(value: str) -> str:
    """Same-site absolute path, or "/" when a browser could read it as another host."""
    candidate = value or ""
    if not candidate.startswith("/") or candidate.startswith("//"):
        return "/"
    if "\\" in candidate or any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in candidate):
        return "/"
    parts = urlsplit(candidate)
    if parts.scheme or parts.netloc:
        return "/"
    return candidate


@contextmanager
def _store_guard(message: str):
    """Anything unexpected inside becomes a StoreError with a generic message."""
    try:
        yield
    except (ValidationError, AuthenticationError, AuthorizationError, NotFoundError):
        raise
    except Exception as e:
        logger.exception(message)
        raise StoreError(message) from e


# ------------------ Pages ------------------


@router.get("/login", response_class=HTMLResponse)
def login_get(request: Request, next: str = "/"):
    target = _safe_next(next)
    if identity_from_request(request) is not None:
        return RedirectResponse(url=target, status_code=303)
    return templates.TemplateResponse(request=request, name="login.html", context={"next": target})


@router.get("/", response_class=HTMLResponse)
def home(request: Request, identity: Identity = Depends(require_identity)):
    now = _now(request)
    with _store_guard("No se pudieron obtener las cartas"):
        letters = _repo(request).list_all()
    rows = [
        {
            "letter": letter,
            # UI hint only; every mutation is re-authorized server-side.
            "editable": letter.author_id == identity and now <= mutable_until(letter),
        }
        for letter in letters
    ]
    return templates.TemplateResponse(
        request=request,
        name="index.html",
        context={"identity": identity.value, "rows": rows},
    )


# ------------------ Auth API ------------------


@router.post("/auth/login")
async def login(request: Request):
    body = await _json_body(request)
    password = body.get("password") if isinstance(body, dict) else None
    if not isinstance(password, str) or not password:
        raise ValidationError("La contraseña es obligatoria", field="password")

    verifier: CredentialVerifier = request.app.state.verifier
    try:
        identity = await run_in_threadpool(verifier.verify, password)
    except CartasError:
        raise
    except Exception as e:
        logger.exception("Error inesperado verificando credenciales")
        raise CartasError() from e

    if identity is None:
        logger.warning("Login fallido")
        raise AuthenticationError("Contraseña incorrecta")

    resp = JSONResponse({"success": True, "userId": identity.value}, status_code=200)
    request.app.state.sessions.attach(resp, identity)
    logger.info("Login correcto: %s", identity.value)
    return resp


@router.get("/auth/me")
def me(request: Request):
    identity = identity_from_request(request)
    if identity is None:
        raise AuthenticationError()
    return {"userId": identity.value}


@router.post("/auth/logout")
def logout(request: Request):
    resp = JSONResponse({"success": True}, status_code=200)
    request.app.state.sessions.revoke(resp)
    return resp


# ------------------ Letters API ------------------


@router.api_route("/letters", methods=["GET", "HEAD"])
def list_letters(request: Request):
    with _store_guard("No se pudieron obtener las cartas"):
        letters = _repo(request).list_all()
    return [letter.to_dict() for letter in letters]


@router.post("/letters")
async def post_letter(request: Request, identity: Identity = Depends(require_identity)):
    draft = parse_draft(await _json_body(request))
    with _store_guard("No se pudo crear la carta"):
        letter = await run_in_threadpool(create_letter, _repo(request), draft, identity, _now(request))
    return JSONResponse(
        {"success": True, "letterId": letter.id, "letter": letter.to_dict()},
        status_code=201,
    )


@router.put("/letters/{letter_id}")
async def put_letter(letter_id: str, request: Request, identity: Identity = Depends(require_identity)):
    draft = parse_draft(await _json_body(request))
    with _store_guard("No se pudo actualizar la carta"):
        letter = await run_in_threadpool(update_letter, _repo(request), letter_id, draft, identity, _now(request))
    return {"success": True, "message": "Carta actualizada", "letter": letter.to_dict()}


@router.delete("/letters/{letter_id}")
def remove_letter(letter_id: str, request: Request, identity: Identity = Depends(require_identity)):
    with _store_guard("No se pudo eliminar la carta"):
        delete_letter(_repo(request), letter_id, identity, _now(request))
    return {"success": True, "message": "Carta eliminada"}


# ------------------ Factory ------------------


async def _cartas_error_handler(request: Request, exc: CartasError):
    if isinstance(exc, ConfigurationError):
        logger.error("Error de configuración: %s", exc.message)
    return JSONResponse({"success": False, "error": public_message(exc)}, status_code=exc.status_code)


def _default_repo(settings: Settings) -> LetterRepo:
    if settings.letters_path:
        return YamlLetterRepo(Path(settings.letters_path))
    return InMemoryLetterRepo()


def create_app(
    settings: Optional[Settings] = None,
    *,
    repo: Optional[LetterRepo] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    """Build the application.

    Fails with ``ConfigurationError`` when the signing secret is missing.
    Missing password hashes are only logged here: reads keep working and
    each login attempt answers 500.
    """
    settings = settings or load_settings()
    setup_logger(settings.log_level)
    clock = clock or utcnow

    sessions = SessionManager(settings, clock=clock)
    verifier = CredentialVerifier(settings)
    if not verifier.is_configured():
        logger.error("Faltan CARTAS_USER_1_PASSWORD_HASH / CARTAS_USER_2_PASSWORD_HASH: el login no funcionará")

    app = FastAPI(title="Cartas")
    app.state.settings = settings
    app.state.sessions = sessions
    app.state.verifier = verifier
    app.state.repo = repo if repo is not None else _default_repo(settings)
    app.state.clock = clock

    app.middleware("http")(access_gate)
    app.add_exception_handler(CartasError, _cartas_error_handler)
    app.include_router(router)
    return app
