# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict

from cartas.auth.users import Identity
from cartas.core.authorization import DenyReason, can_mutate
from cartas.core.models import Letter
from cartas.core.sanitize import sanitize_html
from cartas.errors import AuthorizationError, NotFoundError, ValidationError
from cartas.infra.letter_repo import LetterRepo, new_letter_id

logger = logging.getLogger(__name__)

MAX_BODY_LENGTH = 10_000
MIN_SIGNATURE_LENGTH = 2

_DENY_MESSAGES = {
    ("edit", DenyReason.NOT_AUTHOR): "Solo puedes editar tus propias cartas",
    ("delete", DenyReason.NOT_AUTHOR): "Solo puedes eliminar tus propias cartas",
    ("edit", DenyReason.WINDOW_EXPIRED): "El plazo de edición ha expirado (5 minutos)",
    ("delete", DenyReason.WINDOW_EXPIRED): "El plazo de eliminación ha expirado (5 minutos)",
}


@dataclass(frozen=True)
class LetterDraft:
    subject: str
    body: str
    signature: str


def _text(payload: Dict[str, Any], key: str) -> str:
    value = payload.get(key)
    return value if isinstance(value, str) else ""


def parse_draft(payload: Any) -> LetterDraft:
    """Validate a create/edit payload. ``body`` is returned raw (unsanitized)."""
    if not isinstance(payload, dict):
        payload = {}
    subject = _text(payload, "subject")
    # "content" is the field name used by the rich-text editor client.
    body = _text(payload, "body") or _text(payload, "content")
    signature = _text(payload, "signature")

    missing = [
        name
        for name, value in (("subject", subject.strip()), ("body", body), ("signature", signature.strip()))
        if not value
    ]
    if missing:
        raise ValidationError("Asunto, contenido y firma son obligatorios", field=missing[0])

    if len(signature.strip()) < MIN_SIGNATURE_LENGTH:
        raise ValidationError(
            f"La firma debe tener al menos {MIN_SIGNATURE_LENGTH} caracteres", field="signature"
        )

    if len(body) > MAX_BODY_LENGTH:
        raise ValidationError(
            f"El contenido no puede superar {MAX_BODY_LENGTH} caracteres", field="body"
        )

    return LetterDraft(subject=subject.strip(), body=body, signature=signature.strip())


def _clean_body(draft: LetterDraft) -> str:
    clean = sanitize_html(draft.body)
    if not clean:
        raise ValidationError("El contenido queda vacío tras la limpieza de HTML", field="body")
    return clean


def _authorize(repo: LetterRepo, letter_id: str, acting: Identity, now: datetime, action: str) -> Letter:
    letter = repo.get(letter_id)
    decision = can_mutate(letter, acting, now)
    if decision.allowed:
        return letter
    if decision.reason == DenyReason.NOT_FOUND:
        raise NotFoundError()
    logger.info("Denegado %s de carta %s a %s: %s", action, letter_id, acting.value, decision.reason.value)
    raise AuthorizationError(_DENY_MESSAGES[(action, decision.reason)], reason=decision.reason.value)


def create_letter(repo: LetterRepo, draft: LetterDraft, author: Identity, now: datetime) -> Letter:
    letter = Letter(
        id=new_letter_id(),
        subject=draft.subject,
        body=_clean_body(draft),
        signature=draft.signature,
        author_id=author,
        created_at=now,
        updated_at=now,
    )
    repo.insert(letter)
    logger.info("Carta %s creada por %s", letter.id, author.value)
    return letter


def update_letter(
    repo: LetterRepo, letter_id: str, draft: LetterDraft, acting: Identity, now: datetime
) -> Letter:
    """Edit subject/body/signature. ``created_at`` (and with it the window) never moves."""
    _authorize(repo, letter_id, acting, now, "edit")
    updated = repo.update(
        letter_id,
        subject=draft.subject,
        body=_clean_body(draft),
        signature=draft.signature,
        updated_at=now,
    )
    if updated is None:
        # Deleted between the check and the write.
        raise NotFoundError()
    logger.info("Carta %s editada por %s", letter_id, acting.value)
    return updated


def delete_letter(repo: LetterRepo, letter_id: str, acting: Identity, now: datetime) -> None:
    _authorize(repo, letter_id, acting, now, "delete")
    if not repo.delete(letter_id):
        raise NotFoundError()
    logger.info("Carta %s eliminada por %s", letter_id, acting.value)
