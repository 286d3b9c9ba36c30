# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Who may edit or delete a letter, and until when.

Only the author may mutate a letter, and only while
``now - created_at <= EDIT_WINDOW``. The window is anchored on ``created_at``;
edits do not move it, so once a letter becomes immutable it stays that way.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from cartas.auth.users import Identity
from cartas.core.models import Letter

EDIT_WINDOW = timedelta(minutes=5)


class DenyReason(str, Enum):
    NOT_FOUND = "not_found"
    NOT_AUTHOR = "not_author"
    WINDOW_EXPIRED = "window_expired"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[DenyReason] = None


ALLOWED = Decision(allowed=True)


def mutable_until(letter: Letter) -> datetime:
    return letter.created_at + EDIT_WINDOW


def can_mutate(letter: Optional[Letter], acting: Identity, now: datetime) -> Decision:
    # Order matters: it decides which status/message the client sees.
    if letter is None:
        return Decision(False, DenyReason.NOT_FOUND)
    if letter.author_id != acting:
        return Decision(False, DenyReason.NOT_AUTHOR)
    if now - letter.created_at > EDIT_WINDOW:
        return Decision(False, DenyReason.WINDOW_EXPIRED)
    return ALLOWED
