# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict

from cartas.auth.users import Identity


def _as_utc(value: Any) -> datetime:
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class Letter:
    id: str
    subject: str
    body: str
    signature: str
    author_id: Identity
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """JSON shape used by the HTTP API (camelCase, ISO-8601 UTC)."""
        return {
            "id": self.id,
            "subject": self.subject,
            "body": self.body,
            "signature": self.signature,
            "authorId": self.author_id.value,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Letter":
        return cls(
            id=str(raw["id"]),
            subject=str(raw.get("subject") or ""),
            body=str(raw.get("body") or ""),
            signature=str(raw.get("signature") or ""),
            author_id=Identity(raw["authorId"]),
            created_at=_as_utc(raw["createdAt"]),
            updated_at=_as_utc(raw.get("updatedAt") or raw["createdAt"]),
        )
