# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Letter storage.

Each operation is atomic for a single letter (guarded by a lock). There is no
optimistic concurrency token: two updates to the same letter race and the last
one wins.
"""

from __future__ import annotations

import os
import tempfile
import threading
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

import yaml

from cartas.core.models import Letter
from cartas.errors import StoreError

IMMUTABLE_FIELDS = frozenset({"id", "author_id", "created_at"})
MUTABLE_FIELDS = frozenset({"subject", "body", "signature", "updated_at"})


def new_letter_id() -> str:
    return uuid.uuid4().hex


@runtime_checkable
class LetterRepo(Protocol):
    def insert(self, letter: Letter) -> Letter: ...

    def list_all(self) -> List[Letter]: ...

    def get(self, letter_id: str) -> Optional[Letter]: ...

    def update(self, letter_id: str, **fields: Any) -> Optional[Letter]: ...

    def delete(self, letter_id: str) -> bool: ...


class InMemoryLetterRepo:
    def __init__(self) -> None:
        self._letters: Dict[str, Letter] = {}
        self._lock = threading.RLock()

    def insert(self, letter: Letter) -> Letter:
        with self._lock:
            if letter.id in self._letters:
                raise StoreError(f"Ya existe una carta con id '{letter.id}'")
            self._commit({**self._letters, letter.id: letter})
            return letter

    def list_all(self) -> List[Letter]:
        """All letters, newest first."""
        with self._lock:
            letters = list(self._letters.values())
        return sorted(letters, key=lambda x: x.created_at, reverse=True)

    def get(self, letter_id: str) -> Optional[Letter]:
        with self._lock:
            return self._letters.get(str(letter_id or ""))

    def update(self, letter_id: str, **fields: Any) -> Optional[Letter]:
        """Apply ``fields`` to an existing letter. Returns None if it is gone."""
        frozen = IMMUTABLE_FIELDS & set(fields)
        if frozen:
            raise ValueError(f"Campos no modificables: {', '.join(sorted(frozen))}")
        unknown = set(fields) - MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Campos desconocidos: {', '.join(sorted(unknown))}")

        with self._lock:
            current = self._letters.get(letter_id)
            if current is None:
                return None
            updated = replace(current, **fields)
            self._commit({**self._letters, letter_id: updated})
            return updated

    def delete(self, letter_id: str) -> bool:
        with self._lock:
            if letter_id not in self._letters:
                return False
            self._commit({k: v for k, v in self._letters.items() if k != letter_id})
            return True

    def _commit(self, letters: Dict[str, Letter]) -> None:
        # Persist first: a failed write must leave the previous state in place.
        self._persist(letters)
        self._letters = letters

    def _persist(self, letters: Dict[str, Letter]) -> None:
        """Hook for durable subclasses; called with the lock held."""


class YamlLetterRepo(InMemoryLetterRepo):
    """Keeps the collection in memory and rewrites a YAML file on every change."""

    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = Path(path).resolve()
        self._letters = self._load()

    def _load(self) -> Dict[str, Letter]:
        if not self.path.exists():
            return {}
        try:
            raw = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
            items = (raw.get("letters") or []) if isinstance(raw, dict) else []
            letters = [Letter.from_dict(item) for item in items if isinstance(item, dict)]
        except (OSError, yaml.YAMLError, KeyError, TypeError, ValueError) as e:
            raise StoreError(f"No se pudo leer '{self.path}'") from e
        return {letter.id: letter for letter in letters}

    def _persist(self, letters: Dict[str, Letter]) -> None:
        doc = {
            "version": 1,
            "letters": [letter.to_dict() for letter in letters.values()],
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=str(self.path.parent), suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    yaml.safe_dump(doc, fh, sort_keys=False, allow_unicode=True)
                os.replace(tmp, self.path)
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
        except OSError as e:
            raise StoreError(f"No se pudo escribir '{self.path}'") from e
