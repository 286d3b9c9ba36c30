# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Process-wide configuration.

Read once at startup by ``load_settings()`` and passed explicitly to the
components that need it (credential verifier, session manager, store).
"""

from __future__ import annotations

import os
from dataclasses import dataclass


def _env(*names: str, default: str = "") -> str:
    for name in names:
        value = os.getenv(name)
        if value:
            return value.strip()
    return default


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y"}


@dataclass(frozen=True)
class Settings:
    secret_key: str
    user_1_password_hash: str = ""
    user_2_password_hash: str = ""
    cookie_name: str = "session"
    session_salt: str = "cartas.session.v1"
    environment: str = "development"
    letters_path: str = ""
    log_level: str = "INFO"

    @property
    def cookie_secure(self) -> bool:
        return self.environment.lower() != "development"


def load_settings() -> Settings:
    return Settings(
        secret_key=_env("CARTAS_SECRET_KEY", "SECRET_KEY"),
        user_1_password_hash=_env("CARTAS_USER_1_PASSWORD_HASH", "USER_1_PASSWORD_HASH"),
        user_2_password_hash=_env("CARTAS_USER_2_PASSWORD_HASH", "USER_2_PASSWORD_HASH"),
        cookie_name=_env("CARTAS_COOKIE_NAME", default="session"),
        session_salt=_env("CARTAS_SESSION_SALT", default="cartas.session.v1"),
        environment=_env("CARTAS_ENV", default="development"),
        letters_path=_env("CARTAS_LETTERS_PATH"),
        log_level=_env("CARTAS_LOG_LEVEL", default="INFO"),
    )


def server_options() -> dict:
    return {
        "host": _env("CARTAS_HOST", default="0.0.0.0"),
        "port": int(_env("CARTAS_PORT", default="8000")),
        "reload": _env_bool("CARTAS_RELOAD"),
    }
