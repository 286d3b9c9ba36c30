#!/usr/bin/env python3
"""Print an argon2 hash for CARTAS_USER_1_PASSWORD_HASH / CARTAS_USER_2_PASSWORD_HASH."""
from __future__ import annotations

from getpass import getpass

from cartas.auth.passwords import hash_password


def main() -> None:
    identity = (input("Identity [user_1/user_2]: ").strip().lower() or "user_1")
    if identity not in {"user_1", "user_2"}:
        raise SystemExit(f"Identidad desconocida: {identity}")

    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords no coinciden")
    if not pw1:
        raise SystemExit("Password vacío")

    print(f"CARTAS_{identity.upper()}_PASSWORD_HASH='{hash_password(pw1)}'")


if __name__ == "__main__":
    main()
