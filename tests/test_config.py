import importlib.util
from pathlib import Path

import pytest

from cartas.app import create_app
from cartas.auth.passwords import verify_password
from cartas.config import load_settings
from cartas.errors import ConfigurationError
from cartas.infra.letter_repo import YamlLetterRepo

ENV_VARS = [
    "CARTAS_SECRET_KEY", "SECRET_KEY",
    "CARTAS_USER_1_PASSWORD_HASH", "USER_1_PASSWORD_HASH",
    "CARTAS_USER_2_PASSWORD_HASH", "USER_2_PASSWORD_HASH",
    "CARTAS_ENV", "CARTAS_LETTERS_PATH", "CARTAS_COOKIE_NAME",
]


@pytest.fixture()
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_load_settings_from_environment(clean_env, tmp_path):
    clean_env.setenv("SECRET_KEY", "s3cret")
    clean_env.setenv("CARTAS_USER_1_PASSWORD_HASH", "h1")
    clean_env.setenv("USER_2_PASSWORD_HASH", "h2")
    clean_env.setenv("CARTAS_ENV", "production")
    clean_env.setenv("CARTAS_LETTERS_PATH", str(tmp_path / "letters.yml"))

    s = load_settings()
    assert s.secret_key == "s3cret"
    assert (s.user_1_password_hash, s.user_2_password_hash) == ("h1", "h2")
    assert s.cookie_name == "session"
    assert s.cookie_secure is True
    assert s.letters_path.endswith("letters.yml")


def test_defaults_are_local_development(clean_env):
    s = load_settings()
    assert s.environment == "development"
    assert s.cookie_secure is False
    assert s.letters_path == ""


def test_app_refuses_to_start_without_signing_secret(clean_env):
    with pytest.raises(ConfigurationError):
        create_app()


def test_app_uses_yaml_store_when_configured(clean_env, tmp_path):
    clean_env.setenv("CARTAS_SECRET_KEY", "s3cret")
    clean_env.setenv("CARTAS_LETTERS_PATH", str(tmp_path / "letters.yml"))
    app = create_app()
    assert isinstance(app.state.repo, YamlLetterRepo)


def _load_script():
    path = Path(__file__).resolve().parents[1] / "scripts" / "hash_password.py"
    spec = importlib.util.spec_from_file_location("hash_password_script", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_hash_password_script_prints_usable_hash(monkeypatch, capsys):
    script = _load_script()
    answers = iter(["pw-larga", "pw-larga"])
    monkeypatch.setattr("builtins.input", lambda prompt="": "user_2")
    monkeypatch.setattr(script, "getpass", lambda prompt="": next(answers))

    script.main()

    line = capsys.readouterr().out.strip()
    assert line.startswith("CARTAS_USER_2_PASSWORD_HASH='")
    assert verify_password(line.split("'")[1], "pw-larga")


def test_hash_password_script_rejects_mismatch(monkeypatch):
    script = _load_script()
    answers = iter(["una", "otra"])
    monkeypatch.setattr("builtins.input", lambda prompt="": "")
    monkeypatch.setattr(script, "getpass", lambda prompt="": next(answers))
    with pytest.raises(SystemExit):
        script.main()
