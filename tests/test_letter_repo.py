from datetime import datetime, timedelta, timezone

import pytest

from cartas.auth.users import Identity
from cartas.core.models import Letter
from cartas.errors import StoreError
from cartas.infra.letter_repo import InMemoryLetterRepo, LetterRepo, YamlLetterRepo, new_letter_id

T0 = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def _letter(minutes: int = 0, author=Identity.USER_1) -> Letter:
    ts = T0 + timedelta(minutes=minutes)
    return Letter(
        id=new_letter_id(),
        subject=f"carta {minutes}",
        body="<p>ñandú</p>",
        signature="Ana",
        author_id=author,
        created_at=ts,
        updated_at=ts,
    )


def test_list_is_newest_first(repo):
    old, new = _letter(0), _letter(3)
    repo.insert(old)
    repo.insert(new)
    assert [x.id for x in repo.list_all()] == [new.id, old.id]


def test_insert_duplicate_id_fails(repo):
    letter = _letter()
    repo.insert(letter)
    with pytest.raises(StoreError):
        repo.insert(letter)


@pytest.mark.parametrize("field", ["id", "author_id", "created_at"])
def test_identity_fields_are_immutable(repo, field):
    letter = repo.insert(_letter())
    with pytest.raises(ValueError):
        repo.update(letter.id, **{field: getattr(letter, field)})


def test_update_and_delete_missing(repo):
    assert repo.update("nope", subject="x") is None
    assert repo.delete("nope") is False


def test_yaml_repo_survives_restart(tmp_path):
    path = tmp_path / "data" / "letters.yml"
    first = YamlLetterRepo(path)
    a, b = _letter(0), _letter(1, Identity.USER_2)
    first.insert(a)
    first.insert(b)
    first.update(a.id, subject="editada", updated_at=T0 + timedelta(minutes=2))
    first.delete(b.id)

    second = YamlLetterRepo(path)
    reloaded = second.get(a.id)
    assert reloaded.subject == "editada"
    assert reloaded.body == "<p>ñandú</p>"
    assert reloaded.created_at == T0
    assert reloaded.updated_at == T0 + timedelta(minutes=2)
    assert reloaded.author_id is Identity.USER_1
    assert second.get(b.id) is None


def test_yaml_repo_corrupt_file(tmp_path):
    path = tmp_path / "letters.yml"
    path.write_text("letters:\n  - {id: x}\n", encoding="utf-8")
    with pytest.raises(StoreError):
        YamlLetterRepo(path)


def test_failed_write_keeps_previous_state(monkeypatch):
    repo = InMemoryLetterRepo()
    kept = repo.insert(_letter())

    def _boom(letters):
        raise StoreError("disco lleno")

    monkeypatch.setattr(repo, "_persist", _boom)
    with pytest.raises(StoreError):
        repo.insert(_letter(1))
    with pytest.raises(StoreError):
        repo.delete(kept.id)
    assert [x.id for x in repo.list_all()] == [kept.id]


def test_both_backends_satisfy_the_repo_protocol(tmp_path):
    assert isinstance(InMemoryLetterRepo(), LetterRepo)
    assert isinstance(YamlLetterRepo(tmp_path / "letters.yml"), LetterRepo)
