import pytest

from opaque_pake.common.errors import AuthenticationError
from opaque_pake.crypto.ksf import Argon2idKsf, IdentityKsf


FAST_ARGON2 = dict(time_cost=1, memory_cost=1024, parallelism=1)


def test_identity_ksf_returns_input():
    assert IdentityKsf().stretch(b"abc") == b"abc"


def test_argon2id_is_deterministic_and_length_preserving():
    ksf = Argon2idKsf(**FAST_ARGON2)
    out = ksf.stretch(b"\x01" * 32)
    assert len(out) == 32
    assert out == ksf.stretch(b"\x01" * 32)
    assert out != b"\x01" * 32


def test_argon2id_defaults_come_from_environment(monkeypatch):
    monkeypatch.setenv("OPAQUE_ARGON2_TIME_COST", "2")
    monkeypatch.setenv("OPAQUE_ARGON2_MEMORY_COST", "2048")
    monkeypatch.setenv("OPAQUE_ARGON2_PARALLELISM", "1")
    ksf = Argon2idKsf()
    assert (ksf.time_cost, ksf.memory_cost, ksf.parallelism) == (2, 2048, 1)


def test_login_with_argon2id(register, login):
    ksf = Argon2idKsf(**FAST_ARGON2)
    password_file, export_key = register(ksf=ksf)
    client_finish, session_key = login(password_file, ksf=ksf)
    assert client_finish.session_key == session_key
    assert client_finish.export_key == export_key


def test_ksf_mismatch_fails(register, login):
    password_file, _ = register(ksf=Argon2idKsf(**FAST_ARGON2))
    with pytest.raises(AuthenticationError):
        login(password_file)
