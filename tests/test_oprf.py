from opaque_pake.crypto import oprf
from opaque_pake.crypto.group import base_mult, serialize_element


def _run(password, key, blind_scalar=None):
    blind, blinded = oprf.blind(password, blind_scalar)
    return oprf.unblind(oprf.evaluate(key, blinded), blind, password)


def test_output_does_not_depend_on_the_blind():
    key, _ = oprf.derive_key_pair(b"\x01" * 32, b"info")
    assert _run(b"password", key) == _run(b"password", key) == _run(b"password", key, 7)


def test_output_depends_on_password_and_key():
    key, _ = oprf.derive_key_pair(b"\x01" * 32, b"info")
    other_key, _ = oprf.derive_key_pair(b"\x02" * 32, b"info")
    assert _run(b"password", key) != _run(b"Password", key)
    assert _run(b"password", key) != _run(b"password", other_key)
    assert len(_run(b"password", key)) == oprf.OUTPUT_LENGTH


def test_blinded_element_hides_the_password():
    _, first = oprf.blind(b"password")
    _, second = oprf.blind(b"password")
    assert serialize_element(first) != serialize_element(second)


def test_derive_key_pair_is_deterministic():
    secret, public = oprf.derive_key_pair(b"\x03" * 32, b"info")
    again, _ = oprf.derive_key_pair(b"\x03" * 32, b"info")
    other, _ = oprf.derive_key_pair(b"\x03" * 32, b"other info")
    assert secret == again
    assert secret != other
    assert serialize_element(public) == serialize_element(base_mult(secret))
