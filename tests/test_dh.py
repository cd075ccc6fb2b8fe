import pytest

from opaque_pake.common.errors import MalformedMessageError
from opaque_pake.crypto import dh
from opaque_pake.crypto.group import ELEMENT_LENGTH


def test_shared_secret_is_symmetric_compressed_point():
    a_sk, a_pk = dh.generate_key_pair()
    b_sk, b_pk = dh.generate_key_pair()
    shared = dh.derive_shared_secret(a_sk, b_pk)
    assert shared == dh.derive_shared_secret(b_sk, a_pk)
    assert len(shared) == ELEMENT_LENGTH
    assert shared[0] in (2, 3)


def test_triple_dh_agrees():
    c_eph_sk, c_eph_pk = dh.generate_key_pair()
    c_sk, c_pk = dh.generate_key_pair()
    s_eph_sk, s_eph_pk = dh.generate_key_pair()
    s_sk, s_pk = dh.generate_key_pair()
    client = dh.triple_dh_client(c_eph_sk, c_sk, s_eph_pk, s_pk)
    server = dh.triple_dh_server(s_eph_sk, s_sk, c_eph_pk, c_pk)
    assert client == server
    assert len(client) == 3 * ELEMENT_LENGTH


def test_derived_key_pair_is_deterministic():
    sk, pk = dh.derive_key_pair(b"\x05" * 32)
    assert (sk, pk) == dh.derive_key_pair(b"\x05" * 32)
    assert dh.public_key(sk) == pk
    assert pk != dh.derive_key_pair(b"\x06" * 32)[1]


def test_invalid_peer_key_is_malformed():
    sk, _ = dh.generate_key_pair()
    with pytest.raises(MalformedMessageError):
        dh.derive_shared_secret(sk, b"\x02" + b"\xff" * 32)
