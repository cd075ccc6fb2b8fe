import pytest

from opaque_pake.client import client_registration_finish, client_registration_start
from opaque_pake.common.errors import MalformedMessageError, OpaqueError
from opaque_pake.common.protocol import RegistrationResponse, RegistrationUpload
from opaque_pake.server import (
    server_public_key, server_registration_finish, server_registration_start,
)


def test_registration_produces_password_file(setup, register):
    password_file, export_key = register()
    assert len(password_file) == RegistrationUpload.length()
    assert len(export_key) == 32


def test_response_carries_server_public_key(setup):
    start = client_registration_start(b"password")
    response = RegistrationResponse.deserialize(
        server_registration_start(setup, start.registration_request, b"alice")
    )
    assert response.server_public_key == server_public_key(setup)


def test_oprf_evaluation_depends_only_on_identifier(setup):
    # Same blinded element, same identifier -> same evaluation.
    start = client_registration_start(b"password")
    first = server_registration_start(setup, start.registration_request, b"alice")
    again = server_registration_start(setup, start.registration_request, b"alice")
    other = server_registration_start(setup, start.registration_request, b"bob")
    assert first == again
    assert first != other


def test_each_registration_uses_a_fresh_envelope(register, login):
    first, first_export = register()
    second, second_export = register()
    assert first[:33] != second[:33]
    assert first_export != second_export
    assert login(first)[0].export_key == first_export
    assert login(second)[0].export_key == second_export


def test_malformed_inputs_are_rejected(setup):
    start = client_registration_start(b"password")
    with pytest.raises(MalformedMessageError):
        server_registration_start(setup, start.registration_request[:-1], b"alice")
    with pytest.raises(MalformedMessageError):
        server_registration_start(setup[:-1], start.registration_request, b"alice")
    with pytest.raises(MalformedMessageError):
        client_registration_finish(b"password", start.client_registration, b"\x00" * 66)
    with pytest.raises(MalformedMessageError):
        server_registration_finish(b"\x00" * RegistrationUpload.length())


def test_invalid_group_element_is_rejected(setup):
    start = client_registration_start(b"password")
    bad = b"\x04" + start.registration_request[1:]
    with pytest.raises(MalformedMessageError):
        server_registration_start(setup, bad, b"alice")


def test_oversized_password_is_rejected_before_any_round_trip():
    with pytest.raises(MalformedMessageError, match="password"):
        client_registration_start(b"x" * 70000)


def test_oversized_inputs_are_typed_errors(setup):
    start = client_registration_start(b"password")
    response = server_registration_start(setup, start.registration_request, b"alice")
    with pytest.raises(OpaqueError, match="password"):
        client_registration_finish(b"x" * 70000, start.client_registration, response)
    with pytest.raises(OpaqueError, match="identifier"):
        client_registration_finish(
            b"password", start.client_registration, response, client_identifier=b"c" * 70000
        )
    with pytest.raises(OpaqueError, match="identifier"):
        client_registration_finish(
            b"password", start.client_registration, response, server_identifier=b"s" * 70000
        )


def test_longest_encodable_identifier_is_accepted(register, login):
    identifier = b"c" * 0xFFFF
    password_file, export_key = register(client_identifier=identifier)
    client_finish, session_key = login(password_file, client_identifier=identifier)
    assert client_finish.session_key == session_key
    assert client_finish.export_key == export_key
