import pytest
from pydantic import ValidationError

from opaque_pake.client import client_login_start, client_registration_start
from opaque_pake.common.errors import MalformedMessageError
from opaque_pake.common.protocol import (
    KE1, KE2, KE3, ClientLoginState, ClientRegistrationState, RegistrationRequest,
    RegistrationResponse, RegistrationUpload, ServerLoginState, ServerSetup,
)
from opaque_pake.crypto.group import ELEMENT_LENGTH


@pytest.mark.parametrize("message, length", [
    (ServerSetup, 96),
    (RegistrationRequest, 33),
    (RegistrationResponse, 66),
    (RegistrationUpload, 129),
    (ClientRegistrationState, 65),
    (KE1, 98),
    (ClientLoginState, 162),
    (KE2, 259),
    (KE3, 32),
    (ServerLoginState, 64),
])
def test_wire_lengths(message, length):
    assert message.length() == length


def test_states_round_trip_through_bytes():
    registration = client_registration_start(b"password")
    state = ClientRegistrationState.deserialize(registration.client_registration)
    assert state.blinded_element == registration.registration_request

    login = client_login_start(b"password")
    login_state = ClientLoginState.deserialize(login.client_login)
    assert login_state.ke1.serialize() == login.credential_request
    assert len(KE1.deserialize(login.credential_request).auth_request.client_nonce) == 32


@pytest.mark.parametrize("data", [b"", b"\x02" * 32, b"\x02" * 34])
def test_wrong_length_is_malformed(data):
    with pytest.raises(MalformedMessageError):
        RegistrationRequest.deserialize(data)


def test_element_off_the_curve_is_malformed():
    with pytest.raises(MalformedMessageError):
        RegistrationRequest.deserialize(b"\x02" + b"\xff" * 32)
    with pytest.raises(MalformedMessageError):
        RegistrationRequest.deserialize(b"\x00" * ELEMENT_LENGTH)


def test_zero_scalar_is_malformed():
    login = client_login_start(b"password")
    state = bytearray(login.client_login)
    state[:32] = bytes(32)
    with pytest.raises(MalformedMessageError):
        ClientLoginState.deserialize(bytes(state))


def test_secret_fields_are_hidden_from_repr():
    login = client_login_start(b"password")
    state = ClientLoginState.deserialize(login.client_login)
    assert state.blind.hex() not in repr(state)
    assert "client_secret" not in repr(state)
    assert "client_login" not in repr(login)


def test_messages_are_immutable():
    request = RegistrationRequest.deserialize(client_registration_start(b"pw").registration_request)
    with pytest.raises(ValidationError):
        request.blinded_element = b"\x02" * 33
