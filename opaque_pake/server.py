"""Server side of OPAQUE: setup, registration and login."""

import secrets
from typing import Optional

import structlog

from opaque_pake.common.errors import AuthenticationError, MalformedMessageError
from opaque_pake.common.protocol import (
    KE1, KE2, KE3, AuthResponse, CredentialResponse, RegistrationRequest,
    RegistrationResponse, RegistrationUpload, ServerLoginStartResult, ServerLoginState,
    ServerSetup,
)
from opaque_pake.common.utils import check_prefixable, xor
from opaque_pake.crypto import dh, envelope, kdf, oprf
from opaque_pake.crypto.envelope import ENVELOPE_LENGTH, NONCE_LENGTH
from opaque_pake.crypto.group import deserialize_element, serialize_element
from opaque_pake.crypto.kdf import HASH_LENGTH, KEY_LENGTH
from opaque_pake.crypto.transcript import Transcript


logger = structlog.get_logger(__name__)

OPRF_KEY_INFO = b"OPAQUE-DeriveKeyPair"
FAKE_CLIENT_KEY_INFO = b"OPAQUE-FakeClientKey"


def server_setup() -> bytes:
    """
    Create the server's long-term secrets.

    Returns:
        serialized ServerSetup; the caller persists it and never sends it out
    """
    server_private_key, _ = dh.generate_key_pair()
    setup = ServerSetup(
        oprf_seed=secrets.token_bytes(HASH_LENGTH),
        server_private_key=server_private_key,
        fake_seed=secrets.token_bytes(HASH_LENGTH),
    )
    logger.info("server_setup_created")
    return setup.serialize()


def server_public_key(server_setup: bytes) -> bytes:
    """Static public key (33-byte compressed point) of a serialized setup."""
    return dh.public_key(ServerSetup.deserialize(server_setup).server_private_key)


def _oprf_key(setup: ServerSetup, credential_identifier: bytes) -> int:
    """Per-user OPRF key; the same identifier always yields the same key."""
    seed = kdf.expand(setup.oprf_seed, credential_identifier + b"OprfKey", KEY_LENGTH)
    oprf_key, _ = oprf.derive_key_pair(seed, OPRF_KEY_INFO)
    return oprf_key


def _fake_record(setup: ServerSetup, credential_identifier: bytes) -> RegistrationUpload:
    """Deterministic stand-in record for an identifier with no password file."""
    seed = kdf.expand(setup.fake_seed, credential_identifier + b"FakeClientKey", KEY_LENGTH)
    _, fake_public_key = oprf.derive_key_pair(seed, FAKE_CLIENT_KEY_INFO)
    return RegistrationUpload(
        client_public_key=serialize_element(fake_public_key),
        masking_key=kdf.expand(setup.fake_seed, credential_identifier + b"FakeMaskingKey", KEY_LENGTH),
        envelope=bytes(ENVELOPE_LENGTH),
    )


def server_registration_start(
    server_setup: bytes,
    registration_request: bytes,
    credential_identifier: bytes,
) -> bytes:
    """
    Evaluate the OPRF on the blinded password.

    Args:
        server_setup: serialized ServerSetup
        registration_request: the client's blinded element
        credential_identifier: server-side lookup key for the user

    Returns:
        serialized RegistrationResponse (evaluated element + server public key)

    Raises:
        MalformedMessageError: if the setup or request does not parse
    """
    setup = ServerSetup.deserialize(server_setup)
    request = RegistrationRequest.deserialize(registration_request)

    evaluated = oprf.evaluate(
        _oprf_key(setup, credential_identifier),
        deserialize_element(request.blinded_element),
    )
    response = RegistrationResponse(
        evaluated_element=serialize_element(evaluated),
        server_public_key=dh.public_key(setup.server_private_key),
    )
    logger.debug("server_registration_start")
    return response.serialize()


def server_registration_finish(registration_upload: bytes) -> bytes:
    """
    Turn the client's upload into the password file.

    Only the structure is checked; nothing secret is inspected.

    Returns:
        serialized password file
    """
    password_file = RegistrationUpload.deserialize(registration_upload)
    logger.debug("server_registration_finish")
    return password_file.serialize()


def _load_record(password_file: Optional[bytes]) -> Optional[RegistrationUpload]:
    if not password_file:
        return None
    try:
        return RegistrationUpload.deserialize(password_file)
    except MalformedMessageError:
        return None


def server_login_start(
    server_setup: bytes,
    password_file: Optional[bytes],
    credential_request: bytes,
    credential_identifier: bytes,
    context: Optional[bytes] = None,
    client_identifier: Optional[bytes] = None,
    server_identifier: Optional[bytes] = None,
) -> ServerLoginStartResult:
    """
    Answer a credential request with KE2.

    An absent (or unparsable) password file is replaced by a simulated
    record so the response looks exactly like one for a registered user.

    Args:
        server_setup: serialized ServerSetup
        password_file: the user's password file, or None/empty if unknown
        credential_request: the client's KE1
        credential_identifier: server-side lookup key for the user
        context: application context folded into the transcript
        client_identifier: client identity; defaults to the client public key
        server_identifier: server identity; defaults to the server public key

    Returns:
        ServerLoginStartResult with the credential response (KE2) and the
        single-use server login state

    Raises:
        MalformedMessageError: if the setup or request does not parse, or the
            context or an identifier is too long to encode
    """
    check_prefixable(context, "context")
    check_prefixable(client_identifier, "identifier")
    check_prefixable(server_identifier, "identifier")
    setup = ServerSetup.deserialize(server_setup)
    ke1 = KE1.deserialize(credential_request)

    # Both records are always computed so the two paths cost the same.
    fake = _fake_record(setup, credential_identifier)
    record = _load_record(password_file)
    if record is None:
        record = fake

    static_public_key = dh.public_key(setup.server_private_key)
    evaluated = oprf.evaluate(
        _oprf_key(setup, credential_identifier),
        deserialize_element(ke1.credential_request.blinded_element),
    )
    masking_nonce = secrets.token_bytes(NONCE_LENGTH)
    plaintext = static_public_key + record.envelope
    pad = kdf.credential_response_pad(record.masking_key, masking_nonce, len(plaintext))
    credential_response = CredentialResponse(
        evaluated_element=serialize_element(evaluated),
        masking_nonce=masking_nonce,
        masked_response=xor(pad, plaintext),
    )

    server_nonce = secrets.token_bytes(NONCE_LENGTH)
    server_secret, server_keyshare = dh.generate_key_pair()
    server_identity, client_identity = envelope.resolve_identities(
        static_public_key, record.client_public_key, server_identifier, client_identifier
    )
    transcript = Transcript.for_handshake(
        context or b"",
        client_identity,
        ke1.serialize(),
        server_identity,
        credential_response.serialize(),
        server_nonce,
        server_keyshare,
    )
    ikm = dh.triple_dh_server(
        server_secret,
        setup.server_private_key,
        ke1.auth_request.client_keyshare,
        record.client_public_key,
    )
    transcript_hash = transcript.compute_transcript_hash()
    keys = kdf.derive_session_keys(ikm, transcript_hash)
    server_mac = kdf.mac(keys.server_mac_key, transcript_hash)

    ke2 = KE2(
        credential_response=credential_response,
        auth_response=AuthResponse(
            server_nonce=server_nonce,
            server_keyshare=server_keyshare,
            server_mac=server_mac,
        ),
    )
    state = ServerLoginState(
        expected_client_mac=kdf.mac(keys.client_mac_key, transcript.compute_hash_with(server_mac)),
        session_key=keys.session_key,
    )
    logger.debug("server_login_start")
    return ServerLoginStartResult(
        credential_response=ke2.serialize(),
        server_login=state.serialize(),
    )


def server_login_finish(server_login: bytes, credential_finalization: bytes) -> bytes:
    """
    Verify the client's MAC and release the session key.

    Args:
        server_login: state returned by server_login_start
        credential_finalization: the client's KE3

    Returns:
        the session key, equal to the client's

    Raises:
        MalformedMessageError: if the state or message does not parse
        AuthenticationError: if the client MAC does not match
    """
    state = ServerLoginState.deserialize(server_login)
    ke3 = KE3.deserialize(credential_finalization)
    if not kdf.tags_equal(state.expected_client_mac, ke3.client_mac):
        logger.info("server_login_failed")
        raise AuthenticationError()
    logger.debug("server_login_finish")
    return state.session_key
