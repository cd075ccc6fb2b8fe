"""Client side of OPAQUE: registration and login (OPRF + envelope + 3DH)."""

import secrets
from typing import Optional

import structlog

from opaque_pake.common.errors import AuthenticationError, MalformedMessageError
from opaque_pake.common.protocol import (
    KE1, KE2, KE3, AuthRequest, ClientLoginFinishResult, ClientLoginStartResult,
    ClientLoginState, ClientRegistrationFinishResult, ClientRegistrationStartResult,
    ClientRegistrationState, CredentialRequest, RegistrationRequest, RegistrationResponse,
    RegistrationUpload,
)
from opaque_pake.common.utils import check_prefixable, xor
from opaque_pake.crypto import dh, envelope, kdf, oprf
from opaque_pake.crypto.envelope import NONCE_LENGTH
from opaque_pake.crypto.group import (
    ELEMENT_LENGTH, deserialize_element, deserialize_scalar, serialize_element, serialize_scalar,
)
from opaque_pake.crypto.ksf import Ksf
from opaque_pake.crypto.transcript import Transcript


logger = structlog.get_logger(__name__)



def _check_inputs(password: bytes, client_identifier=None, server_identifier=None, context=None):
    check_prefixable(password, "password")
    check_prefixable(client_identifier, "identifier")
    check_prefixable(server_identifier, "identifier")
    check_prefixable(context, "context")


def client_registration_start(password: bytes) -> ClientRegistrationStartResult:
    """
    Blind the password and build the registration request.

    Args:
        password: the user's password

    Returns:
        ClientRegistrationStartResult with the request to send and the
        single-use client state to keep until client_registration_finish

    Raises:
        MalformedMessageError: if the password is too long to encode
    """
    _check_inputs(password)
    blind, blinded_element = oprf.blind(password)
    request = RegistrationRequest(blinded_element=serialize_element(blinded_element))
    state = ClientRegistrationState(
        blind=serialize_scalar(blind),
        blinded_element=request.blinded_element,
    )
    logger.debug("client_registration_start")
    return ClientRegistrationStartResult(
        registration_request=request.serialize(),
        client_registration=state.serialize(),
    )


def client_registration_finish(
    password: bytes,
    client_registration: bytes,
    registration_response: bytes,
    client_identifier: Optional[bytes] = None,
    server_identifier: Optional[bytes] = None,
    ksf: Optional[Ksf] = None,
) -> ClientRegistrationFinishResult:
    """
    Unblind the OPRF output, derive the client key pair and build the envelope.

    Args:
        password: the same password given to client_registration_start
        client_registration: state returned by client_registration_start
        registration_response: the server's response
        client_identifier: client identity; defaults to the client public key
        server_identifier: server identity; defaults to the server public key
        ksf: key-stretching function; identity if omitted

    Returns:
        ClientRegistrationFinishResult with the upload for the server and the export key

    Raises:
        MalformedMessageError: if the state or response does not parse, or an
            input is too long to encode
    """
    _check_inputs(password, client_identifier, server_identifier)
    state = ClientRegistrationState.deserialize(client_registration)
    response = RegistrationResponse.deserialize(registration_response)

    oprf_output = oprf.unblind(
        deserialize_element(response.evaluated_element),
        deserialize_scalar(state.blind),
        password,
    )
    randomized_pwd = kdf.randomized_password(oprf_output, ksf)

    sealed = envelope.seal(
        randomized_pwd, response.server_public_key, server_identifier, client_identifier
    )
    upload = RegistrationUpload(
        client_public_key=sealed.client_public_key,
        masking_key=kdf.masking_key(randomized_pwd),
        envelope=sealed.envelope,
    )

    logger.debug(
        "client_registration_finish",
        default_client_identity=client_identifier is None,
        default_server_identity=server_identifier is None,
    )
    return ClientRegistrationFinishResult(
        registration_upload=upload.serialize(),
        export_key=sealed.export_key,
    )


def client_login_start(password: bytes) -> ClientLoginStartResult:
    """
    Blind the password and create a fresh ephemeral key share.

    Returns:
        ClientLoginStartResult with the credential request (KE1) and the
        single-use client login state

    Raises:
        MalformedMessageError: if the password is too long to encode
    """
    _check_inputs(password)
    blind, blinded_element = oprf.blind(password)
    client_secret, client_keyshare = dh.generate_key_pair()
    ke1 = KE1(
        credential_request=CredentialRequest(blinded_element=serialize_element(blinded_element)),
        auth_request=AuthRequest(
            client_nonce=secrets.token_bytes(NONCE_LENGTH),
            client_keyshare=client_keyshare,
        ),
    )
    state = ClientLoginState(
        blind=serialize_scalar(blind),
        client_secret=client_secret,
        ke1=ke1,
    )
    logger.debug("client_login_start")
    return ClientLoginStartResult(
        credential_request=ke1.serialize(),
        client_login=state.serialize(),
    )


def _unmask(randomized_pwd: bytes, credential_response):
    """Recover (server_public_key, envelope) from the masked response."""
    pad = kdf.credential_response_pad(
        kdf.masking_key(randomized_pwd),
        credential_response.masking_nonce,
        len(credential_response.masked_response),
    )
    unmasked = xor(pad, credential_response.masked_response)
    server_public_key, sealed = unmasked[:ELEMENT_LENGTH], unmasked[ELEMENT_LENGTH:]

    # A wrong password unmasks to garbage; that is an authentication failure.
    try:
        deserialize_element(server_public_key)
    except MalformedMessageError:
        raise AuthenticationError() from None
    return server_public_key, sealed


def client_login_finish(
    credential_response: bytes,
    client_login: bytes,
    password: bytes,
    context: Optional[bytes] = None,
    client_identifier: Optional[bytes] = None,
    server_identifier: Optional[bytes] = None,
    ksf: Optional[Ksf] = None,
) -> ClientLoginFinishResult:
    """
    Open the envelope, run 3DH, authenticate the server and answer with the client MAC.

    Args:
        credential_response: the server's KE2 message
        client_login: state returned by client_login_start
        password: the user's password
        context: application context; must match the server's
        client_identifier: must match what was used at registration
        server_identifier: must match what was used at registration
        ksf: key-stretching function used at registration

    Returns:
        ClientLoginFinishResult with the credential finalization (KE3),
        the session key and the export key

    Raises:
        MalformedMessageError: if the response or state does not parse, or an
            input is too long to encode
        AuthenticationError: wrong password, tampering, or mismatched
            identifiers or context
    """
    _check_inputs(password, client_identifier, server_identifier, context)
    state = ClientLoginState.deserialize(client_login)
    ke2 = KE2.deserialize(credential_response)
    cred = ke2.credential_response
    auth = ke2.auth_response

    oprf_output = oprf.unblind(
        deserialize_element(cred.evaluated_element),
        deserialize_scalar(state.blind),
        password,
    )
    randomized_pwd = kdf.randomized_password(oprf_output, ksf)

    try:
        server_public_key, sealed = _unmask(randomized_pwd, cred)
        opened = envelope.open_envelope(
            randomized_pwd, sealed, server_public_key, server_identifier, client_identifier
        )

        server_identity, client_identity = envelope.resolve_identities(
            server_public_key, opened.client_public_key, server_identifier, client_identifier
        )
        transcript = Transcript.for_handshake(
            context or b"",
            client_identity,
            state.ke1.serialize(),
            server_identity,
            cred.serialize(),
            auth.server_nonce,
            auth.server_keyshare,
        )
        ikm = dh.triple_dh_client(
            state.client_secret, opened.client_private_key, auth.server_keyshare, server_public_key
        )
        transcript_hash = transcript.compute_transcript_hash()
        keys = kdf.derive_session_keys(ikm, transcript_hash)
        if not kdf.verify_mac(keys.server_mac_key, transcript_hash, auth.server_mac):
            raise AuthenticationError()
    except AuthenticationError:
        logger.info("client_login_failed")
        raise

    client_mac = kdf.mac(keys.client_mac_key, transcript.compute_hash_with(auth.server_mac))
    logger.debug("client_login_finish")
    return ClientLoginFinishResult(
        credential_finalization=KE3(client_mac=client_mac).serialize(),
        session_key=keys.session_key,
        export_key=opened.export_key,
    )
