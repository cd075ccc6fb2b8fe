"""Envelope codec: nonce || auth_tag, binding the derived client key pair to both identities."""

import secrets
from dataclasses import dataclass
from typing import Optional, Tuple

from opaque_pake.common.errors import AuthenticationError, MalformedMessageError
from opaque_pake.common.utils import len_prefixed
from opaque_pake.crypto import dh
from opaque_pake.crypto.kdf import HASH_LENGTH, KEY_LENGTH, MAC_LENGTH, expand, mac, tags_equal


NONCE_LENGTH = 32
SEED_LENGTH = 32
ENVELOPE_LENGTH = NONCE_LENGTH + MAC_LENGTH


@dataclass(frozen=True)
class EnvelopeContents:
    """Everything the client gets back from sealing or opening an envelope."""
    envelope: bytes
    client_private_key: bytes
    client_public_key: bytes
    export_key: bytes


def resolve_identities(
    server_public_key: bytes,
    client_public_key: bytes,
    server_identifier: Optional[bytes] = None,
    client_identifier: Optional[bytes] = None,
) -> Tuple[bytes, bytes]:
    """
    Substitute the public keys for absent identifiers.

    Returns:
        (server_identity, client_identity)
    """
    server_identity = server_public_key if server_identifier is None else server_identifier
    client_identity = client_public_key if client_identifier is None else client_identifier
    return server_identity, client_identity


def cleartext_credentials(
    server_public_key: bytes,
    client_public_key: bytes,
    server_identifier: Optional[bytes] = None,
    client_identifier: Optional[bytes] = None,
) -> bytes:
    """server_public_key || len2(server_identity) || len2(client_identity)."""
    server_identity, client_identity = resolve_identities(
        server_public_key, client_public_key, server_identifier, client_identifier
    )
    return server_public_key + len_prefixed(server_identity) + len_prefixed(client_identity)


def _derive(
    randomized_password: bytes,
    envelope_nonce: bytes,
    server_public_key: bytes,
    server_identifier: Optional[bytes],
    client_identifier: Optional[bytes],
) -> EnvelopeContents:
    auth_key = expand(randomized_password, envelope_nonce + b"AuthKey", HASH_LENGTH)
    export_key = expand(randomized_password, envelope_nonce + b"ExportKey", KEY_LENGTH)
    seed = expand(randomized_password, envelope_nonce + b"PrivateKey", SEED_LENGTH)
    client_private_key, client_public_key = dh.derive_key_pair(seed)

    credentials = cleartext_credentials(
        server_public_key, client_public_key, server_identifier, client_identifier
    )
    auth_tag = mac(auth_key, envelope_nonce + credentials)
    return EnvelopeContents(
        envelope=envelope_nonce + auth_tag,
        client_private_key=client_private_key,
        client_public_key=client_public_key,
        export_key=export_key,
    )


def seal(
    randomized_password: bytes,
    server_public_key: bytes,
    server_identifier: Optional[bytes] = None,
    client_identifier: Optional[bytes] = None,
    envelope_nonce: bytes = None,
) -> EnvelopeContents:
    """
    Derive the client key pair from the password and authenticate it with the identities.

    Args:
        randomized_password: output of the OPRF + KSF extraction
        server_public_key: the server's static public key
        server_identifier: server identity; defaults to server_public_key
        client_identifier: client identity; defaults to the derived client public key
        envelope_nonce: 32-byte nonce; random if omitted

    Returns:
        EnvelopeContents with the envelope (nonce || auth_tag), the client
        key pair and the export key
    """
    if envelope_nonce is None:
        envelope_nonce = secrets.token_bytes(NONCE_LENGTH)
    return _derive(
        randomized_password, envelope_nonce, server_public_key, server_identifier, client_identifier
    )


def open_envelope(
    randomized_password: bytes,
    envelope: bytes,
    server_public_key: bytes,
    server_identifier: Optional[bytes] = None,
    client_identifier: Optional[bytes] = None,
) -> EnvelopeContents:
    """
    Re-derive the client key pair and check the envelope's auth tag.

    Raises:
        MalformedMessageError: if the envelope has the wrong length
        AuthenticationError: wrong password, tampered envelope or mismatched identities
    """
    if len(envelope) != ENVELOPE_LENGTH:
        raise MalformedMessageError("envelope")
    contents = _derive(
        randomized_password,
        envelope[:NONCE_LENGTH],
        server_public_key,
        server_identifier,
        client_identifier,
    )
    if not tags_equal(contents.envelope[NONCE_LENGTH:], envelope[NONCE_LENGTH:]):
        raise AuthenticationError()
    return contents
