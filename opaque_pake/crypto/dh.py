"""P-256 Diffie-Hellman key pairs + triple Diffie-Hellman (3DH) input keying material."""

from typing import Tuple

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from opaque_pake.crypto import oprf
from opaque_pake.crypto.group import (
    deserialize_element, deserialize_scalar, scalar_mult, serialize_element, serialize_scalar,
)


CURVE = ec.SECP256R1()
DERIVE_KEY_PAIR_INFO = b"OPAQUE-DeriveDiffieHellmanKeyPair"


def _load_private_key(private_key: bytes) -> ec.EllipticCurvePrivateKey:
    return ec.derive_private_key(deserialize_scalar(private_key, "private key"), CURVE)


def _public_bytes(key: ec.EllipticCurvePublicKey) -> bytes:
    return key.public_bytes(
        serialization.Encoding.X962,
        serialization.PublicFormat.CompressedPoint,
    )


def generate_key_pair() -> Tuple[bytes, bytes]:
    """
    Generate a fresh key pair from the OS CSPRNG.

    Returns:
        (32-byte private scalar, 33-byte compressed public key)
    """
    key = ec.generate_private_key(CURVE)
    return serialize_scalar(key.private_numbers().private_value), _public_bytes(key.public_key())


def derive_key_pair(seed: bytes) -> Tuple[bytes, bytes]:
    """Deterministic key pair from a 32-byte seed (DeriveDiffieHellmanKeyPair)."""
    secret, public = oprf.derive_key_pair(seed, DERIVE_KEY_PAIR_INFO)
    return serialize_scalar(secret), serialize_element(public)


def public_key(private_key: bytes) -> bytes:
    """Compressed public key for a 32-byte private scalar."""
    return _public_bytes(_load_private_key(private_key).public_key())


def derive_shared_secret(private_key: bytes, peer_public: bytes) -> bytes:
    """
    Diffie-Hellman output: the compressed encoding of private_key * peer_public.

    Args:
        private_key: our 32-byte private scalar
        peer_public: peer's 33-byte compressed public key

    Returns:
        33-byte shared secret

    Raises:
        MalformedMessageError: if peer_public is not a valid point
    """
    shared = scalar_mult(
        deserialize_scalar(private_key, "private key"),
        deserialize_element(peer_public, "public key"),
    )
    return serialize_element(shared)


def triple_dh_client(
    client_ephemeral_sk: bytes,
    client_static_sk: bytes,
    server_ephemeral_pk: bytes,
    server_static_pk: bytes,
) -> bytes:
    """ikm = DH(eph_c, eph_s) || DH(eph_c, static_s) || DH(static_c, eph_s)."""
    return (
        derive_shared_secret(client_ephemeral_sk, server_ephemeral_pk)
        + derive_shared_secret(client_ephemeral_sk, server_static_pk)
        + derive_shared_secret(client_static_sk, server_ephemeral_pk)
    )


def triple_dh_server(
    server_ephemeral_sk: bytes,
    server_static_sk: bytes,
    client_ephemeral_pk: bytes,
    client_static_pk: bytes,
) -> bytes:
    """Mirror of triple_dh_client; yields the same ikm for honest peers."""
    return (
        derive_shared_secret(server_ephemeral_sk, client_ephemeral_pk)
        + derive_shared_secret(server_static_sk, client_ephemeral_pk)
        + derive_shared_secret(server_ephemeral_sk, client_static_pk)
    )
