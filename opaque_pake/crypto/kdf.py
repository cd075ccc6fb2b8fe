"""HKDF/HMAC-SHA256 key schedule: randomized password, masking and session keys."""

import hashlib
from dataclasses import dataclass
from typing import Optional

from cryptography.hazmat.primitives import constant_time, hashes, hmac
from cryptography.hazmat.primitives.kdf.hkdf import HKDFExpand

from opaque_pake.common.utils import i2osp
from opaque_pake.crypto.ksf import IdentityKsf, Ksf


HASH_LENGTH = 32
MAC_LENGTH = 32
KEY_LENGTH = 32


def hash_bytes(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def extract(salt: bytes, ikm: bytes) -> bytes:
    """HKDF-Extract; an empty salt means HashLen zero bytes."""
    h = hmac.HMAC(salt or bytes(HASH_LENGTH), hashes.SHA256())
    h.update(ikm)
    return h.finalize()


def expand(prk: bytes, info: bytes, length: int) -> bytes:
    return HKDFExpand(algorithm=hashes.SHA256(), length=length, info=info).derive(prk)


def expand_label(secret: bytes, label: bytes, context: bytes, length: int) -> bytes:
    """
    Expand with a structured, length-bound label.

    Args:
        secret: pseudorandom key
        label: label without the "OPAQUE-" prefix
        context: up to 255 bytes of context
        length: output length

    Returns:
        derived key bytes
    """
    full_label = b"OPAQUE-" + label
    custom_label = (
        i2osp(length, 2)
        + i2osp(len(full_label), 1) + full_label
        + i2osp(len(context), 1) + context
    )
    return expand(secret, custom_label, length)


def mac(key: bytes, message: bytes) -> bytes:
    h = hmac.HMAC(key, hashes.SHA256())
    h.update(message)
    return h.finalize()


def tags_equal(expected: bytes, received: bytes) -> bool:
    return constant_time.bytes_eq(expected, received)


def verify_mac(key: bytes, message: bytes, tag: bytes) -> bool:
    """Constant-time MAC check."""
    return tags_equal(mac(key, message), tag)


def randomized_password(oprf_output: bytes, ksf: Optional[Ksf] = None) -> bytes:
    """Extract("", oprf_output || KSF(oprf_output)); identity KSF by default."""
    if ksf is None:
        ksf = IdentityKsf()
    return extract(b"", oprf_output + ksf.stretch(oprf_output))


def masking_key(randomized_pwd: bytes) -> bytes:
    return expand(randomized_pwd, b"MaskingKey", KEY_LENGTH)


def credential_response_pad(masking_key_: bytes, masking_nonce: bytes, length: int) -> bytes:
    return expand(masking_key_, masking_nonce + b"CredentialResponsePad", length)


@dataclass(frozen=True)
class SessionKeys:
    """Keys derived from the 3DH secrets and the transcript hash."""
    session_key: bytes
    server_mac_key: bytes
    client_mac_key: bytes


def derive_session_keys(ikm: bytes, transcript_hash: bytes) -> SessionKeys:
    """
    Derive the session key and both MAC keys.

    Args:
        ikm: concatenation of the three DH shared secrets
        transcript_hash: hash of the handshake preamble

    Returns:
        SessionKeys
    """
    prk = extract(b"", ikm)
    handshake_secret = expand_label(prk, b"HandshakeSecret", transcript_hash, KEY_LENGTH)
    session_key = expand_label(prk, b"SessionKey", transcript_hash, KEY_LENGTH)
    return SessionKeys(
        session_key=session_key,
        server_mac_key=expand_label(handshake_secret, b"ServerMAC", b"", MAC_LENGTH),
        client_mac_key=expand_label(handshake_secret, b"ClientMAC", b"", MAC_LENGTH),
    )
