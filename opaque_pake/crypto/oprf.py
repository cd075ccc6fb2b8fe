"""OPRF over P-256 (RFC 9497, mode 0x00, suite P256-SHA256): blind, evaluate, unblind."""

import hashlib

from opaque_pake.common.errors import MalformedMessageError, OpaqueError
from opaque_pake.common.utils import i2osp, len_prefixed
from opaque_pake.crypto.group import (
    base_mult, is_identity, random_scalar, scalar_inverse, scalar_mult, serialize_element,
)
from opaque_pake.crypto.hash2curve import hash_to_curve_point, hash_to_scalar


CONTEXT_STRING = b"OPRFV1-" + i2osp(0, 1) + b"-P256-SHA256"
HASH_TO_GROUP_DST = b"HashToGroup-" + CONTEXT_STRING
DERIVE_KEY_PAIR_DST = b"DeriveKeyPair" + CONTEXT_STRING

OUTPUT_LENGTH = 32


def derive_key_pair(seed: bytes, info: bytes):
    """
    Deterministically derive an OPRF key pair from a seed.

    Args:
        seed: 32 bytes of secret seed material
        info: public info string bound into the derivation

    Returns:
        (secret scalar, public element)
    """
    derive_input = seed + len_prefixed(info)
    for counter in range(256):
        secret = hash_to_scalar(derive_input + i2osp(counter, 1), DERIVE_KEY_PAIR_DST)
        if secret != 0:
            return secret, base_mult(secret)
    raise OpaqueError("key pair derivation failed")


def blind(password: bytes, blind_scalar: int = None):
    """
    Map the password into the group and blind it.

    The blind is drawn from the CSPRNG unless one is supplied.

    Returns:
        (blind scalar, blinded element)
    """
    if blind_scalar is None:
        blind_scalar = random_scalar()
    input_element = hash_to_curve_point(password, HASH_TO_GROUP_DST)
    if is_identity(input_element):
        raise MalformedMessageError("password element")
    return blind_scalar, scalar_mult(blind_scalar, input_element)


def evaluate(oprf_key: int, blinded_element):
    return scalar_mult(oprf_key, blinded_element)


def unblind(evaluated_element, blind_scalar: int, password: bytes) -> bytes:
    """
    Remove the blind and hash the result into the OPRF output.

    The output depends only on the password and the server's OPRF key.
    """
    unblinded = scalar_mult(scalar_inverse(blind_scalar), evaluated_element)
    hash_input = (
        len_prefixed(password)
        + len_prefixed(serialize_element(unblinded))
        + b"Finalize"
    )
    return hashlib.sha256(hash_input).digest()
