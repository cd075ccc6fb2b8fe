"""NIST P-256 group: scalars, compressed SEC1 elements, scalar multiplication."""

import secrets

from ecdsa import NIST256p
from ecdsa.ellipticcurve import INFINITY, PointJacobi
from ecdsa.errors import MalformedPointError
from ecdsa.numbertheory import SquareRootError, inverse_mod

from opaque_pake.common.errors import MalformedMessageError
from opaque_pake.common.utils import i2osp, os2ip


CURVE = NIST256p.curve
GENERATOR = NIST256p.generator
ORDER = NIST256p.order
FIELD_PRIME = CURVE.p()

SCALAR_LENGTH = 32
ELEMENT_LENGTH = 33


def random_scalar() -> int:
    """Uniform non-zero scalar from the OS CSPRNG."""
    return secrets.randbelow(ORDER - 1) + 1


def scalar_inverse(scalar: int) -> int:
    return inverse_mod(scalar, ORDER)


def serialize_scalar(scalar: int) -> bytes:
    return i2osp(scalar, SCALAR_LENGTH)


def deserialize_scalar(data: bytes, kind: str = "scalar") -> int:
    """
    Parse a big-endian scalar, rejecting zero and values >= the group order.

    Raises:
        MalformedMessageError: if the encoding is not a valid non-zero scalar
    """
    if len(data) != SCALAR_LENGTH:
        raise MalformedMessageError(kind)
    scalar = os2ip(data)
    if scalar == 0 or scalar >= ORDER:
        raise MalformedMessageError(kind)
    return scalar


def is_identity(point) -> bool:
    return point == INFINITY


def serialize_element(point) -> bytes:
    """Compressed SEC1 encoding (33 bytes). The identity has no encoding."""
    if is_identity(point):
        raise ValueError("the identity element cannot be serialized")
    return point.to_bytes("compressed")


def deserialize_element(data: bytes, kind: str = "element") -> PointJacobi:
    """
    Parse a compressed SEC1 point and check that it lies on the curve.

    Args:
        data: 33-byte compressed encoding
        kind: label used in the error message

    Returns:
        PointJacobi on P-256

    Raises:
        MalformedMessageError: wrong length, bad prefix, x >= p or not on curve
    """
    if len(data) != ELEMENT_LENGTH or data[0] not in (2, 3):
        raise MalformedMessageError(kind)
    if os2ip(data[1:]) >= FIELD_PRIME:
        raise MalformedMessageError(kind)
    try:
        return PointJacobi.from_bytes(
            CURVE, data, valid_encodings=("compressed",), order=ORDER
        )
    except (MalformedPointError, SquareRootError):
        raise MalformedMessageError(kind) from None


def scalar_mult(scalar: int, point):
    return point * scalar


def base_mult(scalar: int):
    return GENERATOR * scalar
