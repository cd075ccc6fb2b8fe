"""RFC 9380 hash-to-curve: P256_XMD:SHA-256_SSWU_RO_ and ristretto255_XMD:SHA-512_R255MAP_RO_."""

import hashlib

from ecdsa.ellipticcurve import PointJacobi
from ecdsa.numbertheory import inverse_mod, jacobi, square_root_mod_prime
from oblivious.ristretto import point as ristretto_point

from opaque_pake.common.errors import Hash2CurveError
from opaque_pake.common.utils import i2osp, os2ip, xor
from opaque_pake.crypto.group import CURVE, FIELD_PRIME, ORDER, is_identity, serialize_element


# ceil((ceil(log2(p)) + k) / 8) with k = 128
L = 48

RISTRETTO_UNIFORM_LENGTH = 64

SSWU_A = CURVE.a() % FIELD_PRIME
SSWU_B = CURVE.b() % FIELD_PRIME
SSWU_Z = FIELD_PRIME - 10


def expand_message_xmd(msg: bytes, dst: bytes, length: int, hash_fn=hashlib.sha256) -> bytes:
    """
    expand_message_xmd (RFC 9380, section 5.3.1).

    Args:
        msg: input message
        dst: domain separation tag; tags over 255 bytes are hashed down
        length: number of uniform bytes to produce
        hash_fn: hashlib constructor, SHA-256 unless given

    Returns:
        `length` pseudorandom bytes

    Raises:
        Hash2CurveError: empty tag or length beyond 255 hash blocks
    """
    b_in_bytes = hash_fn().digest_size
    s_in_bytes = hash_fn().block_size

    if not dst:
        raise Hash2CurveError("domain separation tag must not be empty")
    if len(dst) > 255:
        dst = hash_fn(b"H2C-OVERSIZE-DST-" + dst).digest()

    ell = -(-length // b_in_bytes)
    if ell > 255 or length > 65535:
        raise Hash2CurveError(f"cannot expand to {length} bytes")

    dst_prime = dst + i2osp(len(dst), 1)
    msg_prime = bytes(s_in_bytes) + msg + i2osp(length, 2) + b"\x00" + dst_prime

    b_0 = hash_fn(msg_prime).digest()
    blocks = [hash_fn(b_0 + b"\x01" + dst_prime).digest()]
    for i in range(2, ell + 1):
        blocks.append(
            hash_fn(xor(b_0, blocks[-1]) + i2osp(i, 1) + dst_prime).digest()
        )
    return b"".join(blocks)[:length]


def hash_to_field(msg: bytes, count: int, dst: bytes, modulus: int = FIELD_PRIME) -> list:
    """Hash msg to `count` elements of GF(modulus), L bytes each."""
    uniform = expand_message_xmd(msg, dst, count * L)
    return [os2ip(uniform[i * L:(i + 1) * L]) % modulus for i in range(count)]


def _sgn0(x: int) -> int:
    return x % 2


def _is_square(x: int) -> bool:
    return x == 0 or jacobi(x, FIELD_PRIME) == 1


def map_to_curve_sswu(u: int) -> PointJacobi:
    """Simplified Shallue-van de Woestijne-Ulas map (RFC 9380, section 6.6.2)."""
    p = FIELD_PRIME
    a, b, z = SSWU_A, SSWU_B, SSWU_Z

    tv1 = (z * z * pow(u, 4, p) + z * u * u) % p
    if tv1 == 0:
        x1 = b * inverse_mod(z * a % p, p) % p
    else:
        x1 = (-b * inverse_mod(a, p) * (1 + inverse_mod(tv1, p))) % p

    gx1 = (pow(x1, 3, p) + a * x1 + b) % p
    if _is_square(gx1):
        x, y = x1, square_root_mod_prime(gx1, p)
    else:
        x = z * u * u * x1 % p
        gx2 = (pow(x, 3, p) + a * x + b) % p
        y = square_root_mod_prime(gx2, p)

    if _sgn0(u) != _sgn0(y):
        y = (p - y) % p
    return PointJacobi(CURVE, x, y, 1, ORDER)


def hash_to_curve_point(msg: bytes, dst: bytes):
    """Random-oracle encoding of msg to a P-256 point (cofactor is 1)."""
    u0, u1 = hash_to_field(msg, 2, dst)
    return map_to_curve_sswu(u0) + map_to_curve_sswu(u1)


def hash_to_curve_p256_sha256(msg: bytes, dst: bytes) -> bytes:
    """
    Hash input bytes to a P-256 point and return its compressed encoding.

    Args:
        msg: input data
        dst: domain separation tag

    Returns:
        33-byte compressed SEC1 point
    """
    point = hash_to_curve_point(msg, dst)
    if is_identity(point):
        raise Hash2CurveError("input hashed to the identity element")
    return serialize_element(point)


def hash_to_scalar(msg: bytes, dst: bytes) -> int:
    """HashToScalar for P-256: hash_to_field over the group order."""
    return hash_to_field(msg, 1, dst, modulus=ORDER)[0]


def hash_to_curve_ristretto255_sha512(msg: bytes, dst: bytes) -> bytes:
    """
    Hash input bytes to a ristretto255 element.

    Uses expand_message_xmd with SHA-512 to 64 uniform bytes, then the
    ristretto255 one-way map.

    Returns:
        32-byte ristretto255 encoding
    """
    uniform = expand_message_xmd(msg, dst, RISTRETTO_UNIFORM_LENGTH, hash_fn=hashlib.sha512)
    return bytes(ristretto_point.bytes(uniform))
