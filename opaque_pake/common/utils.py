"""Byte helpers: I2OSP/OS2IP, xor, length prefixes."""

from typing import Optional

from opaque_pake.common.errors import MalformedMessageError


def i2osp(value: int, length: int) -> bytes:
    """Big-endian encoding of a non-negative integer into exactly `length` bytes."""
    if value < 0 or value >= 1 << (8 * length):
        raise ValueError(f"integer {value} does not fit in {length} bytes")
    return value.to_bytes(length, "big")


def os2ip(data: bytes) -> int:
    return int.from_bytes(data, "big")


def xor(a: bytes, b: bytes) -> bytes:
    if len(a) != len(b):
        raise ValueError("xor operands must have equal length")
    return bytes(x ^ y for x, y in zip(a, b))


def len_prefixed(data: bytes, width: int = 2) -> bytes:
    """
    Prefix data with its length.

    Args:
        data: bytes to encode
        width: size of the length field in bytes

    Returns:
        I2OSP(len(data), width) || data
    """
    return i2osp(len(data), width) + data


def check_prefixable(data: Optional[bytes], kind: str, width: int = 2):
    """
    Reject input too long for a `width`-byte length prefix.

    Raises:
        MalformedMessageError: if len(data) needs more than `width` bytes
    """
    if data is not None and len(data) >= 1 << (8 * width):
        raise MalformedMessageError(kind)
