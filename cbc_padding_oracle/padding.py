"""
PKCS#7 padding and small byte helpers shared by the attack.

PKCS#7 appends N bytes of value N. A message whose length is already a
multiple of the block size still gets a whole block of padding, so the last
byte of a padded buffer always says how much to strip.
"""

from typing import List

from .exceptions import InvalidPadding


def xor(a, b) -> bytes:
    """Return the byte-wise XOR of two equal-length byte sequences."""
    assert len(a) == len(b), "Inputs must be the same length"
    return bytes(x ^ y for x, y in zip(a, b))


def split_blocks(data: bytes, block_size: int) -> List[bytes]:
    return [data[i : i + block_size] for i in range(0, len(data), block_size)]


def add_padding(data: bytes, block_size: int) -> bytes:
    """Pad ``data`` to a multiple of ``block_size`` (never zero bytes)."""
    diff = block_size - (len(data) % block_size)
    return bytes(data) + bytes([diff]) * diff


def remove_padding(data: bytes) -> bytes:
    """Strip PKCS#7 padding, raising :class:`InvalidPadding` if it is malformed."""
    if not data:
        raise InvalidPadding("Invalid padding: empty buffer")

    padding_length = data[-1]
    if padding_length == 0 or padding_length > len(data):
        raise InvalidPadding(f"Invalid padding length {padding_length}")

    if data[-padding_length:] != bytes([padding_length]) * padding_length:
        raise InvalidPadding("Invalid padding")

    return bytes(data[:-padding_length])
