"""
Padding oracle attacks on CBC mode: decryption, IV recovery and forgery.

All three operations only need a padding oracle, a function that takes a
block-aligned ciphertext and says whether it decrypts to valid PKCS#7
padding. The key is never used. Oracle queries may be network round trips,
so the operations are coroutines; the oracle itself may be a plain function
or a coroutine function.
"""

import logging
import os
from typing import NamedTuple

from .exceptions import InvalidCiphertext
from .padding import add_padding, split_blocks, xor
from .solver import Framing, solve

log = logging.getLogger(__name__)


class ForgedCiphertext(NamedTuple):
    iv: bytes
    ciphertext: bytes


async def crack(ciphertext: bytes, block_size: int, oracle) -> bytes:
    """Decrypt ``ciphertext`` through the padding oracle.

    The first block is only ever used as the preceding block of the second,
    so prepend the IV to recover the whole message. The returned plaintext
    still carries its padding; strip it with
    :func:`~cbc_padding_oracle.padding.remove_padding`.
    """
    if not ciphertext or len(ciphertext) % block_size != 0:
        raise InvalidCiphertext(block_size, len(ciphertext))

    window = split_blocks(bytes(ciphertext), block_size)
    if len(window) < 2:
        # Nothing precedes a lone block, so there is nothing to recover
        raise InvalidCiphertext(block_size, len(ciphertext))

    recovered = []
    while len(window) >= 2:
        prefix = b"".join(window[:-2])
        second_to_last, last = window[-2], window[-1]

        intermediate = await solve(last, second_to_last, Framing.PLAINTEXT, oracle, prefix)
        plaintext_block = xor(intermediate, second_to_last)
        recovered.insert(0, plaintext_block)
        log.info("Recovered block %d: %r", len(window) - 1, plaintext_block)

        window = window[:-1]

    return b"".join(recovered)


async def compute_iv(cipher_block: bytes, plaintext_block: bytes, oracle) -> bytes:
    """Find the block that must precede ``cipher_block`` so it decrypts to ``plaintext_block``.

    For the first block of a message this is the IV it was encrypted with.
    """
    if not cipher_block or len(cipher_block) != len(plaintext_block):
        raise InvalidCiphertext(len(plaintext_block), len(cipher_block))

    intermediate = await solve(bytes(cipher_block), bytes(plaintext_block),
                               Framing.PRECEDING_BLOCK, oracle)
    return xor(intermediate, plaintext_block)


async def encrypt(plaintext: bytes, block_size: int, oracle, terminal: bytes = None) -> ForgedCiphertext:
    """Forge a ciphertext that decrypts to ``plaintext`` under the oracle's key.

    Works backwards from a terminal block (random unless ``terminal`` is
    given): each plaintext block yields the block that must precede the
    current one, which then becomes the next block to solve. The last block
    found is the IV.
    """
    if terminal is None:
        terminal = os.urandom(block_size)
    elif len(terminal) != block_size:
        raise InvalidCiphertext(block_size, len(terminal))

    blocks = split_blocks(add_padding(plaintext, block_size), block_size)

    ciphertext_block = bytes(terminal)
    ciphertext = []
    for index in reversed(range(len(blocks))):
        preceding = await compute_iv(ciphertext_block, blocks[index], oracle)
        ciphertext.insert(0, ciphertext_block)
        log.info("Forged block %d: %s", index, ciphertext_block.hex())
        ciphertext_block = preceding

    return ForgedCiphertext(iv=ciphertext_block, ciphertext=b"".join(ciphertext))
