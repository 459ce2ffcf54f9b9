"""
Errors raised by the padding oracle attack.

Oracle verdicts are never errors: every ``True``/``False`` answer is handled by
the byte search. These exceptions cover malformed input and oracles that give
up.
"""


class PaddingOracleError(Exception):
    """Base class for all errors raised by this package."""


class InvalidCiphertext(PaddingOracleError):
    """Ciphertext is empty, not block aligned, or too short to attack."""

    def __init__(self, block_size: int, length: int) -> None:
        self.expected = block_size
        self.received = length
        super().__init__(
            f"Invalid ciphertext: {length} bytes. Length must be a non-zero "
            f"multiple of the {block_size} byte block size."
        )


class InvalidPadding(PaddingOracleError):
    """Trailing bytes are not valid PKCS#7 padding."""


class OracleAborted(PaddingOracleError):
    """An oracle gave up answering; the running search is abandoned."""
