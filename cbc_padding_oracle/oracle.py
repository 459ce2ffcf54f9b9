"""
A demo padding oracle and a wrapper for observing or limiting oracles.

``Oracle`` simulates a vulnerable server: it holds a secret AES-256 key and a
fixed IV, encrypts messages with AES-CBC and PKCS#7 padding, and answers only
one question about any ciphertext it is handed: does it decrypt to valid
padding?

Notes / Security:
- This module is intentionally vulnerable. Use it only for education, testing
  and demonstrations.
- For real cryptographic use, never expose padding check results to untrusted
  callers and always use authenticated encryption (e.g., AES-GCM) or
  encrypt-then-MAC.
"""

import logging
import os
from typing import List, Optional

# pip install pycryptodome
from Crypto.Cipher import AES
from Crypto.Util.Padding import pad, unpad

from .exceptions import InvalidCiphertext, OracleAborted
from .solver import query_oracle

log = logging.getLogger(__name__)

# AES block size in bytes
BLOCKSIZE: int = 16
# AES-256
KEY_SIZE: int = 32


class Oracle:
    """
    A minimal AES-256-CBC padding oracle.

    Attributes
    ----------
    key : bytes
        The secret random AES key (KEY_SIZE bytes).
    iv : bytes
        The IV used for every encryption and every padding check.
    """

    def __init__(self, key: Optional[bytes] = None, iv: Optional[bytes] = None) -> None:
        self.key: bytes = key if key is not None else os.urandom(KEY_SIZE)
        self.iv: bytes = iv if iv is not None else os.urandom(BLOCKSIZE)

    def encrypt(self, message: bytes) -> bytes:
        """Encrypt ``message`` under the secret key and fixed IV."""
        cipher = AES.new(self.key, AES.MODE_CBC, iv=self.iv)
        return cipher.encrypt(pad(message, BLOCKSIZE))

    def decrypt(self, ciphertext: bytes, iv: Optional[bytes] = None) -> bytes:
        """
        Decrypt and unpad ``ciphertext``.

        Used to check forged ciphertexts, so an explicit ``iv`` may override
        the fixed one. ``unpad`` raises ``ValueError`` on invalid padding.
        """
        cipher = AES.new(self.key, AES.MODE_CBC, iv=self.iv if iv is None else iv)
        return unpad(cipher.decrypt(ciphertext), BLOCKSIZE)

    async def query(self, ciphertext: bytes) -> bool:
        """Return True if ``ciphertext`` decrypts to valid PKCS#7 padding."""
        if not ciphertext or len(ciphertext) % BLOCKSIZE != 0:
            raise InvalidCiphertext(BLOCKSIZE, len(ciphertext))

        cipher = AES.new(self.key, AES.MODE_CBC, iv=self.iv)
        try:
            unpad(cipher.decrypt(ciphertext), BLOCKSIZE)
            return True
        except ValueError:
            return False


class RecordingOracle:
    """
    Wraps an oracle, recording every query.

    With ``max_queries`` set, the query after the limit raises
    :class:`OracleAborted` instead of answering, which ends the attack.
    """

    def __init__(self, oracle, max_queries: Optional[int] = None) -> None:
        self._oracle = oracle
        self.max_queries = max_queries
        self.history: List[bytes] = []

    @property
    def queries(self) -> int:
        return len(self.history)

    async def __call__(self, ciphertext: bytes) -> bool:
        if self.max_queries is not None and self.queries >= self.max_queries:
            log.warning("Query limit of %d reached, aborting", self.max_queries)
            raise OracleAborted(f"Oracle query limit of {self.max_queries} reached")

        self.history.append(bytes(ciphertext))
        return await query_oracle(self._oracle, ciphertext)
