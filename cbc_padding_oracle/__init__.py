"""
CBC padding oracle attacks.

Given only an oracle that says whether a ciphertext decrypts to valid PKCS#7
padding, recover plaintext (:func:`crack`), recover the IV of a known
plaintext/ciphertext pair (:func:`compute_iv`) and forge ciphertext for
chosen plaintext (:func:`encrypt`), all without the key.
"""

from .attack import ForgedCiphertext, compute_iv, crack, encrypt
from .exceptions import InvalidCiphertext, InvalidPadding, OracleAborted, PaddingOracleError
from .padding import add_padding, remove_padding
from .solver import Framing, intermediate_state, solve

__all__ = [
    'Framing',
    'ForgedCiphertext',
    'InvalidCiphertext',
    'InvalidPadding',
    'OracleAborted',
    'PaddingOracleError',
    'add_padding',
    'compute_iv',
    'crack',
    'encrypt',
    'intermediate_state',
    'remove_padding',
    'solve',
]
