"""
Demonstrates the CBC padding oracle attacks against a local demo oracle.

The Oracle holds a random AES-256 key and IV and reveals nothing but whether
a ciphertext decrypts to valid PKCS#7 padding. That alone is enough to:

1. Decrypt a message without knowing the key (the first block needs the IV).
2. Recover the IV from a ciphertext whose first plaintext block is known.
3. Decrypt the whole message once the IV is prepended.
4. Survive a plaintext built to produce a coincidental 02 02 padding.
5. Encrypt attacker-chosen plaintext without the key.
"""

import argparse
import asyncio
import logging
import sys

from .attack import compute_iv, crack, encrypt
from .oracle import BLOCKSIZE, Oracle, RecordingOracle
from .padding import add_padding, remove_padding

DEFAULT_MESSAGE = "The quick brown fox jumped over the lazy dog. This is a sample message to decrypt."
DEFAULT_KNOWN_MESSAGE = "This is some other plaintext where the attacker knows the first plaintext block."
DEFAULT_CHOSEN_MESSAGE = "This is a plaintext that an attacker has chosen. They do not need the key to encrypt it."


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="cbc_padding_oracle",
        description="Run CBC padding oracle attacks against a local AES-256-CBC oracle.",
    )
    parser.add_argument("--message", default=DEFAULT_MESSAGE,
                        help="secret message to encrypt and then crack")
    parser.add_argument("--known-message", default=DEFAULT_KNOWN_MESSAGE,
                        help="message whose first block the attacker knows, used to recover the IV")
    parser.add_argument("--chosen-message", default=DEFAULT_CHOSEN_MESSAGE,
                        help="plaintext to forge a ciphertext for")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="log attack progress (-vv for every byte)")
    return parser.parse_args(argv)


async def padding_collision_check() -> bool:
    # Gets padded with a single 0x01 while the byte before it is 0x02
    plaintext = bytes(range(16, 1, -1))
    oracle = Oracle()
    ciphertext = oracle.encrypt(plaintext)

    cracked = await crack(oracle.iv + ciphertext, BLOCKSIZE, oracle.query)
    return remove_padding(cracked) == plaintext


async def demo(args) -> int:
    oracle = Oracle()
    counter = RecordingOracle(oracle.query)

    print("Cracking a message without IV:")
    plaintext = args.message.encode("utf-8")
    ciphertext = oracle.encrypt(plaintext)
    if len(ciphertext) > BLOCKSIZE:
        decrypted = await crack(ciphertext, BLOCKSIZE, counter)
        print("  Plaintext: " + plaintext.decode("utf-8", "replace"))
        print("  Decrypted: " + " " * BLOCKSIZE + remove_padding(decrypted).decode("utf-8", "replace"))
        print(f"  Oracle queries: {counter.queries}")
    else:
        # Only the IV precedes a single block
        print("  Skipped: message fits in one block")
    print()

    print("Computing IV from known ciphertext/plaintext first block:")
    known = args.known_message.encode("utf-8")
    known_ciphertext = oracle.encrypt(known)
    computed_iv = await compute_iv(known_ciphertext[:BLOCKSIZE], add_padding(known, BLOCKSIZE)[:BLOCKSIZE],
                                   oracle.query)
    print("  Original IV: " + oracle.iv.hex())
    print("  Computed IV: " + computed_iv.hex())
    print()

    print("Cracking a message with IV:")
    decrypted_with_iv = await crack(computed_iv + ciphertext, BLOCKSIZE, oracle.query)
    print("  Plaintext:           " + plaintext.decode("utf-8", "replace"))
    print("  Decrypted (with IV): " + remove_padding(decrypted_with_iv).decode("utf-8", "replace"))
    print()

    print("Checking coincidental padding handling:")
    collision_ok = await padding_collision_check()
    print("  " + ("OK" if collision_ok else "Padding collision not working!"))
    print()

    print("Encrypting arbitrary data (with chosen IV):")
    chosen = args.chosen_message.encode("utf-8")
    forged = await encrypt(chosen, BLOCKSIZE, oracle.query)
    print("  Chosen plaintext:    " + chosen.decode("utf-8", "replace"))
    print("  Decrypted plaintext: " + oracle.decrypt(forged.ciphertext, iv=forged.iv).decode("utf-8", "replace"))
    print()

    return 0 if collision_ok else 1


def main(argv=None) -> int:
    args = parse_args(argv)
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG if args.verbose > 1 else logging.INFO,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
    return asyncio.run(demo(args))


if __name__ == "__main__":
    sys.exit(main())
