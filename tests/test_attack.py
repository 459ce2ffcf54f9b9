import os
import unittest

from Crypto.Cipher import AES

from cbc_padding_oracle.attack import ForgedCiphertext, compute_iv, crack, encrypt
from cbc_padding_oracle.exceptions import InvalidCiphertext, OracleAborted
from cbc_padding_oracle.oracle import BLOCKSIZE, Oracle, RecordingOracle
from cbc_padding_oracle.padding import add_padding, remove_padding

MESSAGES = [
    b"",
    b"A",
    b"YELLOW SUBMARINE",
    b"The quick brown fox jumped over the lazy dog.",
    bytes(range(40)),
]


class Test_Crack(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.oracle = Oracle()

    async def test_crack_with_iv(self):
        for message in MESSAGES:
            with self.subTest(message=message):
                ciphertext = self.oracle.encrypt(message)
                cracked = await crack(self.oracle.iv + ciphertext, BLOCKSIZE, self.oracle.query)
                self.assertEqual(cracked, add_padding(message, BLOCKSIZE))
                self.assertEqual(remove_padding(cracked), message)

    async def test_crack_without_iv_skips_first_block(self):
        message = b"The quick brown fox jumped over the lazy dog."
        ciphertext = self.oracle.encrypt(message)

        cracked = await crack(ciphertext, BLOCKSIZE, self.oracle.query)

        self.assertEqual(cracked, add_padding(message, BLOCKSIZE)[BLOCKSIZE:])

    async def test_coincidental_padding_regression(self):
        # Padded with a single 0x01 while the byte before it is 0x02
        plaintext = bytes([16, 15, 14, 13, 12, 11, 10, 9, 8, 7, 6, 5, 4, 3, 2])
        for _ in range(5):
            oracle = Oracle()
            ciphertext = oracle.encrypt(plaintext)
            cracked = await crack(oracle.iv + ciphertext, BLOCKSIZE, oracle.query)
            self.assertEqual(remove_padding(cracked), plaintext)

    async def test_minimum_two_blocks(self):
        ciphertext = self.oracle.encrypt(b"short")
        self.assertEqual(len(ciphertext), BLOCKSIZE)

        cracked = await crack(self.oracle.iv + ciphertext, BLOCKSIZE, self.oracle.query)

        self.assertEqual(remove_padding(cracked), b"short")

    async def test_invalid_ciphertext(self):
        for ciphertext in (b"", b"x" * 15, b"x" * 17, b"x" * BLOCKSIZE):
            with self.subTest(length=len(ciphertext)):
                with self.assertRaises(InvalidCiphertext) as ctx:
                    await crack(ciphertext, BLOCKSIZE, self.oracle.query)
                self.assertEqual(ctx.exception.expected, BLOCKSIZE)
                self.assertEqual(ctx.exception.received, len(ciphertext))

    async def test_crack_is_deterministic(self):
        ciphertext = self.oracle.iv + self.oracle.encrypt(b"same input, same queries")
        first = RecordingOracle(self.oracle.query)
        second = RecordingOracle(self.oracle.query)

        self.assertEqual(await crack(ciphertext, BLOCKSIZE, first),
                         await crack(ciphertext, BLOCKSIZE, second))
        self.assertEqual(first.history, second.history)

    async def test_queries_are_block_aligned(self):
        recorder = RecordingOracle(self.oracle.query)
        ciphertext = self.oracle.iv + self.oracle.encrypt(b"alignment check, two blocks")

        await crack(ciphertext, BLOCKSIZE, recorder)

        for query in recorder.history:
            self.assertTrue(query)
            self.assertEqual(len(query) % BLOCKSIZE, 0)

    async def test_aborted_oracle_stops_crack(self):
        recorder = RecordingOracle(self.oracle.query, max_queries=10)
        ciphertext = self.oracle.iv + self.oracle.encrypt(b"never finished")

        with self.assertRaises(OracleAborted):
            await crack(ciphertext, BLOCKSIZE, recorder)
        self.assertEqual(recorder.queries, 10)


class Test_ComputeIv(unittest.IsolatedAsyncioTestCase):

    async def test_recovers_true_iv(self):
        oracle = Oracle()
        for message in MESSAGES:
            with self.subTest(message=message):
                ciphertext = oracle.encrypt(message)
                first_block = add_padding(message, BLOCKSIZE)[:BLOCKSIZE]
                iv = await compute_iv(ciphertext[:BLOCKSIZE], first_block, oracle.query)
                self.assertEqual(iv, oracle.iv)

    async def test_mismatched_blocks(self):
        oracle = Oracle()
        with self.assertRaises(InvalidCiphertext):
            await compute_iv(b"x" * BLOCKSIZE, b"y" * 8, oracle.query)
        with self.assertRaises(InvalidCiphertext):
            await compute_iv(b"", b"", oracle.query)


class Test_Encrypt(unittest.IsolatedAsyncioTestCase):

    async def test_forged_ciphertext_decrypts_under_real_key(self):
        oracle = Oracle()
        for message in MESSAGES:
            with self.subTest(message=message):
                forged = await encrypt(message, BLOCKSIZE, oracle.query)
                self.assertIsInstance(forged, ForgedCiphertext)
                self.assertEqual(len(forged.iv), BLOCKSIZE)
                self.assertEqual(len(forged.ciphertext), len(add_padding(message, BLOCKSIZE)))

                cipher = AES.new(oracle.key, AES.MODE_CBC, iv=forged.iv)
                self.assertEqual(cipher.decrypt(forged.ciphertext), add_padding(message, BLOCKSIZE))

    async def test_chosen_terminal_block(self):
        oracle = Oracle()
        terminal = os.urandom(BLOCKSIZE)
        message = b"This is a plaintext that an attacker has chosen."

        forged = await encrypt(message, BLOCKSIZE, oracle.query, terminal=terminal)

        self.assertTrue(forged.ciphertext.endswith(terminal))
        self.assertEqual(oracle.decrypt(forged.ciphertext, iv=forged.iv), message)

    async def test_forged_ciphertext_cracks_back(self):
        oracle = Oracle()
        message = b"round trip through both attacks"
        forged = await encrypt(message, BLOCKSIZE, oracle.query)

        cracked = await crack(forged.iv + forged.ciphertext, BLOCKSIZE, oracle.query)

        self.assertEqual(remove_padding(cracked), message)

    async def test_bad_terminal_block(self):
        with self.assertRaises(InvalidCiphertext):
            await encrypt(b"message", BLOCKSIZE, Oracle().query, terminal=b"short")


if __name__ == '__main__':
    unittest.main()
