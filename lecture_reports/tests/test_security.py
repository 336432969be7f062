import unittest

from lecture_reports.security import BcryptPasswordHasher, HashingError


class BcryptPasswordHasherTests(unittest.TestCase):
    def setUp(self):
        self.hasher = BcryptPasswordHasher(rounds=4)

    def test_hash_verifies(self):
        hashed = self.hasher.hash("correct horse")
        self.assertTrue(hashed.startswith("$2"))
        self.assertTrue(self.hasher.verify("correct horse", hashed))
        self.assertFalse(self.hasher.verify("battery staple", hashed))

    def test_hash_is_salted(self):
        self.assertNotEqual(self.hasher.hash("pw"), self.hasher.hash("pw"))

    def test_work_factor_is_encoded_in_hash(self):
        hashed = BcryptPasswordHasher(rounds=5).hash("pw")
        self.assertEqual(hashed.split("$")[2], "05")

    def test_default_work_factor(self):
        self.assertEqual(BcryptPasswordHasher().rounds, 10)

    def test_long_passwords_are_truncated_consistently(self):
        long_password = "x" * 100
        hashed = self.hasher.hash(long_password)
        self.assertTrue(self.hasher.verify(long_password, hashed))
        self.assertTrue(self.hasher.verify("x" * 72, hashed))

    def test_malformed_hash_is_a_mismatch(self):
        self.assertFalse(self.hasher.verify("pw", "not-a-bcrypt-hash"))
        self.assertFalse(self.hasher.verify("pw", None))

    def test_non_string_password_cannot_be_hashed(self):
        with self.assertRaises(HashingError):
            self.hasher.hash(12345)


if __name__ == "__main__":
    unittest.main()
