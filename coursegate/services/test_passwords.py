"""Tests for :mod:`coursegate.services.passwords`."""

from unittest import TestCase

from coursegate.services import passwords
from coursegate.services.exceptions import PasswordAuthenticationFailed, \
    InvalidPassword


class TestPasswords(TestCase):
    """bcrypt hashing and checking."""

    def test_hash_and_check(self):
        """A hashed password can be checked."""
        encrypted = passwords.hash_password('pw123456', rounds=10)
        self.assertNotIn('pw123456', encrypted)
        self.assertIsNone(passwords.check_password('pw123456', encrypted))

    def test_salted(self):
        """The same password hashes differently each time."""
        self.assertNotEqual(passwords.hash_password('pw123456', rounds=10),
                            passwords.hash_password('pw123456', rounds=10))

    def test_wrong_password(self):
        """An incorrect password fails."""
        encrypted = passwords.hash_password('pw123456', rounds=10)
        with self.assertRaises(PasswordAuthenticationFailed):
            passwords.check_password('pw1234567', encrypted)

    def test_cost_factor(self):
        """A cost factor below 10 is refused."""
        with self.assertRaises(ValueError):
            passwords.hash_password('pw123456', rounds=4)

    def test_not_a_bcrypt_hash(self):
        """A malformed hash fails rather than raising something else."""
        with self.assertRaises(PasswordAuthenticationFailed):
            passwords.check_password('pw123456', 'sha1$notbcrypt')

    def test_too_long(self):
        """bcrypt only reads 72 bytes, so longer passwords are refused."""
        with self.assertRaises(InvalidPassword):
            passwords.hash_password('é' * 40, rounds=10)
        self.assertIsInstance(passwords.hash_password('é' * 36, rounds=10),
                              str)
