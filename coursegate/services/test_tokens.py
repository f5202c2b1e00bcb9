"""Tests for :mod:`coursegate.services.tokens`."""

from datetime import datetime, timedelta
from unittest import TestCase

import jwt
from pytz import UTC

from coursegate import domain
from coursegate.services import tokens
from coursegate.services.exceptions import InvalidToken, ExpiredToken

SECRET = 'foosecret'


class TestTokens(TestCase):
    """Issue and read session tokens."""

    def setUp(self):
        """Create an account to issue tokens for."""
        self.account = domain.Account(
            account_id=42,
            username='alice',
            email='alice@coursegate.org',
            name=domain.UserFullName('Alice', 'Liddell'),
            role=domain.STUDENT
        )

    def test_encode_decode(self):
        """Claims identify the account and its role."""
        token = tokens.encode(self.account, SECRET)
        claims = tokens.decode(token, SECRET)
        self.assertEqual(claims.account_id, 42)
        self.assertEqual(claims.username, 'alice')
        self.assertEqual(claims.role, domain.STUDENT)
        self.assertFalse(claims.is_admin)
        self.assertEqual(claims.expires_at - claims.issued_at,
                         timedelta(days=7))

    def test_admin_role(self):
        """The admin role is carried in the token."""
        token = tokens.encode(self.account._replace(role=domain.ADMIN),
                              SECRET)
        self.assertTrue(tokens.decode(token, SECRET).is_admin)

    def test_expired(self):
        """A token issued more than seven days ago is expired."""
        issued_at = datetime.now(tz=UTC) - timedelta(days=7, seconds=30)
        token = tokens.encode(self.account, SECRET, issued_at=issued_at)
        with self.assertRaises(ExpiredToken):
            tokens.decode(token, SECRET)

    def test_not_yet_expired(self):
        """A token issued six days ago is still good."""
        issued_at = datetime.now(tz=UTC) - timedelta(days=6)
        token = tokens.encode(self.account, SECRET, issued_at=issued_at)
        self.assertEqual(tokens.decode(token, SECRET).account_id, 42)

    def test_wrong_secret(self):
        """A token signed with another secret is rejected."""
        token = tokens.encode(self.account, 'othersecret')
        with self.assertRaises(InvalidToken):
            tokens.decode(token, SECRET)

    def test_tampered(self):
        """Changing the claims invalidates the signature."""
        token = tokens.encode(self.account, SECRET)
        header, payload, signature = token.split('.')
        forged = jwt.encode({'sub': '1', 'role': domain.ADMIN,
                             'iat': 0, 'exp': 9999999999}, 'guess')
        _, forged_payload, _ = forged.split('.')
        with self.assertRaises(InvalidToken):
            tokens.decode('.'.join([header, forged_payload, signature]),
                          SECRET)

    def test_garbage(self):
        """Something that is not a JWT is rejected."""
        with self.assertRaises(InvalidToken):
            tokens.decode('notatoken', SECRET)

    def test_missing_subject(self):
        """A validly signed token without a subject is rejected."""
        token = jwt.encode({'iat': 0, 'exp': 9999999999}, SECRET,
                           algorithm='HS256')
        with self.assertRaises(InvalidToken):
            tokens.decode(token, SECRET)
