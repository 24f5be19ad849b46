"""Unit tests for app.core.security: password hashing and JWT subject claims."""

import unittest

import jwt

from app.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from app.models import User


class _ScopedSubject:
    """Token subject with an extra claim that also tries to replace sub."""

    def identity_claim(self) -> str:
        return "u1"

    def custom_claims(self) -> dict[str, object]:
        return {"scope": "users", "sub": "not-the-id"}


class TestPasswords(unittest.TestCase):
    def test_hash_and_verify(self) -> None:
        hashed = hash_password("secret")
        self.assertNotEqual(hashed, "secret")
        self.assertTrue(verify_password("secret", hashed))
        self.assertFalse(verify_password("wrong", hashed))

    def test_verify_against_garbage(self) -> None:
        self.assertFalse(verify_password("secret", "not-a-hash"))
        self.assertFalse(verify_password("secret", None))


class TestAccessToken(unittest.TestCase):
    def test_subject_is_identity_claim(self) -> None:
        user = User(id="11111111-2222-3333-4444-555555555555")
        payload = decode_access_token(create_access_token(user))
        self.assertEqual(payload["sub"], user.identity_claim())
        self.assertIn("exp", payload)
        self.assertIn("iat", payload)

    def test_custom_claims_cannot_override_subject(self) -> None:
        payload = decode_access_token(create_access_token(_ScopedSubject()))
        self.assertEqual(payload["scope"], "users")
        self.assertEqual(payload["sub"], "u1")

    def test_tampered_token_rejected(self) -> None:
        token = create_access_token(User(id="u1"))
        header_and_payload = token.rsplit(".", 1)[0]
        with self.assertRaises(jwt.PyJWTError):
            decode_access_token(header_and_payload + ".invalidsignature")


if __name__ == "__main__":
    unittest.main()
