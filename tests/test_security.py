import unittest
from datetime import timedelta
from unittest.mock import patch

import jwt
from fastapi import HTTPException

from warehouse.config import Settings
from warehouse.core import security
from warehouse.core.dates import utc_now
from warehouse.core.exceptions import ValidationFailed
from warehouse.core.security import (
    authenticate_request,
    create_access_token,
    hash_password,
    validate_password_strength,
    verify_password,
)
from warehouse.models.user import ROLE_ADMIN, ROLE_STAFF
from warehouse.schemas.user import RegisterRequest
from warehouse.services.user_service import authenticate, ensure_admin, register_user

from tests.support import make_engine, make_sessionmaker

TEST_SETTINGS = Settings(JWT_SECRET="test-secret", PASSWORD_PBKDF2_ROUNDS=1000, _env_file=None)


class PasswordTest(unittest.TestCase):
    def test_hash_round_trip(self):
        stored = hash_password("gudang123!", rounds=1000)

        self.assertTrue(stored.startswith("pbkdf2_sha256$1000$"))
        self.assertTrue(verify_password("gudang123!", stored))
        self.assertFalse(verify_password("gudang124!", stored))

    def test_salts_differ(self):
        self.assertNotEqual(
            hash_password("gudang123!", rounds=1000),
            hash_password("gudang123!", rounds=1000),
        )

    def test_malformed_hash_never_verifies(self):
        self.assertFalse(verify_password("x", "plaintext"))
        self.assertFalse(verify_password("x", "md5$1$salt$abc"))

    def test_password_strength(self):
        self.assertTrue(validate_password_strength("gudang123!"))
        self.assertFalse(validate_password_strength("gudang123"))
        self.assertFalse(validate_password_strength("g1!"))
        self.assertFalse(validate_password_strength("gudang 123!"))


@patch.object(security, "get_settings", return_value=TEST_SETTINGS)
class TokenTest(unittest.TestCase):
    def test_token_round_trip(self, _settings):
        token = create_access_token(7, ROLE_ADMIN, "admin")

        user = authenticate_request("Bearer {}".format(token))

        self.assertEqual(user.id, 7)
        self.assertTrue(user.is_admin)
        self.assertEqual(user.username, "admin")

    def test_missing_header(self, _settings):
        with self.assertRaises(HTTPException) as ctx:
            authenticate_request(None)
        self.assertEqual(ctx.exception.status_code, 401)

    def test_expired_token(self, _settings):
        now = utc_now()
        token = jwt.encode(
            {"sub": "7", "role": ROLE_STAFF, "exp": now - timedelta(minutes=1)},
            "test-secret",
            algorithm="HS256",
        )
        with self.assertRaises(HTTPException) as ctx:
            authenticate_request("Bearer {}".format(token))
        self.assertEqual(ctx.exception.status_code, 401)

    def test_wrong_secret(self, _settings):
        token = jwt.encode(
            {"sub": "7", "role": ROLE_STAFF, "exp": utc_now() + timedelta(minutes=5)},
            "another-secret",
            algorithm="HS256",
        )
        with self.assertRaises(HTTPException) as ctx:
            authenticate_request("Bearer {}".format(token))
        self.assertEqual(ctx.exception.status_code, 401)

    def test_non_numeric_subject(self, _settings):
        token = jwt.encode(
            {"sub": "admin", "role": ROLE_ADMIN, "exp": utc_now() + timedelta(minutes=5)},
            "test-secret",
            algorithm="HS256",
        )
        with self.assertRaises(HTTPException) as ctx:
            authenticate_request("Bearer {}".format(token))
        self.assertEqual(ctx.exception.status_code, 401)


class UnconfiguredSecretTest(unittest.TestCase):
    def test_missing_secret_is_a_server_error(self):
        settings = Settings(JWT_SECRET=None, _env_file=None)
        with patch.object(security, "get_settings", return_value=settings):
            with self.assertRaises(HTTPException) as ctx:
                create_access_token(1, ROLE_STAFF)
        self.assertEqual(ctx.exception.status_code, 500)


@patch.object(security, "get_settings", return_value=TEST_SETTINGS)
class UserServiceTest(unittest.TestCase):
    def setUp(self):
        self.engine = make_engine()
        self.Session = make_sessionmaker(self.engine)
        self.db = self.Session()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def _register(self, **overrides):
        values = dict(
            username="kasir",
            email="kasir@example.com",
            password="gudang123!",
            full_name="Kasir Satu",
        )
        values.update(overrides)
        return register_user(self.db, RegisterRequest(**values))

    def test_register_then_authenticate(self, _settings):
        user = self._register()

        self.assertEqual(user.role, ROLE_STAFF)
        self.assertNotIn("gudang123!", user.password_hash)
        self.assertEqual(authenticate(self.db, "KASIR@example.com", "gudang123!").id, user.id)
        self.assertIsNone(authenticate(self.db, "kasir@example.com", "salah123!"))
        self.assertIsNone(authenticate(self.db, "nobody@example.com", "gudang123!"))

    def test_register_validation(self, _settings):
        self._register()
        with self.assertRaises(ValidationFailed) as ctx:
            self._register(email="kasir@example.com", username="abc", password="short")

        self.assertEqual(set(ctx.exception.errors), {"username", "email", "password"})

    def test_duplicate_username(self, _settings):
        self._register()
        with self.assertRaises(ValidationFailed) as ctx:
            self._register(email="other@example.com")
        self.assertIn("username", ctx.exception.errors)

    def test_authenticate_rejects_bad_email(self, _settings):
        with self.assertRaises(ValidationFailed) as ctx:
            authenticate(self.db, "not-an-email", "")
        self.assertEqual(set(ctx.exception.errors), {"email", "password"})

    def test_ensure_admin_is_idempotent(self, _settings):
        payload = RegisterRequest(
            username="admin",
            email="admin@example.com",
            password="admin123!",
            full_name="Admin",
        )
        first = ensure_admin(self.db, payload)
        second = ensure_admin(self.db, payload)

        self.assertEqual(first.id, second.id)
        self.assertEqual(first.role, ROLE_ADMIN)


if __name__ == "__main__":
    unittest.main()
