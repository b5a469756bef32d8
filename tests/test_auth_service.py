"""Unit tests for app.services.auth.AuthService: login, session cap, logout."""

import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from sqlalchemy.dialects import postgresql

from app.core.errors import ErrorKind, ServiceError
from app.models import AppSetting, User, UserSession
from app.services.auth import AuthService, DeviceInfo
from app.services.config_cache import ConfigCache
from app.services.tokens import digest_token
from tests.support import add_session, add_setting, add_user, make_session_factory, make_settings

PASSWORD = "correct-horse-battery"


class AuthServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.session_factory = make_session_factory()
        self.db = self.session_factory()
        add_setting(self.db, "JWT_SECRET", "test-access-secret")
        add_setting(self.db, "JWT_REFRESH_SECRET", "test-refresh-secret")
        add_setting(self.db, "MAX_LOGIN_SESSIONS", "2")
        self.cache = ConfigCache(self.session_factory)
        self.cache.load()
        self.settings = make_settings()
        self.user = add_user(self.db, email="alice@example.com", mobile="5551112222", password=PASSWORD)
        self.service = AuthService(self.db, self.cache, self.settings)

    def tearDown(self) -> None:
        self.db.close()

    def sessions(self) -> list[UserSession]:
        return (
            self.db.query(UserSession)
            .filter(UserSession.user_id == self.user.id)
            .order_by(UserSession.created_at, UserSession.id)
            .all()
        )


class TestLoginSuccess(AuthServiceTestCase):
    def test_login_by_email_stores_digests_not_tokens(self) -> None:
        result = self.service.login("alice@example.com", PASSWORD)
        tokens = result.tokens
        [row] = self.sessions()
        self.assertEqual(row.access_token_hash, digest_token(tokens.access_token))
        self.assertEqual(row.refresh_token_hash, digest_token(tokens.refresh_token))
        self.assertNotEqual(row.access_token_hash, tokens.access_token)
        self.assertNotEqual(row.refresh_token_hash, tokens.refresh_token)
        self.assertTrue(row.is_active)
        self.assertIsNone(row.revoked_at)
        stored = self.service.sessions.get_by_access_token_digest(digest_token(tokens.access_token))
        self.assertEqual(stored.id, row.id)

    def test_login_by_mobile(self) -> None:
        result = self.service.login("5551112222", PASSWORD)
        self.assertEqual(result.user.id, self.user.id)

    def test_identifier_is_trimmed(self) -> None:
        result = self.service.login("  alice@example.com ", PASSWORD)
        self.assertEqual(result.user.id, self.user.id)

    def test_tokens_verify_and_carry_identity(self) -> None:
        result = self.service.login("alice@example.com", PASSWORD)
        claims = self.service.issuer.verify_access(result.tokens.access_token)
        self.assertEqual(claims["id"], self.user.id)
        self.assertEqual(claims["email"], "alice@example.com")
        self.assertEqual(claims["role"], "USER")
        self.assertEqual(
            self.service.issuer.verify_refresh(result.tokens.refresh_token)["id"], self.user.id
        )

    def test_expiry_instants_follow_policy(self) -> None:
        before = datetime.now(timezone.utc)
        tokens = self.service.login("alice@example.com", PASSWORD).tokens
        self.assertAlmostEqual(
            (tokens.access_token_expires_at - before).total_seconds(), 3600, delta=5
        )
        self.assertAlmostEqual(
            (tokens.refresh_token_expires_at - before).total_seconds(), 7 * 86400, delta=5
        )

    def test_device_metadata_is_recorded(self) -> None:
        device = DeviceInfo(
            device_id="dev-1", device_type="MOBILE", user_agent="pytest", ip_address="10.0.0.1"
        )
        self.service.login("alice@example.com", PASSWORD, device)
        [row] = self.sessions()
        self.assertEqual(
            (row.device_id, row.device_type, row.user_agent, row.ip_address),
            ("dev-1", "MOBILE", "pytest", "10.0.0.1"),
        )

    def test_last_login_is_stamped(self) -> None:
        self.assertIsNone(self.user.last_login_at)
        result = self.service.login("alice@example.com", PASSWORD)
        self.assertIsNotNone(result.user.last_login_at)
        self.assertIsNotNone(self.db.get(User, self.user.id).last_login_at)


class TestLoginWithOutOfRangeExpiry(AuthServiceTestCase):
    """Zero or oversized TTL settings fall back to one hour instead of breaking login."""

    def set_expiries(self, access: str, refresh: str) -> None:
        add_setting(self.db, "ACCESS_TOKEN_EXPIRY", access)
        add_setting(self.db, "REFRESH_TOKEN_EXPIRY", refresh)
        self.cache.refresh()

    def assert_one_hour_tokens(self) -> None:
        before = datetime.now(timezone.utc)
        tokens = self.service.login("alice@example.com", PASSWORD).tokens
        for expires_at in (tokens.access_token_expires_at, tokens.refresh_token_expires_at):
            self.assertAlmostEqual((expires_at - before).total_seconds(), 3600, delta=5)
        self.assertEqual(self.service.issuer.access_max_age(), 3600)
        self.assertEqual(self.service.issuer.refresh_max_age(), 3600)
        self.assertEqual(self.service.issuer.verify_access(tokens.access_token)["id"], self.user.id)

    def test_overflowing_expiry(self) -> None:
        self.set_expiries("9999999999d", "9999999999d")
        self.assert_one_hour_tokens()

    def test_zero_expiry(self) -> None:
        self.set_expiries("0s", "0h")
        self.assert_one_hour_tokens()


class TestUserLookup(AuthServiceTestCase):
    def test_lookup_locks_the_user_row(self) -> None:
        statement = self.service._user_lookup("alice@example.com").statement
        sql = str(statement.compile(dialect=postgresql.dialect()))
        self.assertIn("FOR UPDATE", sql)

    def test_email_matches_as_stored(self) -> None:
        add_user(self.db, email="Bob.Admin@Example.com", mobile="5557778888", password=PASSWORD)
        result = self.service.login("Bob.Admin@Example.com", PASSWORD)
        self.assertEqual(result.user.email, "Bob.Admin@Example.com")


class TestLoginFailures(AuthServiceTestCase):
    def test_unknown_identifier_and_wrong_password_are_indistinguishable(self) -> None:
        failures = []
        for identifier, password in (
            ("nobody@example.com", PASSWORD),
            ("alice@example.com", "wrong-password"),
            ("0000000000", "whatever"),
        ):
            with self.assertRaises(ServiceError) as ctx:
                self.service.login(identifier, password)
            failures.append(
                (ctx.exception.kind, ctx.exception.message, ctx.exception.status_code)
            )
        self.assertEqual(len(set(failures)), 1)
        self.assertEqual(failures[0][0], ErrorKind.INVALID_CREDENTIALS)
        self.assertEqual(failures[0][2], 401)
        self.assertEqual(self.sessions(), [])

    def test_unknown_identifier_still_runs_a_password_check(self) -> None:
        with patch("app.services.auth.verify_password", return_value=False) as mock_verify:
            with self.assertRaises(ServiceError):
                self.service.login("nobody@example.com", PASSWORD)
        mock_verify.assert_called_once()

    def test_disabled_user_is_rejected_with_correct_password(self) -> None:
        add_user(
            self.db,
            email="bob@example.com",
            mobile="5553334444",
            password=PASSWORD,
            is_disabled=True,
        )
        with self.assertRaises(ServiceError) as ctx:
            self.service.login("bob@example.com", PASSWORD)
        self.assertEqual(ctx.exception.kind, ErrorKind.ACCOUNT_DISABLED)
        self.assertEqual(ctx.exception.status_code, 403)
        self.assertEqual(self.db.query(UserSession).count(), 0)

    def test_failed_login_does_not_stamp_last_login(self) -> None:
        with self.assertRaises(ServiceError):
            self.service.login("alice@example.com", "wrong-password")
        self.assertIsNone(self.db.get(User, self.user.id).last_login_at)


class TestSessionCap(AuthServiceTestCase):
    def test_third_login_evicts_exactly_the_oldest(self) -> None:
        first = self.service.login("alice@example.com", PASSWORD).tokens
        second = self.service.login("alice@example.com", PASSWORD).tokens
        third = self.service.login("alice@example.com", PASSWORD).tokens

        rows = self.sessions()
        self.assertEqual(len(rows), 2)
        hashes = [row.access_token_hash for row in rows]
        self.assertNotIn(digest_token(first.access_token), hashes)
        self.assertEqual(hashes, [digest_token(second.access_token), digest_token(third.access_token)])

    def test_expired_session_does_not_count_toward_cap(self) -> None:
        expired = add_session(
            self.db,
            self.user.id,
            access_token_hash="e" * 64,
            refresh_expires_in=timedelta(seconds=-1),
            created_at=datetime.now(timezone.utc) - timedelta(days=8),
        )
        active = self.service.login("alice@example.com", PASSWORD).tokens
        self.service.login("alice@example.com", PASSWORD)

        hashes = {row.access_token_hash for row in self.sessions()}
        self.assertIn(digest_token(active.access_token), hashes)
        self.assertIn(expired.access_token_hash, hashes)
        self.assertEqual(self.service.sessions.count_active(self.user.id), 2)

    def test_cap_comes_from_settings_cache(self) -> None:
        self.db.query(AppSetting).filter(AppSetting.key == "MAX_LOGIN_SESSIONS").update({"value": "1"})
        self.db.commit()
        self.cache.refresh()
        self.service.login("alice@example.com", PASSWORD)
        latest = self.service.login("alice@example.com", PASSWORD).tokens
        rows = self.sessions()
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].access_token_hash, digest_token(latest.access_token))

    def test_cap_falls_back_to_environment(self) -> None:
        self.db.query(AppSetting).filter(AppSetting.key == "MAX_LOGIN_SESSIONS").delete()
        self.db.commit()
        self.cache.refresh()
        service = AuthService(self.db, self.cache, make_settings(MAX_LOGIN_SESSIONS=3))
        self.assertEqual(service.max_sessions(), 3)

    def test_sessions_of_other_users_are_untouched(self) -> None:
        other = add_user(self.db, email="carol@example.com", mobile="5555556666", password=PASSWORD)
        self.service.login("carol@example.com", PASSWORD)
        for _ in range(3):
            self.service.login("alice@example.com", PASSWORD)
        self.assertEqual(self.service.sessions.count_active(other.id), 1)
        self.assertEqual(self.service.sessions.count_active(self.user.id), 2)


class TestLogout(AuthServiceTestCase):
    def test_logout_deletes_the_session(self) -> None:
        tokens = self.service.login("alice@example.com", PASSWORD).tokens
        self.assertTrue(self.service.logout(tokens.access_token))
        self.assertEqual(self.sessions(), [])

    def test_logout_only_removes_matching_session(self) -> None:
        first = self.service.login("alice@example.com", PASSWORD).tokens
        second = self.service.login("alice@example.com", PASSWORD).tokens
        self.service.logout(first.access_token)
        self.assertEqual(
            [row.access_token_hash for row in self.sessions()],
            [digest_token(second.access_token)],
        )

    def test_logout_is_idempotent(self) -> None:
        tokens = self.service.login("alice@example.com", PASSWORD).tokens
        self.assertTrue(self.service.logout(tokens.access_token))
        self.assertFalse(self.service.logout(tokens.access_token))
        self.assertFalse(self.service.logout("never-issued"))


if __name__ == "__main__":
    unittest.main()
