"""HTTP tests for /settings: CRUD, cache inspection/refresh and the SMTP check."""

import unittest
from unittest.mock import patch

from app.models import AppSetting
from tests.support import ApiTestCase, add_setting, add_user

BASE = "/api/v1/settings"


class SettingsApiTestCase(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        add_user(self.db, email="root@example.com", mobile="5550000000", role="SUPER_ADMIN")
        self.assertEqual(self.login("root@example.com").status_code, 200)


class TestCacheEndpoints(SettingsApiTestCase):
    def test_get_cache_returns_snapshot(self) -> None:
        resp = self.client.get(f"{BASE}/cache")
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertTrue(data["is_loaded"])
        self.assertEqual(data["count"], 3)
        self.assertEqual(data["settings"]["MAX_LOGIN_SESSIONS"], "2")

    def test_refresh_picks_up_direct_database_changes(self) -> None:
        add_setting(self.db, "FEATURE_FLAG", "on")
        self.assertNotIn("FEATURE_FLAG", self.client.get(f"{BASE}/cache").json()["settings"])
        resp = self.client.post(f"{BASE}/cache/refresh")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["settings"]["FEATURE_FLAG"], "on")
        self.assertEqual(self.cache.get("FEATURE_FLAG"), "on")


class TestSettingsCrud(SettingsApiTestCase):
    def test_create_refreshes_cache(self) -> None:
        resp = self.client.post(
            BASE, json={"key": " SMTP_HOST ", "value": "mail.example.com", "description": "relay"}
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["key"], "SMTP_HOST")
        self.assertEqual(self.cache.get("SMTP_HOST"), "mail.example.com")

    def test_create_inactive_is_not_cached(self) -> None:
        resp = self.client.post(BASE, json={"key": "LATER", "value": "x", "is_active": False})
        self.assertEqual(resp.status_code, 201)
        self.assertIsNone(self.cache.get("LATER"))

    def test_duplicate_key_conflicts(self) -> None:
        resp = self.client.post(BASE, json={"key": "JWT_SECRET", "value": "again"})
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["code"], "setting_key_exists")

    def test_blank_value_is_rejected(self) -> None:
        resp = self.client.post(BASE, json={"key": "EMPTY", "value": "   "})
        self.assertEqual(resp.status_code, 422)

    def test_get_by_id_and_key(self) -> None:
        setting = self.db.query(AppSetting).filter(AppSetting.key == "MAX_LOGIN_SESSIONS").one()
        self.assertEqual(self.client.get(f"{BASE}/{setting.id}").json()["value"], "2")
        self.assertEqual(self.client.get(f"{BASE}/key/MAX_LOGIN_SESSIONS").json()["id"], setting.id)

    def test_missing_setting_is_404(self) -> None:
        for resp in (
            self.client.get(f"{BASE}/9999"),
            self.client.get(f"{BASE}/key/NOPE"),
            self.client.put(f"{BASE}/9999", json={"value": "x"}),
            self.client.delete(f"{BASE}/key/NOPE"),
        ):
            self.assertEqual(resp.status_code, 404)
            self.assertEqual(resp.json()["code"], "setting_not_found")

    def test_update_by_key_changes_session_cap_immediately(self) -> None:
        resp = self.client.put(f"{BASE}/key/MAX_LOGIN_SESSIONS", json={"value": "5"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.cache.get_int("MAX_LOGIN_SESSIONS", 2), 5)

    def test_update_by_id_rename_collision(self) -> None:
        setting = add_setting(self.db, "OLD_NAME", "v")
        resp = self.client.put(f"{BASE}/{setting.id}", json={"key": "JWT_SECRET"})
        self.assertEqual(resp.status_code, 409)

        resp = self.client.put(f"{BASE}/{setting.id}", json={"key": "NEW_NAME"})
        self.assertEqual(resp.status_code, 200)
        self.client.post(f"{BASE}/cache/refresh")
        self.assertEqual(self.cache.get("NEW_NAME"), "v")
        self.assertIsNone(self.cache.get("OLD_NAME"))

    def test_deactivate_drops_from_cache(self) -> None:
        add_setting(self.db, "FEATURE", "on")
        self.cache.refresh()
        resp = self.client.put(f"{BASE}/key/FEATURE", json={"is_active": False})
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(resp.json()["is_active"])
        self.assertIsNone(self.cache.get("FEATURE"))

    def test_delete_by_id_and_key(self) -> None:
        first = add_setting(self.db, "ONE", "1")
        add_setting(self.db, "TWO", "2")
        self.assertEqual(self.client.delete(f"{BASE}/{first.id}").status_code, 204)
        self.assertEqual(self.client.delete(f"{BASE}/key/TWO").status_code, 204)
        self.assertIsNone(self.cache.get("ONE"))
        self.assertEqual(self.db.query(AppSetting).filter(AppSetting.key.in_(["ONE", "TWO"])).count(), 0)

    def test_list_filters_and_paginates(self) -> None:
        add_setting(self.db, "SMTP_HOST", "h")
        add_setting(self.db, "SMTP_PORT", "587", is_active=False)
        resp = self.client.get(BASE, params={"search": "SMTP"})
        data = resp.json()
        self.assertEqual(data["pagination"]["total"], 2)
        self.assertEqual({s["key"] for s in data["settings"]}, {"SMTP_HOST", "SMTP_PORT"})

        resp = self.client.get(BASE, params={"is_active": "false"})
        self.assertEqual([s["key"] for s in resp.json()["settings"]], ["SMTP_PORT"])

        resp = self.client.get(BASE, params={"limit": 2, "page": 2})
        data = resp.json()
        self.assertEqual(data["pagination"], {"total": 5, "page": 2, "limit": 2, "total_pages": 3})
        self.assertEqual(len(data["settings"]), 2)


class TestSmtpVerify(SettingsApiTestCase):
    def test_success(self) -> None:
        add_setting(self.db, "SMTP_USER", "mailer@example.com")
        self.cache.refresh()
        with patch("app.services.mail.Mailer.verify_connection", return_value=True):
            resp = self.client.post(f"{BASE}/smtp/verify")
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertTrue(data["connected"])
        self.assertEqual(data["config"]["user"], "mai***")

    def test_failure_is_400(self) -> None:
        with patch("app.services.mail.Mailer.verify_connection", return_value=False):
            resp = self.client.post(f"{BASE}/smtp/verify")
        self.assertEqual(resp.status_code, 400)
        data = resp.json()
        self.assertFalse(data["connected"])
        self.assertEqual(data["config"]["user"], "Not set")


if __name__ == "__main__":
    unittest.main()
