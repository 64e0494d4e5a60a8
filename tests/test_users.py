import unittest
from unittest import mock

from helpers import DEFAULT_PASSWORD, PNG_BYTES, ApiTestCase


class UsersApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.user, self.headers = self.register("fox")
        self.user_id = self.user["userid"]

    def test_profiles_never_expose_credentials(self):
        self.register("falco")
        response = self.client.get("/profiles", headers=self.headers)
        self.assertEqual(response.status_code, 200)
        profiles = response.json()
        self.assertEqual([profile["username"] for profile in profiles], ["fox", "falco"])
        for profile in profiles:
            self.assertNotIn("password_hash", profile)
            self.assertNotIn("email", profile)

    def test_profile_lookup(self):
        response = self.client.get(f"/api/profile/{self.user_id}", headers=self.headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["userid"], self.user_id)
        self.assertEqual(response.json()["username"], "fox")
        response = self.client.get("/api/profile/999999", headers=self.headers)
        self.assertEqual(response.status_code, 404)

    def test_update_username(self):
        response = self.client.put(
            f"/api/update-username/{self.user_id}",
            headers=self.headers,
            json={"newUsername": "starfox"},
        )
        self.assertEqual(response.status_code, 200)
        response = self.client.get("/api/check-username/starfox", headers=self.headers)
        self.assertEqual(response.json(), {"exists": True})
        response = self.client.get("/api/check-username/fox", headers=self.headers)
        self.assertEqual(response.json(), {"exists": False})

    def test_update_username_taken(self):
        self.register("slippy")
        response = self.client.put(
            f"/api/update-username/{self.user_id}",
            headers=self.headers,
            json={"newUsername": "slippy"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Username in use.")

    def test_update_password_changes_login(self):
        response = self.client.put(
            f"/api/update-password/{self.user_id}",
            headers=self.headers,
            json={"newPassword": "BarrelRoll99"},
        )
        self.assertEqual(response.status_code, 200)
        response = self.client.post("/login", json={"username": "fox", "password": DEFAULT_PASSWORD})
        self.assertEqual(response.status_code, 401)
        response = self.client.post("/login", json={"username": "fox", "password": "BarrelRoll99"})
        self.assertEqual(response.status_code, 200)

    def test_update_password_too_short(self):
        response = self.client.put(
            f"/api/update-password/{self.user_id}",
            headers=self.headers,
            json={"newPassword": "short"},
        )
        self.assertEqual(response.status_code, 422)

    def test_update_email(self):
        response = self.client.put(
            f"/api/update-email/{self.user_id}",
            headers=self.headers,
            json={"newEmail": "Fox@Corneria.com"},
        )
        self.assertEqual(response.status_code, 200)
        response = self.client.get("/api/check-email/fox@corneria.com", headers=self.headers)
        self.assertEqual(response.json(), {"exists": True})
        response = self.client.get("/api/me", headers=self.headers)
        self.assertEqual(response.json()["user"]["email"], "fox@corneria.com")

    def test_update_email_taken(self):
        self.register("peppy", email="peppy@example.com")
        response = self.client.put(
            f"/api/update-email/{self.user_id}",
            headers=self.headers,
            json={"newEmail": "peppy@example.com"},
        )
        self.assertEqual(response.status_code, 400)

    def test_update_bio_strips_markup(self):
        response = self.client.put(
            f"/api/update-bio/{self.user_id}",
            headers=self.headers,
            json={"bio": "<script>alert(1)</script>Do a <b>barrel</b> roll"},
        )
        self.assertEqual(response.status_code, 200)
        bio = response.json()["bio"]
        self.assertNotIn("<script>", bio)
        self.assertNotIn("<b>", bio)
        self.assertIn("barrel", bio)

        response = self.client.get(f"/api/profile/{self.user_id}", headers=self.headers)
        self.assertEqual(response.json()["bio"], bio)

    def test_bio_keeps_plain_text_characters(self):
        response = self.client.put(
            f"/api/update-bio/{self.user_id}",
            headers=self.headers,
            json={"bio": "R&D <b>fan</b> says 1 < 2"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["bio"], "R&D fan says 1 < 2")

        response = self.client.get(f"/api/profile/{self.user_id}", headers=self.headers)
        self.assertEqual(response.json()["bio"], "R&D fan says 1 < 2")

    def test_avatar_upload_limit(self):
        with mock.patch("gameshelf.routes.deps.MAX_UPLOAD_BYTES", len(PNG_BYTES)):
            response = self.client.post(
                f"/api/upload-avatar/{self.user_id}",
                headers=self.headers,
                files={"avatar": ("me.png", PNG_BYTES, "image/png")},
            )
            self.assertEqual(response.status_code, 200)
            response = self.client.post(
                f"/api/upload-avatar/{self.user_id}",
                headers=self.headers,
                files={"avatar": ("me.png", PNG_BYTES + b"\x00", "image/png")},
            )
            self.assertEqual(response.status_code, 413)

    def test_upload_avatar(self):
        response = self.client.post(
            f"/api/upload-avatar/{self.user_id}",
            headers=self.headers,
            files={"avatar": ("me.png", PNG_BYTES, "image/png")},
        )
        self.assertEqual(response.status_code, 200)
        url = response.json()["avatar_url"]
        self.assertTrue(url.startswith(f"https://storage.test/avatars/{self.user_id}/"))

        response = self.client.get(f"/api/profile/{self.user_id}", headers=self.headers)
        self.assertEqual(response.json()["avatar_url"], url)

    def test_upload_empty_avatar(self):
        response = self.client.post(
            f"/api/upload-avatar/{self.user_id}",
            headers=self.headers,
            files={"avatar": ("me.png", b"", "image/png")},
        )
        self.assertEqual(response.status_code, 400)

    def test_cannot_edit_another_account(self):
        other, _ = self.register("wolf")
        response = self.client.put(
            f"/api/update-bio/{other['userid']}",
            headers=self.headers,
            json={"bio": "hacked"},
        )
        self.assertEqual(response.status_code, 403)


if __name__ == "__main__":
    unittest.main()
