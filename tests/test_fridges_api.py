import unittest
import uuid
from unittest import mock

from support import ApiTestCase


class HealthTests(ApiTestCase):
    def test_health_needs_no_auth(self):
        response = self.client.get("/health")

        self.assertEqual(response.status_code, 200)
        payload = response.get_json()
        self.assertEqual(payload["status"], "ok")
        self.assertIn("timestamp", payload)


class FridgeEndpointTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.alice = self.make_user("Alice", photo_url="https://img.test/a.png")
        self.bob = self.make_user("Bob")

    def _create(self, user_id, name="Kitchen"):
        return self.client.post(
            "/fridges", json={"name": name}, headers=self.as_user(user_id)
        )

    def test_missing_identity_is_unauthorized(self):
        for method, path in [
            ("post", "/fridges"),
            ("post", "/fridges/join"),
            ("post", "/fridges/leave"),
            ("get", "/fridges/me"),
            ("get", "/fridges/me/members"),
        ]:
            with self.subTest(path=path):
                response = getattr(self.client, method)(path)
                self.assertEqual(response.status_code, 401)
                self.assertEqual(response.get_json()["code"], "UNAUTHORIZED")

    def test_create_validates_name(self):
        for body in (
            {},
            {"name": ""},
            {"name": "   "},
            {"name": 5},
            ["Kitchen"],
            "Kitchen",
        ):
            with self.subTest(body=body):
                response = self.client.post(
                    "/fridges", json=body, headers=self.as_user(self.alice)
                )
                self.assertEqual(response.status_code, 400)
                self.assertEqual(
                    response.get_json()["code"], "VALIDATION_ERROR"
                )

    def test_create_for_unknown_user(self):
        response = self._create(uuid.uuid4())

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["code"], "USER_NOT_FOUND")

    def test_create_returns_id_and_code(self):
        response = self._create(self.alice)

        self.assertEqual(response.status_code, 201)
        payload = response.get_json()
        self.assertEqual(set(payload), {"fridgeId", "inviteCode"})
        self.assertRegex(payload["inviteCode"], r"^[A-Z0-9]{6}$")

    def test_join_failures(self):
        code = self._create(self.alice).get_json()["inviteCode"]

        missing = self.client.post(
            "/fridges/join",
            json={"inviteCode": "NOPE00"},
            headers=self.as_user(self.bob),
        )
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.get_json()["code"], "INVITE_NOT_FOUND")

        invalid = self.client.post(
            "/fridges/join", json={}, headers=self.as_user(self.bob)
        )
        self.assertEqual(invalid.status_code, 400)

        not_object = self.client.post(
            "/fridges/join", json=code, headers=self.as_user(self.bob)
        )
        self.assertEqual(not_object.status_code, 400)
        self.assertEqual(
            not_object.get_json()["details"], {"body": "must be a JSON object"}
        )

        duplicate = self.client.post(
            "/fridges/join",
            json={"inviteCode": code},
            headers=self.as_user(self.alice),
        )
        self.assertEqual(duplicate.status_code, 409)
        self.assertEqual(duplicate.get_json()["code"], "ALREADY_IN_FRIDGE")

    def test_leave_without_fridge(self):
        response = self.client.post(
            "/fridges/leave", headers=self.as_user(self.alice)
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["code"], "NO_ACTIVE_FRIDGE")

    def test_leave_unknown_user(self):
        response = self.client.post(
            "/fridges/leave", headers=self.as_user("someone-else")
        )

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["code"], "USER_NOT_FOUND")

    def test_me_returns_fridge_object(self):
        created = self._create(self.alice).get_json()

        response = self.client.get("/fridges/me", headers=self.as_user(self.alice))

        self.assertEqual(response.status_code, 200)
        payload = response.get_json()
        self.assertEqual(payload["id"], created["fridgeId"])
        self.assertEqual(payload["name"], "Kitchen")
        self.assertEqual(payload["inviteCode"], created["inviteCode"])
        self.assertEqual(
            [member["userId"] for member in payload["members"]],
            [str(self.alice)],
        )
        self.assertIsNotNone(payload["members"][0]["joinedAt"])

    def test_members_are_paginated(self):
        code = self._create(self.alice).get_json()["inviteCode"]
        self.client.post(
            "/fridges/join",
            json={"inviteCode": code},
            headers=self.as_user(self.bob),
        )

        response = self.client.get(
            "/fridges/me/members?page=2&limit=1",
            headers=self.as_user(self.alice),
        )

        self.assertEqual(
            response.get_json(),
            {
                "items": [
                    {"userId": str(self.bob), "displayName": "Bob", "photoUrl": None}
                ],
                "total": 2,
                "page": 2,
                "limit": 1,
            },
        )

    def test_end_to_end_membership_scenario(self):
        with mock.patch(
            "fridgeshare_backend.services.fridges.generate_invite_code",
            return_value="XJ4K9P",
        ):
            created = self._create(self.alice)
        self.assertEqual(created.get_json()["inviteCode"], "XJ4K9P")

        joined = self.client.post(
            "/fridges/join",
            json={"inviteCode": "XJ4K9P"},
            headers=self.as_user(self.bob),
        )
        self.assertEqual(joined.status_code, 200)
        self.assertEqual(
            joined.get_json()["fridgeId"], created.get_json()["fridgeId"]
        )

        for caller in (self.alice, self.bob):
            members = self.client.get(
                "/fridges/me/members", headers=self.as_user(caller)
            ).get_json()
            self.assertEqual(
                [item["userId"] for item in members["items"]],
                [str(self.alice), str(self.bob)],
            )
            self.assertEqual(members["total"], 2)
            self.assertEqual(members["items"][0]["displayName"], "Alice")
            self.assertEqual(
                members["items"][0]["photoUrl"], "https://img.test/a.png"
            )

        left = self.client.post("/fridges/leave", headers=self.as_user(self.bob))
        self.assertEqual(left.status_code, 200)
        self.assertEqual(left.get_json(), {"ok": True})

        members = self.client.get(
            "/fridges/me/members", headers=self.as_user(self.alice)
        ).get_json()
        self.assertEqual(
            [item["userId"] for item in members["items"]], [str(self.alice)]
        )

        mine = self.client.get("/fridges/me", headers=self.as_user(self.bob))
        self.assertEqual(mine.status_code, 404)
        self.assertEqual(mine.get_json()["code"], "NO_ACTIVE_FRIDGE")

    def test_unexpected_errors_become_500(self):
        with mock.patch(
            "fridgeshare_backend.api.fridges.get_my_fridge",
            side_effect=KeyError("boom"),
        ):
            response = self.client.get(
                "/fridges/me", headers=self.as_user(self.alice)
            )

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.get_json()["code"], "INTERNAL_ERROR")


class RejectSwitchPolicyApiTests(ApiTestCase):
    app_config = {"AUTH_MODE": "header", "FRIDGE_SWITCH_POLICY": "reject"}

    def test_join_while_in_another_fridge_is_conflict(self):
        alice = self.make_user("Alice")
        bob = self.make_user("Bob")
        code = self.client.post(
            "/fridges", json={"name": "Kitchen"}, headers=self.as_user(alice)
        ).get_json()["inviteCode"]
        self.client.post(
            "/fridges", json={"name": "Garage"}, headers=self.as_user(bob)
        )

        response = self.client.post(
            "/fridges/join",
            json={"inviteCode": code},
            headers=self.as_user(bob),
        )

        self.assertEqual(response.status_code, 409)
        self.assertEqual(
            response.get_json()["code"], "ALREADY_IN_ANOTHER_FRIDGE"
        )
        mine = self.client.get("/fridges/me", headers=self.as_user(bob))
        self.assertEqual(mine.get_json()["name"], "Garage")


class DatabaseNotConfiguredTests(unittest.TestCase):
    def test_fridge_routes_report_unavailable(self):
        from fridgeshare_backend import create_app

        with mock.patch.dict("os.environ", {}, clear=True):
            app = create_app({"TESTING": True, "AUTH_MODE": "header"})
        response = app.test_client().get(
            "/fridges/me", headers={"x-user-id": str(uuid.uuid4())}
        )

        self.assertEqual(response.status_code, 503)


if __name__ == "__main__":
    unittest.main()
