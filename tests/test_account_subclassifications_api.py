import unittest
import uuid

from sqlalchemy import text

from tests.base import ApiTestBase

from app.core.config import settings

SUBCLASSIFICATIONS = f"{settings.API_PREFIX}/account-subclassifications"


class AccountSubclassificationsApiTests(ApiTestBase):
    def setUp(self):
        super().setUp()
        self.classification_id = str(uuid.uuid4())
        with self.SessionLocal() as db:
            db.execute(
                text(
                    "INSERT INTO account_classifications (id, code, name, created_at, updated_at)"
                    " VALUES (:id, '1000', 'Assets', CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)"
                ),
                {"id": self.classification_id},
            )
            db.commit()

    def _payload(self, code: str = "1100", **overrides) -> dict:
        payload = {
            "code": code,
            "name": "Cash",
            "cash_flow_type": "operating",
            "account_classification_id": self.classification_id,
        }
        payload.update(overrides)
        return payload

    def _create(self, code: str = "1100", **overrides) -> dict:
        response = self.client.post(SUBCLASSIFICATIONS, json=self._payload(code, **overrides), headers=self._auth_headers())
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def test_create_and_get(self):
        created = self._create(cash_flow_type="Investing")

        self.assertEqual(created["cash_flow_type"], "investing")
        self.assertTrue(created["is_active"])
        fetched = self.client.get(f"{SUBCLASSIFICATIONS}/{created['id']}", headers=self._auth_headers())
        self.assertEqual(fetched.json()["code"], "1100")

    def test_invalid_cash_flow_type_is_validation_error(self):
        response = self.client.post(
            SUBCLASSIFICATIONS, json=self._payload(cash_flow_type="sideways"), headers=self._auth_headers()
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "VALIDATION_ERROR")

    def test_length_bounds_are_validation_errors(self):
        for overrides in ({"code": "X" * 21}, {"name": ""}, {"name": "n" * 256}):
            response = self.client.post(SUBCLASSIFICATIONS, json=self._payload(**overrides), headers=self._auth_headers())
            self.assertEqual(response.status_code, 400, overrides)
            self.assertEqual(response.json()["error"], "VALIDATION_ERROR")

    def test_blank_code_is_generated(self):
        created = self._create(code="   ")
        self.assertEqual(created["code"], "C-00001")

    def test_parent_cannot_have_parent(self):
        parent = self._create("1000P", is_parent=True)

        response = self.client.post(
            SUBCLASSIFICATIONS,
            json=self._payload("1101", is_parent=True, parent_id=parent["id"]),
            headers=self._auth_headers(),
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json(),
            {
                "error": "BUSINESS_RULE_VIOLATION",
                "details": "A parent account subclassification cannot have a parent",
                "request_id": response.headers["x-request-id"],
            },
        )

    def test_child_may_reference_parent(self):
        parent = self._create("1000P", is_parent=True)
        child = self._create("1101", parent_id=parent["id"])
        self.assertEqual(child["parent_id"], parent["id"])

    def test_duplicate_code_is_conflict(self):
        self._create("1100")

        response = self.client.post(SUBCLASSIFICATIONS, json=self._payload("1100"), headers=self._auth_headers())

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["details"], "Account Subclassification with code '1100' already exists")

    def test_unknown_classification_is_business_rule(self):
        response = self.client.post(
            SUBCLASSIFICATIONS,
            json=self._payload(account_classification_id=str(uuid.uuid4())),
            headers=self._auth_headers(),
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "BUSINESS_RULE_VIOLATION")

    def test_soft_delete(self):
        created = self._create()
        item_url = f"{SUBCLASSIFICATIONS}/{created['id']}"

        response = self.client.delete(item_url, headers=self._auth_headers())

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {"success": True, "id": created["id"], "message": "Account subclassification deleted successfully"},
        )
        fetched = self.client.get(item_url, headers=self._auth_headers()).json()
        self.assertFalse(fetched["is_active"])
        self.assertEqual(self.client.delete(item_url, headers=self._auth_headers()).status_code, 404)

        active = self.client.get(
            SUBCLASSIFICATIONS, params={"filter": '{"is_active": true}'}, headers=self._auth_headers()
        ).json()
        self.assertEqual(active["count"], 0)

    def test_update_of_deleted_row_is_not_found(self):
        created = self._create()
        item_url = f"{SUBCLASSIFICATIONS}/{created['id']}"
        self.client.delete(item_url, headers=self._auth_headers())

        response = self.client.put(item_url, json={"name": "Petty cash"}, headers=self._auth_headers())

        self.assertEqual(response.status_code, 404)

    def test_sort_by_code(self):
        for code in ("1300", "1100", "1200"):
            self._create(code)

        response = self.client.get(
            SUBCLASSIFICATIONS, params={"sortBy": "code", "sortOrder": "asc"}, headers=self._auth_headers()
        )

        self.assertEqual([row["code"] for row in response.json()["results"]], ["1100", "1200", "1300"])


if __name__ == "__main__":
    unittest.main()
