import unittest
from unittest.mock import patch
from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from pharmapos.config import Settings
from pharmapos.database.base import Base
from pharmapos.database.engine import build_engine
from pharmapos.dependencies import get_db
from pharmapos.main import app
from pharmapos.models.drug import Drug
from pharmapos.models.user import UserRole
from pharmapos.services import inventory_service, user_service

FAST_SETTINGS = Settings(PASSWORD_PBKDF2_ROUNDS=1000)
PASSWORD = "pharmacy-pass"


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.engine = build_engine("sqlite://")
        Base.metadata.create_all(bind=self.engine)
        self.Session = sessionmaker(bind=self.engine, expire_on_commit=False)

        def override_get_db():
            db = self.Session()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(app)

        with self.Session() as db:
            self.admin = user_service.create_user(
                db, "Admin", "admin@pharmacy.test", PASSWORD, UserRole.ADMIN, settings=FAST_SETTINGS
            )
            self.clerk = user_service.create_user(
                db, "Clerk", "clerk@pharmacy.test", PASSWORD, UserRole.SALES, settings=FAST_SETTINGS
            )

    def tearDown(self):
        self.client.close()
        app.dependency_overrides.clear()
        self.engine.dispose()

    def _token_headers(self, email):
        response = TestClient(app).post("/auth/token", json={"email": email, "password": PASSWORD})
        self.assertEqual(response.status_code, 200, response.text)
        return {"Authorization": f"Bearer {response.json()['accessToken']}"}

    @property
    def admin_headers(self):
        return self._token_headers("admin@pharmacy.test")

    @property
    def clerk_headers(self):
        return self._token_headers("clerk@pharmacy.test")

    def _add_drug(self, name, price, quantity):
        with self.Session() as db:
            drug = Drug(name=name, price=Decimal(price), quantity=quantity)
            db.add(drug)
            db.commit()
            return drug.id


class AuthApiTest(ApiTestCase):
    def test_health_is_public(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")

    def test_api_caller_without_credentials_gets_401(self):
        response = self.client.get("/drugs")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["code"], "unauthorized")

    def test_browser_without_session_is_sent_to_login(self):
        response = self.client.get(
            "/drugs", headers={"Accept": "text/html"}, follow_redirects=False
        )
        self.assertEqual(response.status_code, 303)
        self.assertEqual(response.headers["location"], "/login?callbackUrl=%2Fdrugs")

    def test_login_page_renders(self):
        response = self.client.get("/login?callbackUrl=/sales")
        self.assertEqual(response.status_code, 200)
        self.assertIn('value="/sales"', response.text)

    def test_form_login_sets_session(self):
        response = self.client.post(
            "/login",
            data={"email": "clerk@pharmacy.test", "password": PASSWORD, "callbackUrl": "/drugs"},
            follow_redirects=False,
        )
        self.assertEqual(response.status_code, 303)
        self.assertEqual(response.headers["location"], "/drugs")

        me = self.client.get("/auth/me")
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["email"], "clerk@pharmacy.test")

        self.client.post("/logout", follow_redirects=False)
        self.assertEqual(self.client.get("/auth/me").status_code, 401)

    def test_form_login_failure(self):
        response = self.client.post(
            "/login",
            data={"email": "clerk@pharmacy.test", "password": "wrong-password"},
            follow_redirects=False,
        )
        self.assertEqual(response.status_code, 401)
        self.assertIn("Invalid email or password.", response.text)

    def test_token_login_failure(self):
        response = self.client.post(
            "/auth/token", json={"email": "nobody@pharmacy.test", "password": PASSWORD}
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["code"], "invalid_credentials")

    def test_token_response(self):
        response = self.client.post(
            "/auth/token", json={"email": "admin@pharmacy.test", "password": PASSWORD}
        )
        body = response.json()
        self.assertEqual(body["tokenType"], "bearer")
        self.assertEqual(body["user"]["role"], "ADMIN")
        self.assertNotIn("passwordHash", body["user"])


class DrugApiTest(ApiTestCase):
    def test_admin_manages_drugs(self):
        created = self.client.post(
            "/drugs",
            json={"name": "Paracetamol", "price": 5.5, "quantity": 8, "expiryDate": "2099-01-01"},
            headers=self.admin_headers,
        )
        self.assertEqual(created.status_code, 201, created.text)
        drug = created.json()
        self.assertEqual(drug["price"], 5.5)
        self.assertTrue(drug["lowStock"])
        self.assertFalse(drug["outOfStock"])

        updated = self.client.put(
            f"/drugs/{drug['id']}", json={"quantity": 0}, headers=self.admin_headers
        )
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(updated.json()["name"], "Paracetamol")
        self.assertTrue(updated.json()["outOfStock"])

        deleted = self.client.delete(f"/drugs/{drug['id']}", headers=self.admin_headers)
        self.assertEqual(deleted.status_code, 200)
        self.assertTrue(deleted.json()["success"])

        missing = self.client.get(f"/drugs/{drug['id']}", headers=self.admin_headers)
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.json()["code"], "not_found")

    def test_sales_role_reads_but_cannot_write(self):
        drug_id = self._add_drug("Aspirin", "1.00", 5)
        headers = self.clerk_headers

        listing = self.client.get("/drugs?search=asp", headers=headers)
        self.assertEqual(listing.status_code, 200)
        self.assertEqual([row["id"] for row in listing.json()], [drug_id])

        for method, path in (("post", "/drugs"), ("put", f"/drugs/{drug_id}"), ("delete", f"/drugs/{drug_id}")):
            with self.subTest(method=method):
                kwargs = {"headers": headers}
                if method != "delete":
                    kwargs["json"] = {"name": "X", "price": 1}
                response = getattr(self.client, method)(path, **kwargs)
                self.assertEqual(response.status_code, 403)

    def test_invalid_drug_payload(self):
        headers = self.admin_headers
        for payload in (
            {"price": 1},
            {"name": "X", "price": -1},
            {"name": "X", "price": 1, "quantity": -3},
            {"name": "X", "price": 1, "quantity": 1.5},
            {"name": "X", "price": 1, "unknownField": True},
        ):
            with self.subTest(payload=payload):
                response = self.client.post("/drugs", json=payload, headers=headers)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.json()["code"], "invalid_input")

    def test_update_rejects_null_name(self):
        drug_id = self._add_drug("Aspirin", "1.00", 5)
        response = self.client.put(f"/drugs/{drug_id}", json={"name": None}, headers=self.admin_headers)
        self.assertEqual(response.status_code, 400)


class SaleApiTest(ApiTestCase):
    def test_clerk_records_sale(self):
        drug_a = self._add_drug("Drug A", "10.00", 5)
        drug_b = self._add_drug("Drug B", "4.50", 2)
        headers = self.clerk_headers

        response = self.client.post(
            "/sales",
            json={"items": [{"drugId": drug_a, "quantity": 3}, {"drugId": drug_b, "quantity": 2}]},
            headers=headers,
        )
        self.assertEqual(response.status_code, 201, response.text)
        sale = response.json()
        self.assertEqual(sale["total"], 39.0)
        self.assertEqual([item["subtotal"] for item in sale["items"]], [30.0, 9.0])
        self.assertEqual(sale["items"][0]["drugName"], "Drug A")

        stock = {row["id"]: row["quantity"] for row in self.client.get("/drugs", headers=headers).json()}
        self.assertEqual(stock, {drug_a: 2, drug_b: 0})

        fetched = self.client.get(f"/sales/{sale['id']}", headers=headers)
        self.assertEqual(fetched.json()["total"], 39.0)
        self.assertEqual(len(self.client.get("/sales", headers=headers).json()), 1)

    def test_insufficient_stock_body(self):
        drug_id = self._add_drug("Insulin", "25.00", 2)
        response = self.client.post(
            "/sales",
            json={"items": [{"drugId": drug_id, "quantity": 3}]},
            headers=self.clerk_headers,
        )
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertEqual(body["code"], "insufficient_stock")
        self.assertEqual(body["details"]["available"], 2)
        self.assertEqual(body["details"]["requested"], 3)

    def test_rejected_sales(self):
        drug_id = self._add_drug("Zinc", "1.00", 5)
        headers = self.clerk_headers
        cases = [
            ({"items": []}, 400),
            ({"items": [{"drugId": 999, "quantity": 1}]}, 404),
            ({"items": [{"drugId": drug_id, "quantity": 0}]}, 400),
            ({"items": [{"drugId": drug_id, "quantity": 1.5}]}, 400),
        ]
        for payload, status_code in cases:
            with self.subTest(payload=payload):
                response = self.client.post("/sales", json=payload, headers=headers)
                self.assertEqual(response.status_code, status_code, response.text)
        self.assertEqual(self.client.get("/sales", headers=headers).json(), [])

    def test_missing_sale(self):
        response = self.client.get("/sales/77", headers=self.clerk_headers)
        self.assertEqual(response.status_code, 404)


class AnalyticsApiTest(ApiTestCase):
    def test_admin_sees_analytics(self):
        drug_id = self._add_drug("Drug A", "10.00", 5)
        self.client.post(
            "/sales", json={"items": [{"drugId": drug_id, "quantity": 2}]}, headers=self.clerk_headers
        )

        response = self.client.get("/analytics?period=24h", headers=self.admin_headers)
        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        self.assertEqual(body["totalRevenue"], 20.0)
        self.assertEqual(body["totalDrugsSold"], 2)
        self.assertEqual(body["salesCount"], 1)
        self.assertEqual(body["topSellingDrugs"][0]["name"], "Drug A")

    def test_analytics_bad_period(self):
        response = self.client.get("/analytics?period=forever", headers=self.admin_headers)
        self.assertEqual(response.status_code, 400)
        response = self.client.get("/analytics?period=custom&startDate=2025-01-01", headers=self.admin_headers)
        self.assertEqual(response.status_code, 400)

    def test_sales_role_denied_analytics(self):
        response = self.client.get("/analytics", headers=self.clerk_headers)
        self.assertEqual(response.status_code, 403)

    def test_quick_stats_for_any_user(self):
        self._add_drug("Drug A", "10.00", 5)
        response = self.client.get("/quick-stats", headers=self.clerk_headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(), {"totalDrugs": 1, "salesToday": 0, "revenueToday": 0.0}
        )


class UserApiTest(ApiTestCase):
    def test_admin_creates_and_promotes_user(self):
        headers = self.admin_headers
        created = self.client.post(
            "/users",
            json={"name": "New Clerk", "email": "new@pharmacy.test", "password": "long-enough"},
            headers=headers,
        )
        self.assertEqual(created.status_code, 201, created.text)
        self.assertEqual(created.json()["role"], "SALES")

        duplicate = self.client.post(
            "/users",
            json={"name": "Again", "email": "new@pharmacy.test", "password": "long-enough"},
            headers=headers,
        )
        self.assertEqual(duplicate.status_code, 409)

        promoted = self.client.put(
            "/users", json={"userId": created.json()["id"], "role": "ADMIN"}, headers=headers
        )
        self.assertEqual(promoted.status_code, 200)
        self.assertEqual(promoted.json()["role"], "ADMIN")

        emails = {user["email"] for user in self.client.get("/users", headers=headers).json()}
        self.assertEqual(emails, {"admin@pharmacy.test", "clerk@pharmacy.test", "new@pharmacy.test"})

    def test_non_admin_gets_401_on_users(self):
        headers = self.clerk_headers
        self.assertEqual(self.client.get("/users", headers=headers).status_code, 401)
        response = self.client.put(
            "/users", json={"userId": self.clerk.id, "role": "ADMIN"}, headers=headers
        )
        self.assertEqual(response.status_code, 401)


class ErrorResponseTest(ApiTestCase):
    def test_out_of_range_numbers_get_structured_errors(self):
        headers = self.admin_headers
        drug_id = self._add_drug("Gauze", "1.00", 5)
        cases = [
            ("post", "/sales", {"items": [{"drugId": 10**20, "quantity": 1}]}, 404),
            ("post", "/sales", {"items": [{"drugId": drug_id, "quantity": 10**20}]}, 400),
            ("get", f"/drugs/{10**20}", None, 404),
            ("get", f"/sales/{10**20}", None, 404),
            ("post", "/drugs", {"name": "X", "price": 1, "quantity": 10**20}, 400),
            ("put", f"/drugs/{drug_id}", {"quantity": 10**20}, 400),
            ("put", "/users", {"userId": 10**20, "role": "ADMIN"}, 404),
        ]
        for method, path, payload, status_code in cases:
            with self.subTest(method=method, path=path):
                kwargs = {"headers": headers}
                if payload is not None:
                    kwargs["json"] = payload
                response = getattr(self.client, method)(path, **kwargs)
                self.assertEqual(response.status_code, status_code, response.text)
                self.assertEqual(response.headers["content-type"], "application/json")
                self.assertIn("code", response.json())

        with self.Session() as db:
            self.assertEqual(db.get(Drug, drug_id).quantity, 5)

    def test_unexpected_exception_is_generic_json(self):
        client = TestClient(app, raise_server_exceptions=False)
        headers = self.admin_headers
        with patch.object(inventory_service, "list_drugs", side_effect=RuntimeError("disk on fire")):
            response = client.get("/drugs", headers=headers)

        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.json(), {"error": "An internal error occurred.", "code": "internal_error"}
        )
        self.assertNotIn("disk on fire", response.text)

    def test_request_id_is_echoed(self):
        response = self.client.get("/health", headers={"X-Request-ID": "till-7"})
        self.assertEqual(response.headers["X-Request-ID"], "till-7")
        self.assertTrue(self.client.get("/health").headers["X-Request-ID"])


if __name__ == "__main__":
    unittest.main()
