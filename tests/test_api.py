import unittest
from unittest.mock import patch

import jwt
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from medstock.config import Settings
from medstock.database.base import Base
from medstock.dependencies import get_db
from medstock.main import app
from medstock.models import import_all_models

JWT_TEST_SECRET = "medstock-test-secret-0123456789abcdef"


class StockApiTest(unittest.TestCase):
    def setUp(self):
        import_all_models()
        engine = create_engine(
            "sqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(bind=engine)
        Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

        def override_get_db():
            db = Session()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def _init_p1(self):
        return self.client.post(
            "/pharmacy/init/P1",
            json={"medicines": [{"name": "Paracetamol", "qty": 15}]},
        )

    def test_root_and_health(self):
        self.assertEqual(self.client.get("/").json(), {"message": "API is running..."})
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")

    def test_init_once(self):
        response = self._init_p1()
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["stock"][0]["name"], "Paracetamol")
        self.assertEqual(body["stock"][0]["qty"], 15)

        again = self._init_p1().json()
        self.assertFalse(again["success"])
        self.assertEqual(again["message"], "Already initialized")

    def test_init_without_body(self):
        response = self.client.post("/pharmacy/init/P9")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["stock"], [])

    def test_get_stock_for_unknown_pharmacy(self):
        response = self.client.get("/pharmacy/stock/P404")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"success": True, "stock": []})

    def test_missing_pharmacy_id(self):
        response = self.client.post(
            "/pharmacy/reduce",
            json={"medicines": [{"name": "Paracetamol", "qty": 1}]},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json(),
            {"success": False, "message": "pharmacyId is required"},
        )

    def test_blank_pharmacy_id(self):
        response = self.client.post("/pharmacy/updatestock", json={"pharmacyId": " ", "stock": {}})
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()["success"])

    def test_reduce_unknown_pharmacy(self):
        response = self.client.post(
            "/pharmacy/reduce",
            json={"pharmacyId": "P404", "medicines": [{"name": "Paracetamol", "qty": 1}]},
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"success": False, "message": "Stock not found"})

    def test_update_stock_coerces_values(self):
        self._init_p1()
        response = self.client.post(
            "/pharmacy/updatestock",
            json={"pharmacyId": "P1", "stock": {"Paracetamol": "30", "Ibuprofen": "abc"}},
        )
        self.assertEqual(response.status_code, 200)
        stock = {item["name"]: item["qty"] for item in response.json()["stock"]}
        self.assertEqual(stock, {"Paracetamol": 30, "Ibuprofen": 0})

    def test_replenishment_flow(self):
        self._init_p1()
        response = self.client.post(
            "/pharmacy/reduce",
            json={"pharmacyId": "P1", "medicines": [{"name": "Paracetamol", "qty": 6}]},
        )
        self.assertEqual(response.json()["stock"][0]["qty"], 9)

        alerts = self.client.get("/pharmacy/alerts/P1").json()["alerts"]
        self.assertEqual(len(alerts), 1)
        self.assertEqual(alerts[0]["message"], "Low stock alert: Paracetamol only 9 left")
        self.assertEqual(alerts[0]["pharmacyId"], "P1")
        self.assertEqual(alerts[0]["alertType"], "LOW_STOCK")

        requests = self.client.get("/admin/stockrequests", params={"pharmacyId": "P1"}).json()["requests"]
        self.assertEqual(len(requests), 1)
        self.assertEqual(requests[0]["requestedQty"], 50)
        self.assertEqual(requests[0]["status"], "requested")

        approved = self.client.post(
            "/admin/stockrequests/approve",
            json={"requestId": requests[0]["id"], "approvedQty": 40, "processedBy": "admin1"},
        )
        self.assertEqual(approved.status_code, 200)
        body = approved.json()
        self.assertEqual(body["message"], "Request approved")
        self.assertEqual(body["request"]["status"], "approved")
        self.assertEqual(body["request"]["processedBy"], "admin1")
        self.assertEqual(body["stock"][0]["qty"], 49)

        again = self.client.post(
            "/admin/stockrequests/approve",
            json={"requestId": requests[0]["id"]},
        )
        self.assertEqual(again.status_code, 400)
        self.assertEqual(again.json()["message"], "Request already processed")

    def test_reject_flow(self):
        self._init_p1()
        self.client.post(
            "/pharmacy/reduce",
            json={"pharmacyId": "P1", "medicines": [{"name": "Paracetamol", "qty": 10}]},
        )
        request_id = self.client.get("/admin/stockrequests").json()["requests"][0]["id"]
        response = self.client.post(
            "/admin/stockrequests/reject",
            json={"requestId": request_id, "notes": "duplicate order"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["request"]["status"], "rejected")

        stock = self.client.get("/pharmacy/stock/P1").json()["stock"]
        self.assertEqual(stock[0]["qty"], 5)

    def test_unknown_request(self):
        response = self.client.post("/admin/stockrequests/reject", json={"requestId": 999})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["message"], "Request not found")

    def test_invalid_status_filter(self):
        response = self.client.get("/admin/stockrequests", params={"status": "pending"})
        self.assertEqual(response.status_code, 400)

    def test_mark_alerts_read(self):
        self._init_p1()
        self.client.post(
            "/pharmacy/increase",
            json={"pharmacyId": "P1", "medicines": [{"name": "Paracetamol", "qty": 5}]},
        )
        response = self.client.post("/pharmacy/alerts/P1/read")
        self.assertEqual(response.json(), {"success": True, "updated": 1})
        unread = self.client.get("/pharmacy/alerts/P1", params={"unreadOnly": "true"}).json()
        self.assertEqual(unread["alerts"], [])

    def test_policy_round_trip(self):
        self._init_p1()
        response = self.client.put(
            "/pharmacy/policy/P1",
            json={"lowStockThreshold": 20, "defaultRestockQty": 75},
        )
        self.assertEqual(
            response.json()["policy"],
            {"lowStockThreshold": 20, "defaultRestockQty": 75},
        )
        self.client.post(
            "/pharmacy/reduce",
            json={"pharmacyId": "P1", "medicines": [{"name": "Paracetamol", "qty": 1}]},
        )
        requests = self.client.get("/admin/stockrequests").json()["requests"]
        self.assertEqual(requests[0]["requestedQty"], 75)

    def test_admin_requires_key_when_configured(self):
        settings = Settings(API_KEYS="secret-key")
        with patch("medstock.core.security.get_settings", return_value=settings):
            denied = self.client.get("/admin/stockrequests")
            allowed = self.client.get("/admin/stockrequests", headers={"X-API-Key": "secret-key"})
        self.assertEqual(denied.status_code, 401)
        self.assertEqual(denied.json(), {"success": False, "message": "Not authenticated"})
        self.assertEqual(allowed.status_code, 200)

    def test_oversized_quantity_is_a_validation_error(self):
        self._init_p1()
        response = self.client.post(
            "/pharmacy/increase",
            json={"pharmacyId": "P1", "medicines": [{"name": "Paracetamol", "qty": 2**63 - 1}]},
        )
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()["success"])

        stock = self.client.get("/pharmacy/stock/P1").json()["stock"]
        self.assertEqual(stock[0]["qty"], 15)

    def test_jwt_subject_fills_processed_by(self):
        self._init_p1()
        self.client.post(
            "/pharmacy/reduce",
            json={"pharmacyId": "P1", "medicines": [{"name": "Paracetamol", "qty": 6}]},
        )
        settings = Settings(JWT_SECRET=JWT_TEST_SECRET)
        token = jwt.encode({"sub": "admin7"}, JWT_TEST_SECRET, algorithm="HS256")
        with patch("medstock.core.security.get_settings", return_value=settings):
            request_id = self.client.get(
                "/admin/stockrequests",
                headers={"Authorization": f"Bearer {token}"},
            ).json()["requests"][0]["id"]
            rejected = self.client.post(
                "/admin/stockrequests/reject",
                json={"requestId": request_id},
                headers={"Authorization": "Bearer not-a-token"},
            )
            approved = self.client.post(
                "/admin/stockrequests/approve",
                json={"requestId": request_id},
                headers={"Authorization": f"Bearer {token}"},
            )
        self.assertEqual(rejected.status_code, 401)
        self.assertEqual(rejected.json()["message"], "Invalid JWT")
        self.assertEqual(approved.status_code, 200)
        self.assertEqual(approved.json()["request"]["processedBy"], "admin7")

    def test_stock_sheet_import_is_not_served_over_http(self):
        response = self.client.post(
            "/pharmacy/importstock",
            json={"pharmacyId": "P1", "path": "/etc/stock.xlsx"},
        )
        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.json()["success"])


if __name__ == "__main__":
    unittest.main()
