import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from warehouse.config import Settings
from warehouse.core import security
from warehouse.core.security import create_access_token
from warehouse.database import read_only, session_scope
from warehouse.dependencies import get_db, get_read_db
from warehouse.main import app
from warehouse.models.user import ROLE_ADMIN, ROLE_STAFF

from tests.support import TEST_PASSWORD, add_user, make_engine, make_sessionmaker

TEST_SETTINGS = Settings(JWT_SECRET="test-secret", PASSWORD_PBKDF2_ROUNDS=1000, _env_file=None)


class ApiTest(unittest.TestCase):
    def setUp(self):
        self.engine = make_engine()
        self.Session = make_sessionmaker(self.engine)

        def override_get_db():
            with session_scope(self.Session) as db:
                yield db

        read_sessions = make_sessionmaker(read_only(self.engine))

        def override_get_read_db():
            with session_scope(read_sessions) as db:
                yield db

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_read_db] = override_get_read_db
        self.settings_patch = patch.object(security, "get_settings", return_value=TEST_SETTINGS)
        self.settings_patch.start()

        with self.Session() as db:
            admin = add_user(db, username="admin", role=ROLE_ADMIN)
            staff = add_user(db, username="gudang", role=ROLE_STAFF)
            self.admin_headers = self._auth(admin)
            self.staff_headers = self._auth(staff)

        self.client = TestClient(app)

    def tearDown(self):
        self.settings_patch.stop()
        app.dependency_overrides.clear()
        self.engine.dispose()

    @staticmethod
    def _auth(user):
        token = create_access_token(user.id, user.role, user.username)
        return {"Authorization": "Bearer {}".format(token)}

    def _create_item(self, name="Kertas A4"):
        response = self.client.post(
            "/api/barang",
            json={"name": name, "unit": "rim", "purchase_price": 100, "sale_price": 120},
            headers=self.admin_headers,
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def _purchase(self, item_id, qty, price=100):
        return self.client.post(
            "/api/pembelian",
            json={"supplier": "PT Sumber Makmur", "lines": [{"item_id": item_id, "quantity": qty, "unit_price": price}]},
            headers=self.staff_headers,
        )

    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["database"], "ok")

    def test_login(self):
        response = self.client.post(
            "/api/auth/login",
            json={"email": "admin@example.com", "password": TEST_PASSWORD},
        )
        self.assertEqual(response.status_code, 200, response.text)
        claims = security._decode_jwt(response.json()["token"])
        self.assertEqual(claims["role"], ROLE_ADMIN)

        response = self.client.post(
            "/api/auth/login",
            json={"email": "admin@example.com", "password": "salah123!"},
        )
        self.assertEqual(response.status_code, 401)

    def test_register_is_admin_only(self):
        payload = {
            "username": "kasir",
            "email": "kasir@example.com",
            "password": "kasir123!",
            "full_name": "Kasir Satu",
        }
        response = self.client.post("/api/auth/register", json=payload, headers=self.staff_headers)
        self.assertEqual(response.status_code, 403)

        response = self.client.post("/api/auth/register", json=payload, headers=self.admin_headers)
        self.assertEqual(response.status_code, 201, response.text)
        self.assertEqual(response.json()["role"], ROLE_STAFF)

    def test_requires_token(self):
        self.assertEqual(self.client.get("/api/stok").status_code, 401)
        self.assertEqual(
            self.client.get("/api/stok", headers={"Authorization": "Bearer nope"}).status_code,
            401,
        )

    def test_item_catalog(self):
        response = self.client.post(
            "/api/barang",
            json={"name": "Pulpen", "unit": "box", "purchase_price": 10, "sale_price": 12},
            headers=self.staff_headers,
        )
        self.assertEqual(response.status_code, 403)

        item = self._create_item()
        self.assertEqual(item["code"], "BRG{:03d}".format(item["id"]))
        self.assertEqual(item["stock"], 0)
        self.assertEqual(item["purchase_price"], 100.0)

        response = self.client.get("/api/barang", params={"search": "kertas"}, headers=self.staff_headers)
        body = response.json()
        self.assertEqual(body["meta"], {"page": 1, "limit": 10, "total": 1})
        self.assertEqual(body["data"][0]["name"], "Kertas A4")

        response = self.client.put(
            "/api/barang/{}".format(item["id"]),
            json={"sale_price": 0},
            headers=self.admin_headers,
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("sale_price", response.json()["detail"]["errors"])

        self.assertEqual(
            self.client.get("/api/barang/999", headers=self.staff_headers).status_code,
            404,
        )

    def test_purchase_then_sale_flow(self):
        item = self._create_item()

        response = self.client.post(
            "/api/pembelian",
            json={"counterparty": "PT Sumber Makmur", "details": [{"barang_id": item["id"], "qty": 4, "harga": 100}]},
            headers=self.staff_headers,
        )
        self.assertEqual(response.status_code, 201, response.text)
        purchase = response.json()
        self.assertEqual(purchase["header"]["total"], 400.0)
        self.assertEqual(purchase["header"]["document_number"], "PUR{:03d}".format(purchase["header"]["id"]))
        self.assertEqual(purchase["header"]["user"]["username"], "gudang")
        self.assertEqual(purchase["lines"][0]["item"]["code"], item["code"])

        response = self.client.post(
            "/api/penjualan",
            json={"customer": "Toko Sinar", "lines": [{"item_id": item["id"], "quantity": 6, "unit_price": 120}]},
            headers=self.staff_headers,
        )
        self.assertEqual(response.status_code, 409)
        detail = response.json()["detail"]
        self.assertEqual((detail["requested"], detail["available"], detail["shortfall"]), (6, 4, 2))

        response = self.client.post(
            "/api/penjualan",
            json={"customer": "Toko Sinar", "lines": [{"item_id": item["id"], "quantity": 4, "unit_price": 120}]},
            headers=self.staff_headers,
        )
        self.assertEqual(response.status_code, 201, response.text)
        self.assertTrue(response.json()["header"]["document_number"].startswith("SAL"))

        stock = self.client.get("/api/stok/{}".format(item["id"]), headers=self.staff_headers).json()
        self.assertEqual(stock["quantity"], 0)
        self.assertEqual(stock["item"]["sale_price"], 120.0)

        history = self.client.get("/api/history-stok/{}".format(item["id"]), headers=self.staff_headers).json()
        self.assertEqual(history["meta"]["total"], 2)
        self.assertEqual(
            [(row["kind"], row["balance_before"], row["balance_after"]) for row in history["data"]],
            [("outbound", 4, 0), ("inbound", 0, 4)],
        )

        listing = self.client.get("/api/penjualan", headers=self.staff_headers).json()
        self.assertEqual(listing["meta"]["total"], 1)

    def test_posting_errors(self):
        item = self._create_item()

        response = self.client.post(
            "/api/penjualan",
            json={"customer": "Toko Sinar", "lines": []},
            headers=self.staff_headers,
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("lines", response.json()["detail"]["errors"])

        self.assertEqual(self._purchase(999, 1).status_code, 404)
        self.assertEqual(self._purchase(item["id"], 0).status_code, 400)
        self.assertEqual(
            self.client.get("/api/pembelian/42", headers=self.staff_headers).status_code,
            404,
        )

    def test_delete_item_with_stock_is_refused(self):
        item = self._create_item()
        self.assertEqual(self._purchase(item["id"], 2).status_code, 201)

        response = self.client.delete("/api/barang/{}".format(item["id"]), headers=self.admin_headers)
        self.assertEqual(response.status_code, 409)

        unused = self._create_item(name="Pulpen")
        response = self.client.delete("/api/barang/{}".format(unused["id"]), headers=self.admin_headers)
        self.assertEqual(response.status_code, 204)


if __name__ == "__main__":
    unittest.main()
