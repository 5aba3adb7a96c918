import unittest

from fastapi.testclient import TestClient

from _workbooks import WorkbookFixture

from api.main import app, get_settings


class ApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.fx = WorkbookFixture(
            {
                "CPU": [
                    ["SKU", "BRAND", "SALES PRICE", "QTY", "NOTE"],
                    ["A1", "Intel", "۱۲۰", "۵", ""],
                    ["A2", "AMD", None, 30, ""],
                ]
            }
        )
        app.dependency_overrides[get_settings] = lambda: self.fx.settings
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        self.fx.cleanup()

    def _as(self, email: str):
        return {self.fx.settings.identity_header: email}

    def test_me_reads_identity_header(self):
        resp = self.client.get("/me", headers=self._as("ed@example.com"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"]["role"], "editor")
        anon = self.client.get("/me").json()
        self.assertEqual(anon["data"], {"email": "", "role": "viewer", "displayName": "", "avatar": ""})

    def test_list_products_with_sort(self):
        body = {"tab": "CPU", "options": {"search": "", "onlyFavorites": False, "sort": {"field": "salesPrice", "direction": "desc"}}}
        payload = self.client.post("/products", json=body, headers=self._as("ed@example.com")).json()
        self.assertTrue(payload["ok"])
        data = payload["data"]
        self.assertEqual(data["count"], 2)
        self.assertEqual([p["sku"] for p in data["products"]], ["A1", "A2"])
        self.assertEqual(data["products"][0]["salesPrice"], 120)
        self.assertIsNone(data["products"][1]["salesPrice"])
        self.assertEqual(data["products"][1]["qtyLevel"], "in")

    def test_missing_tab_is_failure_envelope(self):
        payload = self.client.post("/products", json={"tab": "GPU"}).json()
        self.assertFalse(payload["ok"])
        self.assertIn("missing table", payload["error"])

    def test_absent_tab_is_failure_envelope(self):
        resp = self.client.post("/products", json={})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"ok": False, "error": "tab is required"})

    def test_absent_sku_is_failure_envelope(self):
        resp = self.client.post("/products/update", json={"tab": "CPU"}, headers=self._as("ed@example.com"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"ok": False, "error": "tab and sku are required"})
        fav = self.client.post("/favorites", json={"favorite": True}, headers=self._as("ed@example.com"))
        self.assertEqual(fav.status_code, 200)
        self.assertEqual(fav.json(), {"ok": False, "error": "sku is required"})

    def test_sort_direction_is_case_insensitive(self):
        body = {"tab": "CPU", "options": {"sort": {"field": "qty", "direction": "DESC"}}}
        resp = self.client.post("/products", json=body)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([p["sku"] for p in resp.json()["data"]["products"]], ["A2", "A1"])

    def test_malformed_body_is_failure_envelope(self):
        body = {"tab": "CPU", "options": {"onlyFavorites": {"nested": 1}}}
        resp = self.client.post("/products", json=body)
        self.assertEqual(resp.status_code, 200)
        payload = resp.json()
        self.assertFalse(payload["ok"])
        self.assertTrue(payload["error"].startswith("invalid request: options.onlyFavorites"))

    def test_update_requires_editor(self):
        body = {"tab": "CPU", "sku": "A1", "qty": 7}
        denied = self.client.post("/products/update", json=body, headers=self._as("vi@example.com")).json()
        self.assertEqual(denied, {"ok": False, "error": "editor role required"})
        allowed = self.client.post("/products/update", json={**body, "salesPrice": "99"}, headers=self._as("ed@example.com")).json()
        self.assertTrue(allowed["ok"])
        self.assertEqual(sorted(allowed["data"]["updated"]), ["qty", "salesPrice"])

    def test_favorites_and_export(self):
        fav = self.client.post("/favorites", json={"sku": "A2", "favorite": "yes"}, headers=self._as("vi@example.com")).json()
        self.assertEqual(fav, {"ok": True, "data": {"sku": "A2", "favorite": True}})
        resp = self.client.get("/export/CPU", params={"onlyFavorites": "true"}, headers=self._as("vi@example.com"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.headers["content-type"].split(";")[0], "text/csv")
        lines = resp.text.strip().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[1].startswith("A2,AMD"))

    def test_categories_and_audit(self):
        cats = self.client.get("/categories").json()
        self.assertTrue(cats["ok"])
        self.assertEqual(cats["data"][0], {"tab": "CPU", "title": "CPU", "groupBy": ""})
        self.client.post("/favorites", json={"sku": "A1", "favorite": True}, headers=self._as("ed@example.com"))
        audit = self.client.get("/audit", params={"limit": 10}, headers=self._as("ada@example.com")).json()
        self.assertTrue(audit["ok"])
        self.assertEqual(audit["data"][0]["action"], "setFavorite")
        self.assertEqual(audit["data"][0]["actor"], "ed@example.com")


if __name__ == "__main__":
    unittest.main()
