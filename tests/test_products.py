import unittest
from dataclasses import replace

from _workbooks import AUDIT_LOG, USERS, WorkbookFixture

from stockboard.config import Thresholds
from stockboard.errors import StoreError, ValidationError
from stockboard.products import export_products_csv, list_products, qty_level


HEADER = ["SKU", "BRAND", "SERIES", "MODEL", "SELL", "SALES", "QTY", "MARKET", "Active", "NOTE"]


class QtyLevelTests(unittest.TestCase):
    def test_thresholds(self):
        t = Thresholds()
        self.assertEqual(qty_level(10, t), "in")
        self.assertEqual(qty_level(250, t), "in")
        self.assertEqual(qty_level(9.5, t), "low")
        self.assertEqual(qty_level(3, t), "low")
        self.assertEqual(qty_level(2, t), "out")
        self.assertEqual(qty_level(-1, t), "out")
        self.assertEqual(qty_level(None, t), "out")


class ListProductsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.fx = WorkbookFixture(
            {
                "CPU": [
                    ["SKU", "QTY", "Active"],
                    ["A1", "۵", ""],
                ],
                "RAM": [
                    HEADER,
                    ["R1", "Kingston", "Fury", "Beast 16GB", 90, 100, 12, 95, "yes", "fast"],
                    ["R2", "Corsair", "Vengeance", "LPX 8GB", None, "۴۵", "2", None, True, ""],
                    ["R3", "Kingston", "Value", "8GB", None, None, None, 40, "", None],
                    ["R4", "Hidden", "X", "Y", None, 10, 5, 10, "no", None],
                    ["  ", "NoSku", "", "", None, 1, 1, 1, "", None],
                    ["R5", "ADATA", "XPG", "Gammix", None, "20", "۱۵", 25, None, None],
                ],
            },
            board={
                "USERS": USERS,
                "PREFS_FAV": [
                    ["EMAIL", "SKU", "FAVORITE"],
                    ["ED@example.com", "R2 ", "TRUE"],
                    ["ed@example.com", "R3", "no"],
                    ["someone@example.com", "R1", "yes"],
                ],
                "AUDIT_LOG": AUDIT_LOG,
            },
        )

    def tearDown(self) -> None:
        self.fx.cleanup()

    def _list(self, tab="RAM", options=None, email="ed@example.com"):
        return list_products(self.fx.store, self.fx.settings, email, tab, options)

    def test_tab_is_echoed_as_given(self):
        result = self._list(" CPU ", {})
        self.assertEqual(result["tab"], " CPU ")
        self.assertEqual(result["count"], 1)

    def test_cpu_scenario(self):
        result = self._list("CPU", {})
        self.assertEqual(result["tab"], "CPU")
        self.assertEqual(result["count"], 1)
        product = result["products"][0]
        self.assertEqual(product["sku"], "A1")
        self.assertEqual(product["qty"], 5)
        self.assertEqual(product["qtyLevel"], "low")
        self.assertFalse(product["favorite"])

    def test_unfiltered_returns_active_rows_with_sku(self):
        plain = self._list(options={"search": "", "onlyFavorites": False})
        self.assertEqual([p["sku"] for p in plain["products"]], ["R1", "R2", "R3", "R5"])
        self.assertEqual(plain["count"], 4)
        sorted_desc = self._list(options={"search": "", "onlyFavorites": False, "sort": {"field": "brand", "direction": "desc"}})
        self.assertEqual(sorted(p["sku"] for p in sorted_desc["products"]), ["R1", "R2", "R3", "R5"])

    def test_alias_priority_and_numeric_parsing(self):
        by_sku = {p["sku"]: p for p in self._list()["products"]}
        self.assertEqual(by_sku["R1"]["salesPrice"], 100)
        self.assertEqual(by_sku["R2"]["salesPrice"], 45)
        self.assertIsNone(by_sku["R3"]["salesPrice"])
        self.assertIsNone(by_sku["R3"]["qty"])
        self.assertEqual(by_sku["R3"]["qtyLevel"], "out")
        self.assertEqual(by_sku["R5"]["qty"], 15)
        self.assertEqual(by_sku["R5"]["qtyLevel"], "in")
        self.assertEqual(by_sku["R1"]["note"], "fast")
        self.assertEqual(by_sku["R1"]["guarantee"], "")

    def test_favorites_are_per_user_and_case_insensitive(self):
        by_sku = {p["sku"]: p["favorite"] for p in self._list()["products"]}
        self.assertEqual(by_sku, {"R1": False, "R2": True, "R3": False, "R5": False})
        only = self._list(options={"onlyFavorites": True})
        self.assertEqual([p["sku"] for p in only["products"]], ["R2"])

    def test_search_matches_any_text_field(self):
        self.assertEqual([p["sku"] for p in self._list(options={"search": "kingston"})["products"]], ["R1", "R3"])
        self.assertEqual([p["sku"] for p in self._list(options={"search": "LPX"})["products"]], ["R2"])
        self.assertEqual([p["sku"] for p in self._list(options={"search": "r5"})["products"]], ["R5"])
        self.assertEqual(self._list(options={"search": "nothing-here"})["count"], 0)

    def test_numeric_sort_puts_missing_last_both_directions(self):
        asc = self._list(options={"sort": {"field": "salesPrice"}})
        self.assertEqual([p["sku"] for p in asc["products"]], ["R5", "R2", "R1", "R3"])
        desc = self._list(options={"sort": {"field": "salesPrice", "direction": "desc"}})
        self.assertEqual([p["sku"] for p in desc["products"]], ["R1", "R2", "R5", "R3"])

    def test_text_sort_is_case_insensitive_and_stable(self):
        asc = self._list(options={"sort": {"field": "brand", "direction": "asc"}})
        self.assertEqual([p["sku"] for p in asc["products"]], ["R5", "R2", "R1", "R3"])

    def test_unknown_sort_field_keeps_sheet_order(self):
        result = self._list(options={"sort": {"field": "colour"}})
        self.assertEqual([p["sku"] for p in result["products"]], ["R1", "R2", "R3", "R5"])

    def test_unreadable_favorites_degrade_to_empty(self):
        settings = replace(self.fx.settings, favorites_table="MISSING")
        result = list_products(self.fx.store, settings, "ed@example.com", "RAM", {"onlyFavorites": True})
        self.assertEqual(result["count"], 0)
        everything = list_products(self.fx.store, settings, "ed@example.com", "RAM", {})
        self.assertEqual(everything["count"], 4)

    def test_validation_and_missing_table(self):
        with self.assertRaises(ValidationError):
            self._list(tab="")
        with self.assertRaises(StoreError):
            self._list(tab="GPU")

    def test_export_csv_uses_same_filters(self):
        text = export_products_csv(self.fx.store, self.fx.settings, "ed@example.com", "RAM", {"search": "kingston"})
        lines = text.strip().splitlines()
        self.assertTrue(lines[0].startswith("sku,brand,series,model,salesPrice,qty"))
        self.assertEqual(len(lines), 3)


if __name__ == "__main__":
    unittest.main()
