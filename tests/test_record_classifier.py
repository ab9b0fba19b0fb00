import unittest

from fulfillment_engine.record_classifier import (
    StockType,
    infer_yard_stock_type,
    is_allowed_range,
    is_empty_slot,
    is_stock_customer,
    is_unsigned_order,
    model_range_code,
    stock_type_of,
)
from fulfillment_engine.records import CampervanOrderRecord, OrderRecord, YardStockEntry

ALLOWED = ["SRC", "SRH", "SRL", "SRP", "SRS", "SRT", "SRV", "NGC", "NGB"]


class TestStockClassification(unittest.TestCase):
    def test_stock_customer_suffix(self):
        self.assertTrue(is_stock_customer("ABC Motors Stock"))
        self.assertTrue(is_stock_customer("stock"))
        self.assertFalse(is_stock_customer("Stockton Smith"))
        self.assertFalse(is_stock_customer(None))

    def test_campervans_are_customer_orders(self):
        self.assertEqual(stock_type_of(CampervanOrderRecord(dealer="Frankston")), StockType.CUSTOMER)
        self.assertEqual(stock_type_of(OrderRecord(customer="Frankston Stock")), StockType.STOCK)

    def test_yard_type_prefers_matching_order(self):
        entry = YardStockEntry(chassis="SRC1", declared_type="Customer")
        order = OrderRecord(chassis="SRC1", customer="ABC Motors Stock")
        self.assertEqual(infer_yard_stock_type(entry, order), StockType.STOCK)

    def test_yard_type_falls_back_to_declared(self):
        self.assertEqual(infer_yard_stock_type(YardStockEntry("A", declared_type="Stock Unit")), StockType.STOCK)
        self.assertEqual(infer_yard_stock_type(YardStockEntry("A", declared_type="retail")), StockType.CUSTOMER)
        self.assertEqual(infer_yard_stock_type(YardStockEntry("A")), StockType.CUSTOMER)


class TestSlots(unittest.TestCase):
    def test_missing_chassis_key_is_empty_slot(self):
        slot = OrderRecord.from_mapping({"Dealer": "Green RV - Forest Glen"})
        self.assertIsNone(slot.chassis)
        self.assertTrue(is_empty_slot(slot))

    def test_blank_chassis_is_not_empty_slot(self):
        blank = OrderRecord.from_mapping({"Dealer": "Green RV - Forest Glen", "Chassis": ""})
        self.assertEqual(blank.chassis, "")
        self.assertFalse(is_empty_slot(blank))

    def test_slot_needs_dealer(self):
        self.assertFalse(is_empty_slot(OrderRecord.from_mapping({"Customer": "X"})))

    def test_unsigned_order(self):
        self.assertTrue(is_unsigned_order(OrderRecord(chassis="SRC1")))
        self.assertTrue(is_unsigned_order(OrderRecord(chassis="SRC1", signed_plans_received="No")))
        self.assertFalse(is_unsigned_order(OrderRecord(chassis="SRC1", signed_plans_received="Yes")))
        self.assertFalse(is_unsigned_order(OrderRecord(chassis=None)))


class TestModelRangeCode(unittest.TestCase):
    def test_model_then_chassis_then_unknown(self):
        self.assertEqual(model_range_code("src 19", "NGB001"), "SRC")
        self.assertEqual(model_range_code("", "ngb001"), "NGB")
        self.assertEqual(model_range_code("  ", None), "UNK")
        self.assertEqual(model_range_code(None, None, unknown="OTHER"), "OTHER")

    def test_allow_list(self):
        self.assertTrue(is_allowed_range("SRC", ALLOWED))
        self.assertFalse(is_allowed_range("XYZ", ALLOWED))
        self.assertFalse(is_allowed_range("UNK", ALLOWED))


if __name__ == "__main__":
    unittest.main()
