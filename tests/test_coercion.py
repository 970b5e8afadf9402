import unittest
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import JSON, DateTime

from querygrid.core.errors import SchemaError, ValueParseError
from querygrid.services.coercion import coerce_literal, coerce_value
from querygrid.services.operands import ValueKind
from querygrid.services.resolver import resolve_property
from tests.base import Employee, Level


class LiteralCoercionTests(unittest.TestCase):
    def test_integers_parse_within_their_range(self):
        self.assertEqual(coerce_literal(ValueKind.INT32, "2500"), 2500)
        self.assertEqual(coerce_literal(ValueKind.INT32, " -7 "), -7)
        self.assertEqual(coerce_literal(ValueKind.INT64, "10000000000"), 10_000_000_000)

    def test_int32_overflow_is_rejected(self):
        with self.assertRaises(ValueParseError):
            coerce_literal(ValueKind.INT32, "2147483648")
        self.assertEqual(coerce_literal(ValueKind.INT64, "2147483648"), 2_147_483_648)

    def test_non_numeric_literal_reports_type_and_value(self):
        with self.assertRaises(ValueParseError) as ctx:
            coerce_literal(int, "abc")
        self.assertEqual(ctx.exception.message, 'Value "abc" cannot be parsed to type int64.')
        self.assertEqual(ctx.exception.literal, "abc")

    def test_fractional_literal_is_not_an_integer(self):
        with self.assertRaises(ValueParseError):
            coerce_literal(ValueKind.INT32, "2.5")

    def test_floats_and_decimals(self):
        self.assertAlmostEqual(coerce_literal(float, "3.14"), 3.14)
        self.assertEqual(coerce_literal(float, "1e3"), 1000.0)
        self.assertEqual(coerce_literal(Decimal, "99.50"), Decimal("99.50"))
        with self.assertRaises(ValueParseError):
            coerce_literal(float, "inf")
        with self.assertRaises(ValueParseError):
            coerce_literal(Decimal, "3,14")

    def test_booleans_accept_only_true_and_false(self):
        self.assertTrue(coerce_literal(bool, "true"))
        self.assertTrue(coerce_literal(bool, "TRUE"))
        self.assertFalse(coerce_literal(bool, "False"))
        with self.assertRaises(ValueParseError):
            coerce_literal(bool, "1")
        with self.assertRaises(ValueParseError):
            coerce_literal(bool, "yes")

    def test_strings_are_kept_verbatim(self):
        self.assertEqual(coerce_literal(str, "  Jo  "), "  Jo  ")

    def test_dates_accept_iso_date_and_datetime(self):
        self.assertEqual(coerce_literal(date, "2026-02-26"), date(2026, 2, 26))
        self.assertEqual(coerce_literal(date, "2026-02-26T13:45:00+03:00"), date(2026, 2, 26))
        with self.assertRaises(ValueParseError):
            coerce_literal(date, "26.02.2026")

    def test_date_only_literal_for_timestamp_is_midnight(self):
        self.assertEqual(coerce_literal(datetime, "2026-02-26"), datetime(2026, 2, 26, 0, 0, 0))

    def test_aware_literal_for_naive_column_is_converted_to_utc(self):
        value = coerce_literal(ValueKind.DATETIME, "2026-02-26T10:15:00+03:00", DateTime(timezone=False))
        self.assertEqual(value, datetime(2026, 2, 26, 7, 15, 0))
        self.assertIsNone(value.tzinfo)

    def test_naive_literal_for_aware_column_is_assumed_utc(self):
        value = coerce_literal(ValueKind.DATETIME, "2026-02-26T10:15:00", DateTime(timezone=True))
        self.assertEqual(value.tzinfo, timezone.utc)
        zulu = coerce_literal(ValueKind.DATETIME, "2026-02-26T10:15:00Z", DateTime(timezone=True))
        self.assertEqual(zulu, datetime(2026, 2, 26, 10, 15, tzinfo=timezone.utc))

    def test_enum_members_match_by_name_ignoring_case(self):
        self.assertIs(coerce_literal(Level, "senior"), Level.SENIOR)
        self.assertIs(coerce_literal(Level, "Junior"), Level.JUNIOR)
        with self.assertRaises(ValueParseError) as ctx:
            coerce_literal(Level, "intern")
        self.assertIn("Level", ctx.exception.message)

    def test_unsupported_target_type_raises_schema_error(self):
        with self.assertRaises(SchemaError):
            coerce_literal(JSON(), "{}")
        with self.assertRaises(SchemaError):
            coerce_literal(dict, "{}")


class PropertyCoercionTests(unittest.TestCase):
    def test_values_follow_the_resolved_column(self):
        self.assertEqual(coerce_value(resolve_property(Employee, "salary"), "2500"), 2500.0)
        self.assertEqual(coerce_value(resolve_property(Employee, "age"), "41"), 41)
        self.assertEqual(coerce_value(resolve_property(Employee, "bonus"), "100.50"), Decimal("100.50"))
        self.assertIs(coerce_value(resolve_property(Employee, "level"), "middle"), Level.MIDDLE)
        self.assertTrue(coerce_value(resolve_property(Employee, "is_active"), "true"))

    def test_naive_timestamp_column_drops_offset(self):
        value = coerce_value(resolve_property(Employee, "hired_at"), "2020-01-01T12:00:00+03:00")
        self.assertEqual(value, datetime(2020, 1, 1, 9, 0, 0))

    def test_bad_literal_for_column_raises_value_parse_error(self):
        with self.assertRaises(ValueParseError):
            coerce_value(resolve_property(Employee, "salary"), "a lot")


if __name__ == "__main__":
    unittest.main()
