import os
import unittest
from unittest import mock

from querygrid.core.config import QueryDefaults, resolve_defaults
from querygrid.core.errors import ArgumentError


class QueryDefaultsTests(unittest.TestCase):
    def test_builtin_values(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            defaults = QueryDefaults(_env_file=None)
        self.assertEqual(defaults.DEFAULT_PAGE, 1)
        self.assertEqual(defaults.DEFAULT_ROWS, 10)
        self.assertEqual(defaults.MAX_ROWS, 50)
        self.assertEqual(defaults.DEFAULT_SORT, [])
        self.assertTrue(defaults.SLICE_RESULTS)

    def test_environment_overrides(self):
        env = {
            "QUERYGRID_MAX_ROWS": "200",
            "QUERYGRID_DEFAULT_ROWS": "25",
            "QUERYGRID_DEFAULT_SORT": '[{"property": "last_name", "ascending": false}]',
            "QUERYGRID_SLICE_RESULTS": "false",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            defaults = QueryDefaults(_env_file=None)
        self.assertEqual(defaults.MAX_ROWS, 200)
        self.assertEqual(defaults.DEFAULT_ROWS, 25)
        self.assertEqual(defaults.DEFAULT_SORT[0].property_path, "last_name")
        self.assertFalse(defaults.DEFAULT_SORT[0].ascending)
        self.assertFalse(defaults.SLICE_RESULTS)

    def test_configure_accepts_lowercase_names(self):
        defaults = QueryDefaults.configure(max_rows=100, default_rows=20)
        self.assertEqual((defaults.MAX_ROWS, defaults.DEFAULT_ROWS), (100, 20))

    def test_invalid_limits_raise_argument_error(self):
        for overrides in (
            {"default_page": 0},
            {"max_rows": 0},
            {"default_rows": -1},
            {"default_rows": 60, "max_rows": 50},
            {"default_sort": [{"property": ""}]},
        ):
            with self.subTest(overrides=overrides):
                with self.assertRaises(ArgumentError):
                    QueryDefaults.configure(**overrides)

    def test_defaults_are_read_only(self):
        defaults = QueryDefaults.configure()
        with self.assertRaises(Exception):
            defaults.MAX_ROWS = 5

    def test_resolve_defaults_prefers_explicit_instance(self):
        defaults = QueryDefaults.configure(max_rows=70)
        self.assertIs(resolve_defaults(defaults), defaults)
        self.assertIsInstance(resolve_defaults(None), QueryDefaults)


if __name__ == "__main__":
    unittest.main()
