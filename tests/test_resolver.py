import unittest

from querygrid.core.errors import ArgumentError, SchemaError
from querygrid.services.operands import ValueKind
from querygrid.services.resolver import resolve_property, schema_for
from tests.base import Address, Company, Employee


class PropertyResolverTests(unittest.TestCase):
    def test_top_level_column(self):
        prop = resolve_property(Employee, "salary")
        self.assertIs(prop.entity, Employee)
        self.assertEqual(prop.path, "salary")
        self.assertEqual(prop.hops, ())
        self.assertIs(prop.kind, ValueKind.FLOAT)

    def test_nested_path_walks_relationships(self):
        prop = resolve_property(Employee, "company.address.street")
        self.assertEqual([hop.key for hop in prop.hops], ["company", "address"])
        self.assertIs(prop.hops[0].target, Company)
        self.assertIs(prop.hops[1].target, Address)
        self.assertEqual(prop.member.key, "street")
        self.assertIs(prop.kind, ValueKind.STRING)

    def test_camel_case_segments_fall_back_to_snake_case(self):
        self.assertEqual(resolve_property(Employee, "FirstName").member.key, "first_name")
        self.assertEqual(resolve_property(Employee, "firstName").member.key, "first_name")
        self.assertEqual(resolve_property(Employee, "Company.Name").member.key, "name")
        self.assertEqual(resolve_property(Employee, "Company.Address.Street").path, "Company.Address.Street")
        self.assertEqual(resolve_property(Employee, "Company.Address.Street").member.key, "street")

    def test_unknown_member_names_segment_and_owner(self):
        with self.assertRaises(SchemaError) as ctx:
            resolve_property(Employee, "company.missing")
        self.assertEqual(
            ctx.exception.message,
            "'missing' is not a valid property or field of type 'Company'.",
        )

    def test_cannot_continue_past_a_column(self):
        with self.assertRaises(SchemaError) as ctx:
            resolve_property(Employee, "first_name.length")
        self.assertIn("'length'", ctx.exception.message)

    def test_cannot_continue_through_a_collection(self):
        with self.assertRaises(SchemaError) as ctx:
            resolve_property(Company, "employees.first_name")
        self.assertIn("list[Employee]", ctx.exception.message)

    def test_empty_paths_are_argument_errors(self):
        for path in (None, "", "   ", "company..name", "company."):
            with self.subTest(path=path):
                with self.assertRaises(ArgumentError):
                    resolve_property(Employee, path)

    def test_unmapped_type_is_rejected(self):
        with self.assertRaises(ArgumentError):
            resolve_property(dict, "keys")

    def test_schema_is_built_once_per_entity(self):
        self.assertIs(schema_for(Employee), schema_for(Employee))
        self.assertIn("company", schema_for(Employee).members)


if __name__ == "__main__":
    unittest.main()
