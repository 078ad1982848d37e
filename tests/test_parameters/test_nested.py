"""
Tests for nested definitions and arrays of nested definitions.
"""

import pytest

from explicit_parameters import (
    DefinitionError,
    InvalidParameters,
    Parameters,
    ParserSettings,
    define,
)


@pytest.fixture
def person_definition():
    return define("person", lambda p: (
        p.requires("name", str),
        p.requires("address", block=lambda a: (
            a.requires("street", str),
            a.requires("city", str),
            a.accepts("zip", int),
        )),
    ))


@pytest.fixture
def customer_definition(address_definition):
    return define("customer", lambda p: (
        p.requires("name", str),
        p.requires("addresses", list, address_definition),
    ))


class TestNestedDefinition:
    """A single nested schema."""

    def test_nested_value_is_parameters(self, person_definition):
        params = person_definition.parse({
            "name": "George",
            "address": {"street": "Main St", "city": "Springfield", "zip": "12345"},
        })
        assert isinstance(params.address, Parameters)
        assert params.address.city == "Springfield"
        assert params.address.zip == 12345
        assert params.address["zip"] == "12345"

    def test_missing_nested_is_required(self, person_definition):
        with pytest.raises(InvalidParameters) as exc_info:
            person_definition.parse({"name": "George"})
        assert str(exc_info.value) == '{"errors":{"address":["is required"]}}'

    def test_nested_errors_keep_their_path(self, person_definition):
        with pytest.raises(InvalidParameters) as exc_info:
            person_definition.parse({
                "name": "George",
                "address": {"street": "Main St", "zip": "abc"},
            })
        assert exc_info.value.errors == {
            "address": {"city": ["is required"], "zip": ["is not a valid integer"]}
        }
        assert exc_info.value.report.flatten() == [
            ("address.city", "is required"),
            ("address.zip", "is not a valid integer"),
        ]

    def test_nested_must_be_a_mapping(self, person_definition):
        with pytest.raises(InvalidParameters) as exc_info:
            person_definition.parse({"name": "George", "address": "Main St"})
        assert exc_info.value.errors == {"address": ["must be a hash"]}

    def test_built_definition_as_type(self, address_definition):
        definition = define("shipment", lambda p: p.requires("to", address_definition))
        params = definition.parse({"to": {"street": "A", "city": "B"}})
        assert params.to.street == "A"
        assert params.to.definition is address_definition

    def test_recursive_projection(self, person_definition):
        params = person_definition.parse({
            "name": "George",
            "address": {"street": "Main St", "city": "Springfield"},
        })
        assert isinstance(params.to_dict()["address"], Parameters)
        assert params.to_dict(recursive=True) == {
            "name": "George",
            "address": {"street": "Main St", "city": "Springfield"},
        }
        assert params.stringify_keys(recursive=True)["address"] == {
            "street": "Main St",
            "city": "Springfield",
        }

    def test_nested_definition_name(self, person_definition):
        assert person_definition.attribute("address").definition.name == "person.address"

    def test_block_with_scalar_type_rejected(self):
        with pytest.raises(DefinitionError):
            define("bad", lambda p: p.accepts("thing", int, lambda t: t.accepts("x")))


class TestArrayOfDefinitions:
    """Arrays of nested schemas."""

    def test_list_of_instances(self, customer_definition):
        params = customer_definition.parse({
            "name": "George",
            "addresses": [
                {"street": "Main St", "city": "Springfield"},
                {"street": "Elm St", "city": "Shelbyville"},
            ],
        })
        assert isinstance(params.addresses, list)
        assert [a.city for a in params.addresses] == ["Springfield", "Shelbyville"]
        assert all(isinstance(a, Parameters) for a in params.addresses)

    def test_missing_array_is_required(self, customer_definition):
        with pytest.raises(InvalidParameters) as exc_info:
            customer_definition.parse({"name": "George"})
        assert exc_info.value.errors == {"addresses": ["is required"]}

    def test_empty_array_is_missing(self, customer_definition):
        with pytest.raises(InvalidParameters) as exc_info:
            customer_definition.parse({"name": "George", "addresses": []})
        assert exc_info.value.errors == {"addresses": ["is required"]}

    def test_optional_empty_array_accepted(self, address_definition):
        definition = define("customer", lambda p: p.accepts("addresses", list, address_definition))
        assert definition.parse({"addresses": []}).addresses == []

    def test_every_failing_element_reported(self, customer_definition):
        with pytest.raises(InvalidParameters) as exc_info:
            customer_definition.parse({
                "name": "George",
                "addresses": [
                    {"street": "Main St"},
                    {"street": "Elm St", "city": "Shelbyville"},
                    {"city": "Capital City"},
                ],
            })
        assert exc_info.value.errors == {
            "addresses": {
                "0": {"city": ["is required"]},
                "2": {"street": ["is required"]},
            }
        }
        assert str(exc_info.value) == (
            '{"errors":{"addresses":{"0":{"city":["is required"]},'
            '"2":{"street":["is required"]}}}}'
        )

    def test_non_mapping_element(self, customer_definition):
        with pytest.raises(InvalidParameters) as exc_info:
            customer_definition.parse({"name": "George", "addresses": ["Main St"]})
        assert exc_info.value.errors == {"addresses": {"0": ["must be a hash"]}}

    def test_not_an_array(self, customer_definition):
        with pytest.raises(InvalidParameters) as exc_info:
            customer_definition.parse({"name": "George", "addresses": {"street": "x"}})
        assert exc_info.value.errors == {"addresses": ["must be an array"]}

    def test_recursive_projection_of_arrays(self, customer_definition):
        params = customer_definition.parse({
            "name": "George",
            "addresses": [{"street": "Main St", "city": "Springfield"}],
        })
        assert params.to_dict(recursive=True) == {
            "name": "George",
            "addresses": [{"street": "Main St", "city": "Springfield"}],
        }

    def test_inline_block_array(self):
        definition = define("order", lambda p: p.requires("lines", list, lambda line: (
            line.requires("sku", str),
            line.requires("quantity", int, numericality={"greater_than": 0}),
        )))
        params = definition.parse({"lines": [{"sku": "A1", "quantity": "2"}]})
        assert params.lines[0].quantity == 2

    def test_rules_on_array(self, address_definition):
        definition = define("customer", lambda p: p.requires(
            "addresses", list, address_definition, length={"maximum": 1},
        ))
        with pytest.raises(InvalidParameters) as exc_info:
            definition.parse({"addresses": [
                {"street": "A", "city": "B"},
                {"street": "C", "city": "D"},
            ]})
        assert exc_info.value.errors == {
            "addresses": ["is too long (maximum is 1 characters)"]
        }


class TestMaxDepth:
    """Nesting depth is bounded at definition time."""

    def test_depth_within_limit(self):
        settings = ParserSettings(max_depth=2)
        definition = define("outer", lambda p: p.accepts(
            "inner", block=lambda i: i.accepts("value", int)
        ), settings=settings)
        assert definition.parse({"inner": {"value": "1"}}).inner.value == 1

    def test_depth_over_limit(self):
        settings = ParserSettings(max_depth=2)
        with pytest.raises(DefinitionError, match="max_depth"):
            define("outer", lambda p: p.accepts(
                "inner", block=lambda i: i.accepts(
                    "deeper", block=lambda d: d.accepts("value", int)
                ),
            ), settings=settings)

    def test_nested_inherits_settings(self):
        settings = ParserSettings(strict_types=True)
        definition = define("outer", lambda p: p.accepts(
            "inner", block=lambda i: i.accepts("value", int)
        ), settings=settings)
        assert definition.attribute("inner").definition.settings is settings
        with pytest.raises(InvalidParameters):
            definition.parse({"inner": {"value": "1"}})
