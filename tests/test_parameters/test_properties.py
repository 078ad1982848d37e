"""
Property-based tests for parsing.
"""

from hypothesis import given, settings, strategies as st

from explicit_parameters import define


definition = define("user", lambda p: (
    p.requires("id", int),
    p.accepts("name", str),
    p.accepts("title", str, default="Untitled"),
))

DECLARED = {"id", "name", "title"}

extra_keys = st.dictionaries(
    st.text(min_size=1).filter(lambda key: key not in DECLARED),
    st.text(),
    max_size=5,
)


class TestParseProperties:
    """Invariants that hold for any input."""

    @given(st.integers(), st.text(), extra_keys)
    @settings(max_examples=100)
    def test_undeclared_keys_never_projected(self, id_value, name, extra):
        raw = {"id": str(id_value), "name": name, **extra}
        params = definition.parse(raw)
        assert set(params.to_dict()) == {"id", "name"}
        for key, value in extra.items():
            assert params[key] == value

    @given(st.integers(), st.text())
    @settings(max_examples=100)
    def test_parsing_casted_values_is_idempotent(self, id_value, name):
        first = definition.parse({"id": str(id_value), "name": name})
        second = definition.parse(first.to_dict())
        assert first == second
        assert second.to_dict() == first.to_dict()

    @given(st.integers())
    @settings(max_examples=50)
    def test_int_cast_matches_string_form(self, id_value):
        assert definition.parse({"id": str(id_value)}).id == id_value
