"""
Shared definitions for the parameters tests.
"""

import pytest

from explicit_parameters import define


@pytest.fixture
def user_definition():
    """The canonical user definition: id, name and a defaulted title."""
    return define("user", lambda p: (
        p.requires("id", int, numericality={"greater_than": 0}),
        p.accepts("name", str),
        p.accepts("title", str, default="Untitled"),
    ))


@pytest.fixture
def address_definition():
    return define("address", lambda p: (
        p.requires("street", str),
        p.requires("city", str),
    ))
