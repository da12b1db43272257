from __future__ import annotations

from decimal import Decimal

from tabledit.services.identity import extract_primary_key_values, primary_key_hash, same_value


class TestPrimaryKeyHash:
    def test_single_key(self):
        assert primary_key_hash({"id": 5}) == "id:5"

    def test_keys_sorted_independent_of_insertion_order(self):
        """Same values in a different mapping order produce the same identity."""
        assert primary_key_hash({"b": 2, "a": 1}) == "a:1|b:2"
        assert primary_key_hash({"a": 1, "b": 2}) == primary_key_hash({"b": 2, "a": 1})

    def test_empty_mapping_hashes_to_empty_string(self):
        assert primary_key_hash({}) == ""

    def test_null_does_not_collide_with_string_null(self):
        assert primary_key_hash({"code": None}) == "code:null"
        assert primary_key_hash({"code": "null"}) == 'code:"null"'
        assert primary_key_hash({"code": None}) != primary_key_hash({"code": "null"})

    def test_int_does_not_collide_with_string(self):
        assert primary_key_hash({"id": 1}) != primary_key_hash({"id": "1"})

    def test_bool_and_bytes_forms(self):
        assert primary_key_hash({"flag": True}) == "flag:true"
        assert primary_key_hash({"raw": b"\x01\xff"}) == "raw:x'01ff'"

    def test_decimal_and_float(self):
        assert primary_key_hash({"k": Decimal("1.50")}) == "k:1.50"
        assert primary_key_hash({"k": 2.5}) == "k:2.5"

    def test_separator_inside_string_value_is_quoted(self):
        """A '|' inside a string key cannot fake a second pair."""
        composite = primary_key_hash({"a": "x", "b": "y"})
        crafted = primary_key_hash({"a": 'x"|b:"y'})
        assert composite != crafted

    def test_stable_across_calls(self):
        pk = {"tenant": "acme", "id": 42}
        assert primary_key_hash(pk) == primary_key_hash(dict(pk))


def test_extract_primary_key_values_missing_column_is_none():
    row = {"id": 7, "name": "x"}
    assert extract_primary_key_values(row, ["id"]) == {"id": 7}
    assert extract_primary_key_values(row, ["id", "tenant"]) == {"id": 7, "tenant": None}


class TestSameValue:
    def test_plain_equality(self):
        assert same_value("a", "a")
        assert same_value(1, 1.0)
        assert not same_value("a", "b")

    def test_none_only_equals_none(self):
        assert same_value(None, None)
        assert not same_value(None, "")
        assert not same_value(0, None)

    def test_bool_never_equals_number(self):
        assert not same_value(True, 1)
        assert not same_value(0, False)
        assert same_value(False, False)
