"""Tests for identifier normalization and query fix-up."""

import pytest
from bson import ObjectId
from bson.errors import InvalidId

from mongoforge.persistence.identifiers import fix_query_identifier, normalize_identifier

HEX_ID = "5f1d7f3e9c1b2a3d4e5f6a7b"


class TestNormalizeIdentifier:
    def test_string_becomes_object_id(self):
        value = normalize_identifier(HEX_ID)
        assert isinstance(value, ObjectId)

    @pytest.mark.parametrize("hex_id", [HEX_ID, "000000000000000000000000", str(ObjectId())])
    def test_round_trips_valid_hex(self, hex_id):
        assert str(normalize_identifier(hex_id)) == hex_id

    def test_object_id_passes_through(self):
        oid = ObjectId()
        assert normalize_identifier(oid) is oid

    @pytest.mark.parametrize("value", [None, 42, {"$in": []}])
    def test_non_strings_pass_through(self, value):
        assert normalize_identifier(value) is value

    def test_invalid_hex_raises(self):
        with pytest.raises(InvalidId):
            normalize_identifier("not-an-object-id")


class TestFixQueryIdentifier:
    def test_id_copied_to_underscore_id(self):
        query = fix_query_identifier({"id": HEX_ID, "name": "x"})
        assert query == {"_id": ObjectId(HEX_ID), "name": "x"}
        assert "id" not in query

    def test_existing_underscore_id_wins(self):
        other = ObjectId()
        query = fix_query_identifier({"id": HEX_ID, "_id": other})
        assert query == {"_id": other}

    def test_string_underscore_id_normalized(self):
        assert fix_query_identifier({"_id": HEX_ID}) == {"_id": ObjectId(HEX_ID)}

    def test_mutates_and_returns_same_object(self):
        query = {"id": HEX_ID}
        assert fix_query_identifier(query) is query
        assert query == {"_id": ObjectId(HEX_ID)}

    def test_query_without_identifier_untouched(self):
        assert fix_query_identifier({"name": "x"}) == {"name": "x"}

    def test_operator_value_not_normalized(self):
        ids = [ObjectId(), ObjectId()]
        assert fix_query_identifier({"id": {"$in": ids}}) == {"_id": {"$in": ids}}

    @pytest.mark.parametrize("query", [None, {}])
    def test_missing_filter_returned_unchanged(self, query):
        assert fix_query_identifier(query) is query
