"""
Unit Tests for the Response Decoder
"""

from decimal import Decimal

import httpx
import pytest

from indextank.errors import ProtocolError
from indextank.protocol.classifier import Operation
from indextank.protocol.decoder import (
    CATEGORY,
    FIELD,
    SNIPPET,
    VARIABLE,
    classify_key,
    decode_result_document,
    decode_search_result,
    parse_json,
)
from indextank.protocol.query import Query


def search_body(*results, **extra):
    body = {"matches": len(results), "search_time": "0.012", "query": "love", "results": list(results)}
    body.update(extra)
    return body


class TestClassifyKey:
    """Tests for assigning result keys to attachment classes."""

    @pytest.mark.parametrize(
        "key, expected",
        [
            ("snippet_text", (SNIPPET, "text")),
            ("variable_0", (VARIABLE, "0")),
            ("category_rating", (CATEGORY, "rating")),
            ("title", (FIELD, "title")),
            ("Snippet_Title", (SNIPPET, "Title")),
            ("CATEGORY_source", (CATEGORY, "source")),
        ],
    )
    def test_prefix_partition(self, key, expected):
        """Test prefixes are matched case-insensitively and fully stripped."""
        assert classify_key(key) == expected

    def test_prefixed_field_name_fetched(self):
        """Test a fetched field named like a snippet stays a field."""
        requested = Query("love").with_fields("snippet_title").requested_attachments()

        assert classify_key("snippet_title", requested) == (FIELD, "snippet_title")

    def test_prefixed_field_name_when_class_requested(self):
        """Test the attachment class wins when the query asked for it."""
        requested = (
            Query("love")
            .with_fields("snippet_title")
            .with_snippet_from_fields("title")
            .requested_attachments()
        )

        assert classify_key("snippet_title", requested) == (SNIPPET, "title")


class TestDecodeResultDocument:
    """Tests for demultiplexing a single result entry."""

    def test_full_entry(self):
        """Test every attachment class is routed to its own map."""
        document = decode_result_document({
            "docid": "post1",
            "query_relevance_score": 1.5,
            "title": "Love story",
            "snippet_text": "a <b>love</b> story",
            "category_rating": "5",
            "variable_0": 2.5,
            "variable_1": "7",
        })

        assert document.document_id == "post1"
        assert document.query_relevance_score == 1.5
        assert document.fields == {"title": "Love story"}
        assert document.snippets == {"text": "a <b>love</b> story"}
        assert document.categories == {"rating": "5"}
        assert document.variables == [2.5, 7.0]

    def test_unrequested_attachments_are_none(self):
        """Test absent classes decode to None, not empty containers."""
        document = decode_result_document({"docid": "post1", "query_relevance_score": 0.2})

        assert document.fields is None
        assert document.snippets is None
        assert document.categories is None
        assert document.variables is None

    def test_reserved_keys_are_exact(self):
        """Test only the exact reserved names are skipped."""
        document = decode_result_document({"docid": "post1", "docid_alt": "x"})

        assert document.fields == {"docid_alt": "x"}

    def test_variables_are_positional(self):
        """Test variables land at their index regardless of key order."""
        document = decode_result_document({"docid": "d", "variable_2": 3, "variable_0": 1, "variable_1": 2})

        assert document.variables == [1.0, 2.0, 3.0]

    @pytest.mark.parametrize(
        "entry",
        [
            {"docid": "d", "variable_3": 1},
            {"docid": "d", "variable_x": 1},
            {"docid": "d", "variable_0": "many"},
            {"docid": "d", "query_relevance_score": "high"},
            {"title": "no id"},
        ],
    )
    def test_malformed_entries(self, entry):
        """Test out-of-range indexes and non-numeric values raise."""
        with pytest.raises(ProtocolError):
            decode_result_document(entry)


class TestDecodeSearchResult:
    """Tests for decoding the full search response."""

    def test_top_level_fields(self):
        """Test matches, timing, query text and suggestions are read."""
        result = decode_search_result(search_body(
            {"docid": "a", "query_relevance_score": 1},
            didyoumean="lover",
            facets={"rating": {"5": 3, "4": 1}},
        ))

        assert result.matches == 1
        assert result.search_time == Decimal("0.012")
        assert result.query_text == "love"
        assert result.did_you_mean == "lover"
        assert result.facets == {"rating": {"5": 3, "4": 1}}
        assert [d.document_id for d in result.result_documents] == ["a"]

    def test_query_disambiguates_fields(self):
        """Test a requested snippet and a prefixed fetched field are both kept."""
        query = (
            Query("love")
            .with_snippet_from_fields("title")
            .with_fields("category_rating")
        )

        result = decode_search_result(
            search_body({"docid": "a", "snippet_title": "<b>love</b>", "category_rating": "5"}),
            query,
        )

        document = result.result_documents[0]
        assert document.snippets == {"title": "<b>love</b>"}
        assert document.fields == {"category_rating": "5"}
        assert document.categories is None

    def test_empty_results(self):
        """Test a response without results decodes to an empty list."""
        result = decode_search_result({"matches": 0, "search_time": 0.001, "query": "love"})

        assert result.result_documents == []
        assert result.did_you_mean is None
        assert result.facets is None

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            {"matches": 1, "query": "love"},
            {"matches": "many", "search_time": "0.1", "query": "love"},
            {"matches": 1, "search_time": "0.1", "query": "love", "results": {"docid": "a"}},
            {"matches": 1, "search_time": "0.1", "query": "love", "facets": {"rating": "five"}},
        ],
    )
    def test_malformed_bodies(self, payload):
        """Test malformed bodies raise a ProtocolError for the search operation."""
        with pytest.raises(ProtocolError) as exc_info:
            decode_search_result(payload)

        assert exc_info.value.operation is Operation.SEARCH


    def test_malformed_suggestion(self):
        """Test a non-text suggestion is reported as malformed result fields."""
        with pytest.raises(ProtocolError, match="search result fields are malformed"):
            decode_search_result(search_body(didyoumean={"text": "lover"}))


class TestParseJson:
    """Tests for reading response bodies."""

    def test_invalid_json(self):
        """Test an unreadable body is a protocol failure with the cause attached."""
        response = httpx.Response(200, content=b"<html>oops</html>")

        with pytest.raises(ProtocolError) as exc_info:
            parse_json(response, Operation.GET_INDEX)

        assert exc_info.value.status_code == 200
        assert exc_info.value.operation is Operation.GET_INDEX
        assert isinstance(exc_info.value.cause, ValueError)
