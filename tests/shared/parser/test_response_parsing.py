import json

import pytest

from relay.protocol.base import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
)
from relay.shared.exceptions import (
    AmbiguousResponseError,
    MalformedResponseError,
    ProtocolVersionError,
    ResponseParseError,
    ResponseShapeError,
)
from relay.shared.message_parser import MessageParser, json_kind
from tests.conftest import STAMKOS


class TestEnvelopeValidity:
    def setup_method(self):
        self.parser = MessageParser()

    @pytest.mark.parametrize(
        "payload",
        [
            {"jsonrpc": "2.0", "id": "stamkos", "result": STAMKOS},
            {"jsonrpc": "2.0", "id": 91, "result": ["Steven", "Stamkos"]},
            {"jsonrpc": "2.0", "id": 91, "result": None},
            {
                "jsonrpc": "2.0",
                "id": 17,
                "error": {"code": INVALID_PARAMS, "message": "Unknown team"},
            },
            {
                "jsonrpc": "2.0",
                "id": None,
                "error": {"code": PARSE_ERROR, "message": "Parse error"},
            },
        ],
        ids=["string-id", "int-id", "null-result", "error", "null-id-error"],
    )
    def test_accepts_well_formed_envelopes(self, payload):
        assert self.parser.is_valid_response(payload) is True

    @pytest.mark.parametrize(
        "payload",
        [
            {"jsonrpc": "2.0", "result": STAMKOS},
            {"jsonrpc": "2.0", "id": None, "result": STAMKOS},
            {"jsonrpc": "2.0", "id": False, "result": STAMKOS},
            {"jsonrpc": "2.0", "id": ["findPlayer"], "result": STAMKOS},
            {"jsonrpc": "2.0", "id": 91},
            {
                "jsonrpc": "2.0",
                "id": 91,
                "result": STAMKOS,
                "error": {"code": METHOD_NOT_FOUND, "message": "Method not found"},
            },
            {"jsonrpc": "2.0", "id": 91, "error": {"message": "No code"}},
            {"jsonrpc": "1.0", "id": 91, "result": STAMKOS},
            ["findPlayer"],
            {},
        ],
        ids=[
            "missing-id",
            "null-id-result",
            "bool-id",
            "list-id",
            "no-outcome",
            "both-outcomes",
            "error-without-code",
            "old-version",
            "not-an-object",
            "empty",
        ],
    )
    def test_rejects_malformed_envelopes(self, payload):
        assert self.parser.is_valid_response(payload) is False

    @pytest.mark.parametrize("code", ["-32603", True, -32603.0])
    def test_error_code_must_be_an_integer(self, code):
        # Arrange
        payload = {
            "jsonrpc": "2.0",
            "id": 17,
            "error": {"code": code, "message": "Internal error"},
        }

        # Act & Assert
        with pytest.raises(MalformedResponseError, match="Malformed error object"):
            self.parser.parse_envelope(payload)


class TestResponseParsing:
    def setup_method(self):
        self.parser = MessageParser()

    def test_batch_envelopes_keep_arrival_order(self):
        # Arrange
        text = json.dumps(
            [
                {"jsonrpc": "2.0", "id": 2, "result": "second"},
                {"jsonrpc": "2.0", "id": 1, "result": "first"},
            ]
        )

        # Act
        envelopes = self.parser.parse_response(text, expect_batch=True)

        # Assert
        assert [envelope.id for envelope in envelopes] == [2, 1]
        assert [envelope.result for envelope in envelopes] == ["second", "first"]

    def test_single_response_yields_one_envelope(self):
        text = '{"jsonrpc": "2.0", "id": "abc", "result": 42}'

        envelopes = self.parser.parse_response(text, expect_batch=False)

        assert len(envelopes) == 1
        assert envelopes[0].id == "abc"
        assert envelopes[0].result == 42

    def test_error_envelope_carries_payload(self):
        # Arrange
        text = json.dumps(
            [
                {
                    "jsonrpc": "2.0",
                    "id": 2,
                    "error": {
                        "code": INTERNAL_ERROR,
                        "message": "Internal error",
                        "data": {"trace": "boom"},
                    },
                }
            ]
        )

        # Act
        (envelope,) = self.parser.parse_response(text, expect_batch=True)

        # Assert
        assert envelope.is_error
        assert envelope.error.code == -32603
        assert envelope.error.message == "Internal error"
        assert envelope.error.data == {"trace": "boom"}

    def test_empty_batch_response_parses_to_no_envelopes(self):
        assert self.parser.parse_response("[]", expect_batch=True) == []


class TestResponseParsingErrors:
    def setup_method(self):
        self.parser = MessageParser()

    def test_non_json_text(self):
        # Act & Assert
        with pytest.raises(ResponseParseError) as exc_info:
            self.parser.parse_response("test data", expect_batch=True)

        assert str(exc_info.value).startswith("Unable parse a JSON response")
        assert "test data" in str(exc_info.value)

    def test_non_json_text_is_truncated(self):
        # Arrange
        parser = MessageParser(excerpt_length=10)

        # Act & Assert
        with pytest.raises(ResponseParseError) as exc_info:
            parser.parse_response("x" * 100, expect_batch=False)

        assert str(exc_info.value) == "Unable parse a JSON response: xxxxxxxxxx..."

    @pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity"])
    def test_non_json_number_constants(self, constant):
        text = f'[{{"jsonrpc": "2.0", "id": 1, "result": {constant}}}]'

        with pytest.raises(ResponseParseError, match="^Unable parse a JSON response"):
            self.parser.parse_response(text, expect_batch=True)

    def test_object_where_array_expected(self):
        with pytest.raises(ResponseShapeError) as exc_info:
            self.parser.parse_response('{"test": "data"}', expect_batch=True)

        assert str(exc_info.value) == "Expected array but was OBJECT"
        assert exc_info.value.expected == "array"
        assert exc_info.value.actual == "OBJECT"

    def test_array_where_object_expected(self):
        with pytest.raises(ResponseShapeError, match="Expected object but was ARRAY"):
            self.parser.parse_response("[]", expect_batch=False)

    def test_batch_element_must_be_object(self):
        with pytest.raises(ResponseShapeError, match="Expected object but was NUMBER"):
            self.parser.parse_response("[1]", expect_batch=True)

    def test_missing_version(self):
        with pytest.raises(ProtocolVersionError) as exc_info:
            self.parser.parse_response('[{"test": "data"}]', expect_batch=True)

        assert str(exc_info.value).startswith("Not a JSON-RPC response")

    def test_bad_version(self):
        # Arrange
        text = json.dumps([{"jsonrpc": "1.0", "id": 1, "result": {}}])

        # Act & Assert
        with pytest.raises(ProtocolVersionError) as exc_info:
            self.parser.parse_response(text, expect_batch=True)

        assert str(exc_info.value) == "Bad protocol version: '1.0'"

    def test_neither_result_nor_error(self):
        with pytest.raises(AmbiguousResponseError) as exc_info:
            self.parser.parse_response('[{"jsonrpc": "2.0", "id": 1}]', True)

        assert str(exc_info.value).startswith(
            "Neither result or error is set in response"
        )
        assert "id='1'" in str(exc_info.value)

    def test_both_result_and_error(self):
        # Arrange
        text = json.dumps(
            {
                "jsonrpc": "2.0",
                "id": 3,
                "result": 1,
                "error": {"code": -32603, "message": "Internal error"},
            }
        )

        # Act & Assert
        with pytest.raises(AmbiguousResponseError, match="Both result and error"):
            self.parser.parse_response(text, expect_batch=False)

    def test_malformed_error_object(self):
        text = '{"jsonrpc": "2.0", "id": 3, "error": "Internal error"}'

        with pytest.raises(MalformedResponseError, match="Malformed error object"):
            self.parser.parse_response(text, expect_batch=False)

    def test_invalid_result_id(self):
        text = '{"jsonrpc": "2.0", "id": 1.5, "result": 1}'

        with pytest.raises(MalformedResponseError, match="Invalid id"):
            self.parser.parse_response(text, expect_batch=False)

    def test_version_failure_is_a_malformed_response(self):
        assert issubclass(ProtocolVersionError, MalformedResponseError)
        assert issubclass(AmbiguousResponseError, MalformedResponseError)


class TestJsonKind:
    @pytest.mark.parametrize(
        "value, kind",
        [
            ({}, "OBJECT"),
            ([], "ARRAY"),
            ("x", "STRING"),
            (1, "NUMBER"),
            (1.5, "NUMBER"),
            (True, "BOOLEAN"),
            (None, "NULL"),
        ],
    )
    def test_names_json_kinds(self, value, kind):
        assert json_kind(value) == kind
