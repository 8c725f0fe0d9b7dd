"""Tests for the webhook response-envelope contract."""

from __future__ import annotations

import pytest

from dealerdesk.bridge.envelope import (
    MAX_DEPTH,
    EnvelopeKind,
    parse_response_text,
    resolve_envelope,
    unwrap_payload,
)
from dealerdesk.core.errors import MalformedResponseError


class TestUnwrapPayload:
    def test_plain_object_is_unchanged(self):
        payload = {"full_name": "Jane Doe", "address": "1 Main St"}
        assert unwrap_payload(payload) == payload
        assert unwrap_payload(unwrap_payload(payload)) == payload

    def test_body_text(self):
        assert unwrap_payload({"body": '{"a":1}'}) == {"a": 1}

    def test_array_first_element(self):
        assert unwrap_payload([{"a": 1}, {"a": 2}]) == {"a": 1}

    def test_nested_wrappers(self):
        raw = [{"json": {"data": {"body": '{"vin": "1HGCM82633A004352"}'}}}]
        assert unwrap_payload(raw) == {"vin": "1HGCM82633A004352"}

    def test_json_key_must_be_object(self):
        assert unwrap_payload({"json": "text", "x": 1}) == {"json": "text", "x": 1}

    def test_falsy_data_is_not_followed(self):
        assert unwrap_payload({"data": None, "ok": True}) == {"data": None, "ok": True}

    def test_empty_object_data_is_followed(self):
        assert unwrap_payload({"data": {}, "ok": True}) == {}

    def test_empty_object_body_is_followed(self):
        assert unwrap_payload({"body": {}}) == {}

    def test_empty_array_data_is_followed(self):
        assert unwrap_payload({"data": []}) is None

    @pytest.mark.parametrize("value", ["", 0, False])
    def test_blank_scalar_data_is_not_followed(self, value):
        assert unwrap_payload({"data": value, "a": 1}) == {"data": value, "a": 1}

    @pytest.mark.parametrize("raw", [None, [], "done", 42, {"body": "not json"}, [[]]])
    def test_outside_contract_is_none(self, raw):
        assert unwrap_payload(raw) is None


class TestResolveEnvelope:
    def test_records_layers(self):
        resolved = resolve_envelope([{"data": {"body": '{"a": 1}'}}])
        assert resolved.payload == {"a": 1}
        assert resolved.layers == [EnvelopeKind.ARRAY, EnvelopeKind.DATA, EnvelopeKind.BODY_TEXT]
        assert resolved.kind == EnvelopeKind.ARRAY

    def test_plain(self):
        resolved = resolve_envelope({"a": 1})
        assert resolved.layers == []
        assert resolved.kind == EnvelopeKind.PLAIN

    def test_body_object(self):
        resolved = resolve_envelope({"body": {"a": 1}})
        assert resolved.layers == [EnvelopeKind.BODY]

    def test_empty_data_object(self):
        resolved = resolve_envelope({"data": {}})
        assert resolved.payload == {}
        assert resolved.layers == [EnvelopeKind.DATA]

    def test_empty_data_array_raises(self):
        with pytest.raises(MalformedResponseError, match="empty array"):
            resolve_envelope({"data": []})

    def test_scalar_raises(self):
        with pytest.raises(MalformedResponseError, match="expected an object"):
            resolve_envelope("done")

    def test_empty_array_raises(self):
        with pytest.raises(MalformedResponseError, match="empty array"):
            resolve_envelope([])

    def test_bad_body_text_raises(self):
        with pytest.raises(MalformedResponseError, match="not valid JSON"):
            resolve_envelope({"body": "{oops"})

    def test_body_text_holding_scalar_raises(self):
        with pytest.raises(MalformedResponseError):
            resolve_envelope({"body": "5"})

    def test_depth_limit(self):
        raw: object = {"a": 1}
        for _ in range(MAX_DEPTH + 1):
            raw = [raw]
        with pytest.raises(MalformedResponseError, match="deeper"):
            resolve_envelope(raw)


class TestParseResponseText:
    def test_json(self):
        assert parse_response_text('[{"a": 1}]') == [{"a": 1}]

    def test_text(self):
        assert parse_response_text("done") == "done"

    def test_empty(self):
        assert parse_response_text("") is None
