"""Tests for response decoding."""

import pytest

from handy_client.adapters import failure_body
from handy_client.core.errors import ProjectionError
from handy_client.response import INVALID_RESPONSE, UNKNOWN_ERROR, parse_response


def test_successful_response_has_no_failure_message():
    response = parse_response('{"success": true, "mode": 1}')

    assert response.decoded
    assert response.has_success_flag
    assert response.is_success()
    assert response.failure_message() is None


def test_missing_success_flag_is_invalid_response():
    response = parse_response('{"mode": 1}')

    assert not response.has_success_flag
    assert not response.is_success()
    assert response.failure_message() == INVALID_RESPONSE


def test_failure_uses_error_text_or_generic_fallback():
    with_text = parse_response('{"success": false, "error": "Device offline"}')
    without_text = parse_response('{"success": false}')

    assert with_text.failure_message() == "Device offline"
    assert without_text.failure_message() == UNKNOWN_ERROR


def test_non_json_body_is_tolerated_as_empty_response():
    response = parse_response("<html>Bad gateway</html>")

    assert not response.decoded
    assert response.raw == "<html>Bad gateway</html>"
    assert response.failure_message() == INVALID_RESPONSE
    assert response.get_int("mode", 7) == 7


def test_json_array_body_is_not_a_response():
    response = parse_response("[1, 2, 3]")

    assert not response.decoded
    assert response.failure_message() == INVALID_RESPONSE


def test_typed_accessors_default_on_absent_or_wrong_type():
    response = parse_response(
        '{"success": true, "position": "abc", "flag": 1, "speed": true, "nothing": null}'
    )

    assert response.get_float("position", -1.0) == -1.0
    assert response.get_bool("flag") is False
    assert response.get_int("speed", 5) == 5
    assert response.get_str("missing", "fallback") == "fallback"
    assert "nothing" not in response


def test_typed_accessors_read_numeric_strings():
    response = parse_response(
        '{"success": true, "serverTime": "1617181920212", "speed": 12.5, "playing": "true"}'
    )

    assert response.get_int("serverTime") == 1617181920212
    assert response.get_float("speed") == 12.5
    assert response.get_str("speed") == "12.5"
    assert response.get_bool("playing") is True


def test_get_int_rejects_fractional_numbers():
    response = parse_response('{"success": true, "mode": 1.5, "offset": 3.0}')

    assert response.get_int("mode", -1) == -1
    assert response.get_int("offset") == 3


def test_require_accessors_distinguish_missing_from_wrong_type():
    response = parse_response('{"success": true, "mode": "automatic"}')

    with pytest.raises(ProjectionError, match="not an integer"):
        response.require_int("mode")
    with pytest.raises(ProjectionError, match="missing field 'version'"):
        response.require_str("version")


def test_transport_failure_body_is_marked():
    response = parse_response(failure_body("Request failed: connection refused"))

    assert response.is_transport_failure
    assert response.failure_message() == "Request failed: connection refused"
