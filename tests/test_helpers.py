import json
from datetime import datetime

import pytest

from neuropath.utils import helpers


def test_extract_json_from_fenced_reply():
    text = 'Sure!\n```json\n{"encouragement": "Nice"}\n```\nAnything else?'
    assert json.loads(helpers._extract_json_text(text)) == {"encouragement": "Nice"}


def test_extract_json_prefers_text_after_think_block():
    text = '<think>maybe {"draft": true}</think>\n{"final": 1}'
    assert json.loads(helpers._extract_json_text(text)) == {"final": 1}


def test_extract_json_falls_back_to_inside_think_block():
    text = '<think>here it is {"draft": true}</think> done'
    assert json.loads(helpers._extract_json_text(text)) == {"draft": True}


def test_extract_json_unwraps_completion_envelope():
    envelope = json.dumps({"choices": [{"message": {"content": 'x {"a": 2} y'}}]})
    assert json.loads(helpers._extract_json_text(envelope)) == {"a": 2}


def test_extract_json_without_object():
    assert helpers._extract_json_text("no json here") == "{}"
    assert helpers._extract_json_text("<think>never closed {") == "{}"
    assert helpers._parse_json_object("[1, 2]") == {}
    assert helpers._parse_json_object("{broken") == {}


def test_parse_dt_accepts_z_and_long_fractions():
    dt = helpers._parse_dt("2025-11-05T10:20:30.1234567Z")
    assert dt == datetime(2025, 11, 5, 10, 20, 30, 123456)
    assert helpers._parse_dt("2025-11-05T12:00:00+02:00") == datetime(2025, 11, 5, 10, 0, 0)
    assert helpers._parse_dt("yesterday") is None
    assert helpers._parse_dt(None) is None


def test_iso_round_trips_with_z_suffix():
    stamp = helpers._iso(datetime(2025, 1, 2, 3, 4, 5, 678000))
    assert stamp == "2025-01-02T03:04:05.678Z"
    assert helpers._parse_dt(stamp) == datetime(2025, 1, 2, 3, 4, 5, 678000)


def test_field_getters_apply_defaults():
    data = {"s": "  ", "n": "5", "b": 1, "f": 2, "items": ["a", "", 3, "b"], "ok": True}
    assert helpers._get_str(data, "s", "fallback") == "fallback"
    assert helpers._get_int(data, "n", 7) == 7
    assert helpers._get_float(data, "f", 0.5) == 2.0
    assert helpers._get_bool(data, "b", False) is False
    assert helpers._get_bool(data, "ok", False) is True
    assert helpers._get_str_list(data, "items") == ["a", "b"]
    assert helpers._get_str_list(data, "missing") == []


def test_number_coercion():
    assert helpers._to_int("12") == 12
    assert helpers._to_int("abc") is None
    assert helpers._to_float(None, 1.5) == 1.5
    assert helpers._signed(4.4) == "+4"
    assert helpers._signed(-1.25, 1) == "-1.2"
    assert helpers._format_long_date(datetime(2025, 11, 5)) == "Nov 5, 2025"


def test_non_finite_numbers_use_defaults():
    assert helpers._to_int(float("inf")) is None
    assert helpers._to_int("1e999", 0) == 0
    assert helpers._to_int("-inf") is None
    assert helpers._to_float("nan") is None
    assert helpers._to_float(float("inf"), 2.0) == 2.0
    assert helpers._get_int({"n": float("nan")}, "n", 3) == 3
    assert helpers._get_float({"f": 10 ** 400}, "f", 1.0) == 1.0


def test_optional_text_fields():
    assert helpers._opt_str({"mood": "Calm"}, "mood") == "Calm"
    assert helpers._opt_str({}, "mood") is None
    with pytest.raises(ValueError, match="mood must be a string"):
        helpers._opt_str({"mood": ["Sad"]}, "mood")
