from locus_browser.core.positions import (
    parse_position_query,
    position_int_to_string,
    position_string_to_int,
)


def test_position_int_to_string_fixed_exponent():
    assert position_int_to_string(23423456, 6) == "23.42"


def test_position_int_to_string_picks_exponent_and_suffix():
    assert position_int_to_string(52667, suffix=True) == "52.67 Kb"
    assert position_int_to_string(114550452, 6, suffix=True) == "114.55 Mb"


def test_position_string_to_int_understands_suffixes_and_commas():
    assert position_string_to_int("5.8 Mb") == 5800000
    assert position_string_to_int("50k") == 50000
    assert position_string_to_int("114,550,452") == 114550452


def test_parse_range_query():
    assert parse_position_query("10:45000-65000") == {"chr": "10", "start": 45000, "end": 65000}


def test_parse_center_offset_query():
    assert parse_position_query("10:1.5M+50k") == {"chr": "10", "start": 1450000, "end": 1550000}


def test_parse_single_position_query():
    assert parse_position_query(" 10:114,550,452 ") == {"chr": "10", "position": 114550452}


def test_parse_unrecognised_query_returns_none():
    assert parse_position_query("not a region") is None
    assert parse_position_query("") is None
    assert parse_position_query(None) is None
