import pytest

from civic_pm_api.project_codes import format_project_code, next_project_code, next_sequence, parse_sequence


def test_first_code_for_jurisdiction():
    assert next_project_code("RDC4", []) == "RDC4-000001"


def test_next_code_follows_highest_sequence():
    codes = ["RDC4-000001", "RDC4-000007", "RDC4-000003", None]
    assert next_project_code("RDC4", codes) == "RDC4-000008"


def test_codes_of_other_jurisdictions_are_ignored():
    assert next_project_code("RDC2", ["RDC4-000009", "RDC2-000002"]) == "RDC2-000003"


def test_parse_sequence():
    assert parse_sequence("RDC4-000042", "RDC4") == 42
    assert parse_sequence("RDC4-000042", "RDC2") is None
    assert parse_sequence("not-a-code", "RDC4") is None
    assert parse_sequence("", "RDC4") is None


def test_sequence_must_be_positive():
    with pytest.raises(ValueError):
        format_project_code("RDC4", 0)


def test_sequence_wider_than_six_digits():
    assert format_project_code("RDC4", 1234567) == "RDC4-1234567"
    assert parse_sequence("RDC4-1234567", "RDC4") == 1234567


def test_last_issued_sequence_is_never_reused():
    # RDC4-000005 was issued and later deleted
    assert next_sequence("RDC4", ["RDC4-000001", "RDC4-000002"], last_issued=5) == 6
    assert next_project_code("RDC4", [], last_issued=5) == "RDC4-000006"


def test_existing_codes_win_over_stale_counter():
    assert next_sequence("RDC4", ["RDC4-000009"], last_issued=3) == 10
