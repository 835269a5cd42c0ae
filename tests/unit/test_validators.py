from __future__ import annotations

from bulk_import.catalog.validators import (
    make_enum_validator,
    normalize_token,
    validate_date,
    validate_email,
    validate_number,
    validate_phone,
    validate_string,
)


def test_normalize_token():
    assert normalize_token("E-mail") == "email"
    assert normalize_token(" Site / Location ") == "sitelocation"
    assert normalize_token("first_name") == "firstname"


def test_empty_is_always_valid():
    for validator in (validate_email, validate_phone, validate_date, validate_number):
        outcome = validator("")
        assert outcome.ok and outcome.value == ""


def test_string_collapses_whitespace():
    assert validate_string("Ana   Maria  Smith").value == "Ana Maria Smith"


def test_email():
    assert validate_email("Ana.Smith@Example.COM").value == "ana.smith@example.com"
    for bad in ("bob@@x", "no-at-sign", "a@b", "a b@c.com", "a@b."):
        outcome = validate_email(bad)
        assert not outcome.ok
        assert outcome.message == "Not a valid email address"


def test_phone():
    assert validate_phone("07700 900123").ok
    assert validate_phone("+44 (0)7700-900-123").ok
    assert not validate_phone("12345").ok  # too few digits
    assert not validate_phone("call me").ok
    assert validate_phone("07700   900123").value == "07700 900123"


def test_date_day_first_to_iso():
    assert validate_date("01/03/2024").value == "2024-03-01"
    assert validate_date("2024-03-01").value == "2024-03-01"
    assert validate_date("2024-03-01 00:00:00").value == "2024-03-01"
    assert validate_date("1 Mar 2024").value == "2024-03-01"
    assert validate_date("15.06.1995").value == "1995-06-15"
    assert not validate_date("31/02/2024").ok
    assert not validate_date("next monday").ok


def test_number():
    assert validate_number("37.50").value == "37.5"
    assert validate_number("1,200").value == "1200"
    assert validate_number("-4").value == "-4"
    assert not validate_number("12h").ok
    assert not validate_number("1,2,3").ok


def test_enum_accepts_value_or_label_case_insensitive():
    validate = make_enum_validator((("zero_hours", "Zero hours"), ("permanent", "Permanent")))
    assert validate("Zero Hours").value == "zero_hours"
    assert validate("ZERO_HOURS").value == "zero_hours"
    assert validate("permanent").value == "permanent"
    bad = validate("freelance")
    assert not bad.ok
    assert bad.message == "Must be one of: Zero hours, Permanent"
