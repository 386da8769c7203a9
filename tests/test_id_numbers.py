"""
Test Suite for Mainland Identity Numbers

Covers the 18-digit checksum and parser, the legacy 15-digit validator and converter,
two-digit year resolution and age derivation.

Check digits in the expected values below were derived from the GB 11643-1999 weights;
numbers built inside tests use compute_check_digit so that only the property under test
can fail.
"""

import logging
import random
import sys
from datetime import date
from pathlib import Path

import pytest

# Add the parent directory to path to import idcards
sys.path.insert(0, str(Path(__file__).parent.parent))

from idcards.id_numbers import (
    Gender,
    IdCardConfig,
    IdCardError,
    IdCardValidator,
    InvalidDateError,
    InvalidFormatError,
    InvalidProvinceError,
    calculate_age,
    check_id_number,
    compute_check_digit,
    convert_mainland15_to18,
    parse,
    resolve_two_digit_year,
    romanize_province,
    try_parse,
    validate_mainland15,
    validate_mainland18,
)
from idcards.id_numbers_data import PROVINCE_CODES

REFERENCE_DATE = date(2026, 10, 19)

# (number, (province, birthdate, is_male))
VALID_18_DIGIT_CASES = [
    ("11010519491231002X", ("北京", date(1949, 12, 31), False)),
    ("11010519491231002x", ("北京", date(1949, 12, 31), False)),  # lower-case check symbol
    ("310115198807175610", ("上海", date(1988, 7, 17), True)),
    ("41042119810616502X", ("河南", date(1981, 6, 16), False)),
    ("440524188001010014", ("广东", date(1880, 1, 1), True)),
]

INVALID_18_DIGIT_CASES = [
    "440524188001010015",  # wrong check digit
    "110105194912310021",  # wrong check digit
    "11010519491231002Y",  # check symbol outside the alphabet
    "1101051949123100XX",  # letter inside the first 17 characters
    "11010519491231002",  # 17 characters
    "11010519491231002X0",  # 19 characters
    " 11010519491231002X",  # whitespace is not trimmed by the validator
    "１１０１０５１９４９１２３１００２Ｘ",  # full-width digits
    "",
]

MALFORMED_PARSE_INPUTS = [
    None,
    "",
    "   ",
    "\t\n",
    "1101051949",
    "11010519491231002X0",
    "440524188001010015",
]

# (legacy number, pivot_year, expected 18-digit number)
CONVERSION_CASES = [
    ("310115880717561", 1930, "310115198807175610"),
    ("110105491231002", 1930, "11010519491231002X"),
    ("110105491231002", 1950, "110105204912310026"),
    ("410421810616502", 1900, "41042119810616502X"),
]


@pytest.fixture(scope="session")
def validator():
    """Validator with a fixed reference date and pivot-free sliding window."""
    return IdCardValidator(IdCardConfig.create_default().with_today(REFERENCE_DATE))


def _with_check_digit(first17: str) -> str:
    return first17 + compute_check_digit(first17)


# ── Mainland 18-digit ─────────────────────────────────────────────────────────


def test_check_digit_reproduces_last_character():
    for number, _ in VALID_18_DIGIT_CASES:
        assert compute_check_digit(number[:17]) == number[17].upper(), f"Failed for '{number}'"


def test_compute_check_digit_rejects_bad_input():
    for bad in ["1101051949123100", "110105194912310021", "1101051949123100X"]:
        with pytest.raises(InvalidFormatError):
            compute_check_digit(bad)


def test_validate_mainland18_accepts_valid_numbers():
    for number, _ in VALID_18_DIGIT_CASES:
        assert validate_mainland18(number) is True, f"Failed for '{number}'"


def test_validate_mainland18_rejects_invalid_numbers():
    for number in INVALID_18_DIGIT_CASES:
        assert validate_mainland18(number) is False, f"Failed for '{number}'"


def test_validate_mainland18_never_raises_on_non_strings():
    for value in [None, 110105194912310020, b"11010519491231002X"]:
        assert validate_mainland18(value) is False


def test_parse_extracts_fields():
    passed = 0
    failed = 0

    for number, (province, birthdate, is_male) in VALID_18_DIGIT_CASES:
        identity = parse(number)
        result_tuple = (identity.province, identity.birthdate, identity.is_male)
        if result_tuple == (province, birthdate, is_male) and identity.number == number:
            passed += 1
        else:
            failed += 1
            print(f"FAILED: '{number}': expected {(province, birthdate, is_male)}, got {result_tuple}")

    assert failed == 0, f"Parse tests: {failed} failures out of {len(VALID_18_DIGIT_CASES)} tests"


def test_parse_trims_whitespace():
    identity = parse("  11010519491231002X\n")
    assert identity.number == "11010519491231002X"
    assert identity.province_code == "11"
    assert identity.gender is Gender.FEMALE


def test_parse_malformed_input_raises_invalid_format():
    for raw in MALFORMED_PARSE_INPUTS:
        with pytest.raises(InvalidFormatError, match="illegal idcard number"):
            parse(raw)


def test_parse_wrong_length_always_invalid_format():
    base = "11010519491231002X"
    for length in range(0, 30):
        if length == 18:
            continue
        raw = (base * 2)[:length]
        with pytest.raises(InvalidFormatError):
            parse(raw)


def test_parse_unknown_province():
    # Overseas placeholder code 91 and unassigned 99 are not provinces
    for prefix in ["99", "91", "00", "72"]:
        number = _with_check_digit(prefix + "010519900101001")
        assert validate_mainland18(number) is True
        with pytest.raises(InvalidProvinceError):
            parse(number)


def test_parse_impossible_birthdate():
    for birth in ["20230231", "19991301", "20000000", "19490431"]:
        number = _with_check_digit("110105" + birth + "001")
        assert validate_mainland18(number) is True
        with pytest.raises(InvalidDateError):
            parse(number)


def test_parse_accepts_leap_day():
    identity = parse(_with_check_digit("11010520000229001"))
    assert identity.birthdate == date(2000, 2, 29)


def test_errors_share_a_value_error_base():
    for error in (InvalidFormatError, InvalidProvinceError, InvalidDateError):
        assert issubclass(error, IdCardError)
        assert issubclass(error, ValueError)


def test_gender_follows_seventeenth_digit_parity():
    rng = random.Random(11643)
    codes = sorted(PROVINCE_CODES)
    for _ in range(500):
        first17 = rng.choice(codes) + "0105" + "19850615" + f"{rng.randint(0, 999):03d}"
        identity = parse(_with_check_digit(first17))
        assert identity.is_male == (int(first17[16]) % 2 == 1)
        assert identity.gender is (Gender.MALE if identity.is_male else Gender.FEMALE)


def test_every_province_parses():
    for code, name in PROVINCE_CODES.items():
        identity = parse(_with_check_digit(code + "0000" + "19700101" + "123"))
        assert identity.province == name
        assert identity.province_code == code


def test_try_parse_success_and_failure():
    result = try_parse("310115198807175610")
    assert result.success is True
    assert result.result.province == "上海"
    assert result.error_message is None

    result = try_parse("310115198807175611")
    assert result.success is False
    assert result.error_message == "illegal idcard number"


def test_try_parse_map_and_flat_map():
    result = try_parse("310115198807175610").map(lambda identity: identity)
    assert result.success is True

    failed = try_parse("310115198807175610").flat_map(lambda identity: try_parse("bad"))
    assert failed.success is False
    assert failed.error_message == "illegal idcard number"

    untouched = try_parse("bad").map(lambda identity: identity)
    assert untouched.success is False


def test_check_id_number_tuple_api():
    assert check_id_number("11010519491231002X") == (True, "北京")
    assert check_id_number("11010519491231002") == (False, "illegal idcard number")
    assert check_id_number(_with_check_digit("99010519900101001")) == (
        False,
        "there is no province for this idcard number",
    )


# ── Province romanization ─────────────────────────────────────────────────────


def test_province_pinyin_on_parsed_identity():
    assert parse("11010519491231002X").province_pinyin == "Beijing"
    assert parse("310115198807175610").province_pinyin == "Shanghai"


def test_romanize_province():
    cases = [
        ("北京", "Beijing"),
        ("广东", "Guangdong"),
        ("黑龙江", "Heilongjiang"),
        ("陕西", "Shaanxi"),
        ("山西", "Shanxi"),
        ("香港", "Hong Kong"),
    ]
    for name, expected in cases:
        assert romanize_province(name) == expected, f"Failed for '{name}'"


def test_romanization_can_be_disabled():
    plain = IdCardValidator(IdCardConfig.create_default().with_romanization(False))
    assert plain.parse("11010519491231002X").province_pinyin is None


# ── Two-digit years ───────────────────────────────────────────────────────────


def test_resolve_two_digit_year_sliding_window():
    # Window starts 80 years before the reference date: 1946..2045
    assert resolve_two_digit_year(46, today=REFERENCE_DATE) == 1946
    assert resolve_two_digit_year(99, today=REFERENCE_DATE) == 1999
    assert resolve_two_digit_year(0, today=REFERENCE_DATE) == 2000
    assert resolve_two_digit_year(45, today=REFERENCE_DATE) == 2045


def test_resolve_two_digit_year_explicit_pivot():
    assert resolve_two_digit_year(0, pivot_year=1900) == 1900
    assert resolve_two_digit_year(99, pivot_year=1900) == 1999
    assert resolve_two_digit_year(25, pivot_year=1930) == 2025
    assert resolve_two_digit_year(30, pivot_year=1930) == 1930
    assert resolve_two_digit_year(25, pivot_year=1925) == 1925
    assert resolve_two_digit_year(24, pivot_year=1925) == 2024


def test_resolve_two_digit_year_rejects_out_of_range():
    for yy in (-1, 100):
        with pytest.raises(ValueError):
            resolve_two_digit_year(yy, pivot_year=1930)


# ── Mainland 15-digit (legacy) ────────────────────────────────────────────────


def test_convert_mainland15_to18():
    for legacy, pivot_year, expected in CONVERSION_CASES:
        converted = convert_mainland15_to18(legacy, pivot_year=pivot_year)
        assert converted == expected, f"Failed for '{legacy}' with pivot {pivot_year}"
        assert validate_mainland18(converted) is True


def test_convert_mainland15_to18_both_centuries():
    # Same legacy digits, born 1925 or 2025 depending on the window
    legacy = "110105250101001"
    older = convert_mainland15_to18(legacy, pivot_year=1900)
    newer = convert_mainland15_to18(legacy, pivot_year=1930)
    assert older[6:10] == "1925"
    assert newer[6:10] == "2025"
    assert validate_mainland18(older) and validate_mainland18(newer)


def test_convert_mainland15_to18_sliding_window(validator):
    assert validator.convert_mainland15_to18("110105450101001")[6:10] == "2045"
    assert validator.convert_mainland15_to18("110105460101001")[6:10] == "1946"


def test_convert_mainland15_to18_round_trip():
    rng = random.Random(7064)
    codes = sorted(PROVINCE_CODES)
    for _ in range(200):
        legacy = (
            rng.choice(codes)
            + f"{rng.randint(0, 9999):04d}"
            + f"{rng.randint(0, 99):02d}{rng.randint(1, 12):02d}{rng.randint(1, 28):02d}"
            + f"{rng.randint(0, 999):03d}"
        )
        converted = convert_mainland15_to18(legacy, pivot_year=1930)
        assert converted is not None, f"Failed for '{legacy}'"
        assert validate_mainland18(converted) is True
        assert converted[:6] == legacy[:6]
        assert converted[8:17] == legacy[6:15]


def test_convert_mainland15_to18_rejects_malformed():
    for raw in [None, "", "11010549123100", "1101054912310020", "11010549123100X", "１１０１０５４９１２３１００２"]:
        assert convert_mainland15_to18(raw, pivot_year=1930) is None, f"Failed for '{raw}'"


def test_convert_mainland15_to18_rejects_impossible_dates():
    assert convert_mainland15_to18("110105491331002", pivot_year=1930) is None
    assert convert_mainland15_to18("110105490230002", pivot_year=1930) is None
    # 1900 was not a leap year, 2000 was
    assert convert_mainland15_to18("110105000229001", pivot_year=1900) is None
    assert convert_mainland15_to18("110105000229001", pivot_year=1930) is not None


def test_convert_does_not_check_province():
    assert convert_mainland15_to18("990105491231002", pivot_year=1930) is not None


def test_validate_mainland15():
    cases = [
        ("110105491231002", True),
        ("310115880717561", True),
        ("990105491231002", False),  # unknown province
        ("910105491231002", False),  # overseas placeholder code
        ("110105491331002", False),  # month 13
        ("110105490431002", False),  # 31 April
        ("11010549123100", False),
        ("1101054912310021", False),
        ("11010549123100A", False),
        ("", False),
        (None, False),
    ]
    for raw, expected in cases:
        assert validate_mainland15(raw, pivot_year=1930) is expected, f"Failed for '{raw}'"


def test_validate_mainland15_leap_day_depends_on_century():
    assert validate_mainland15("110105000229001", pivot_year=1900) is False
    assert validate_mainland15("110105000229001", pivot_year=1930) is True


def test_configured_pivot_year_is_used():
    validator = IdCardValidator(IdCardConfig.create_default().with_pivot_year(1950))
    assert validator.convert_mainland15_to18("110105491231002") == "110105204912310026"
    # A per-call pivot wins over the configured one
    assert validator.convert_mainland15_to18("110105491231002", pivot_year=1930) == "11010519491231002X"


# ── Age ───────────────────────────────────────────────────────────────────────


def test_calculate_age():
    cases = [
        (date(2000, 12, 31), date(2024, 6, 1), 23),
        (date(2000, 12, 31), date(2024, 12, 30), 23),
        (date(2000, 12, 31), date(2024, 12, 31), 24),
        (date(2000, 2, 29), date(2023, 2, 28), 22),
        (date(2000, 2, 29), date(2023, 3, 1), 23),
        (date(2000, 2, 29), date(2024, 2, 29), 24),
        (date(1949, 12, 31), date(1949, 12, 31), 0),
    ]
    for birthdate, today, expected in cases:
        assert calculate_age(birthdate, today) == expected, f"Failed for {birthdate} on {today}"


def test_calculate_age_future_birthdate_is_negative():
    assert calculate_age(date(2030, 1, 1), date(2024, 1, 1)) == -6
    assert calculate_age(date(2099, 1, 1), date(2026, 10, 19)) == -72
    assert calculate_age(date(2024, 6, 2), date(2024, 6, 1)) == 0


def test_future_birthdate_parses_and_age_does_not_raise():
    identity = parse(_with_check_digit("11010520990101001"))
    assert identity.birthdate == date(2099, 1, 1)
    assert identity.age_on(REFERENCE_DATE) == -72
    assert identity.age < 0


def test_identity_age(validator):
    identity = validator.parse("11010519491231002X")
    assert identity.age_on(date(2024, 6, 1)) == 74
    assert identity.age_on(date(2024, 12, 31)) == 75
    assert validator.age_of(identity) == 76
    assert identity.age >= 76


def test_rejected_legacy_numbers_are_not_logged(caplog):
    caplog.set_level(logging.DEBUG)
    assert validate_mainland15("110105491331002", pivot_year=1930) is False
    assert convert_mainland15_to18("110105491331002", pivot_year=1930) is None
    assert caplog.records, "expected a debug record for the rejected birthdate"
    assert all("110105491331002" not in record.getMessage() for record in caplog.records)
