from idcards.id_numbers import (
    Gender,
    IdCardConfig,
    IdCardError,
    IdCardValidator,
    InvalidDateError,
    InvalidFormatError,
    InvalidProvinceError,
    ParsedIdentity,
    ParseResult,
    Region,
    RegionalShape,
    RegionalValidationResult,
    UnsupportedRegionError,
    calculate_age,
    check_id_number,
    classify_regional10,
    compute_check_digit,
    convert_mainland15_to18,
    hong_kong_checksum_valid,
    parse,
    parse_regional10,
    resolve_two_digit_year,
    romanize_province,
    taiwan_checksum_valid,
    try_parse,
    validate_mainland15,
    validate_mainland18,
    validate_regional10,
)
