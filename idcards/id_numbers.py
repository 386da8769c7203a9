"""
East-Asian Identity Number Validation and Parsing Module

This module validates identity-card numbers issued under the Mainland China, Taiwan,
Hong Kong and Macau numbering schemes, and extracts the attributes the numbers encode
(birthdate, province of issue, gender, checksum validity).

## Overview

The core functionality is provided by the `IdCardValidator` class, which wraps a set of
pure checksum and decoding routines:

1. **Mainland 18-digit**: GB 11643-1999 check digit, birthdate, province, gender
2. **Mainland 15-digit (legacy)**: structural validation and conversion to 18 digits
3. **Regional 10-character**: shape classification into Taiwan / Hong Kong / Macau,
   followed by the matching regional checksum rule

Only numbering-scheme conformance is checked. A number that passes is well formed; it is
not necessarily a real, issued or currently valid credential.

## Usage Examples

```python
from idcards.id_numbers import parse, validate_mainland18, convert_mainland15_to18, validate_regional10

identity = parse("11010519491231002X")
# identity.province == "北京", identity.birthdate == date(1949, 12, 31), identity.is_male is False

validate_mainland18("310115198807175610")
# Returns: True

convert_mainland15_to18("310115880717561", pivot_year=1930)
# Returns: "310115198807175610"

validate_regional10("A123456789")
# Returns: RegionalValidationResult(region=Region.TAIWAN, gender=Gender.MALE, valid=True)

validate_regional10("1234567(8)")
# Returns: RegionalValidationResult(region=Region.MACAU, gender=Gender.UNKNOWN, valid=None)
```

## Error Handling

`parse` and `parse_regional10` fail fast with a subclass of `IdCardError`:
- `InvalidFormatError`: empty input, wrong length, bad characters or checksum mismatch
- `InvalidProvinceError`: the region prefix is not a known province
- `InvalidDateError`: the birthdate digits are not a calendar date
- `UnsupportedRegionError`: the shape is recognised but no checksum rule exists (Macau)

The `validate_*` and `convert_*` functions never raise for malformed input; they return
`False` or `None`.

## Two-Digit Years

Legacy 15-digit numbers carry a two-digit birth year. By default the century is chosen
so that the year falls inside the 100-year window starting 80 years before today, which
makes results depend on the clock. Pass `pivot_year` (the first year of the window) or
configure `IdCardConfig.pivot_year` for deterministic results.

## Known Gaps

- The Hong Kong rule does not cover every legitimately issued number.
- Macau numbers are classified but have no checksum rule (`valid` is `None`).

## Thread Safety

All lookup tables are frozen at import. Every operation is a pure function of its input
and the reference date, so the module is safe to call from any number of threads.
"""

from __future__ import annotations
import logging
import time
from datetime import date
from enum import Enum
from functools import lru_cache
from typing import List, Optional, Tuple, Union
from dataclasses import dataclass, replace

import pypinyin
from idcards.id_numbers_data import (
    ASCII_DIGITS,
    ASCII_UPPERCASE,
    CHECK_DIGITS,
    CHINA_ID_MAX_LENGTH,
    CHINA_ID_MIN_LENGTH,
    HK_CHECK_CHARS,
    HK_FIRST_CODE,
    HK_SINGLE_LETTER_SEED,
    MACAU_LEADING_DIGITS,
    MAINLAND_WEIGHTS,
    PROVINCE_CODES,
    PROVINCE_PINYIN_EXCEPTIONS,
    TW_FIRST_CODE,
    TW_GENDER_DIGITS,
)


# ════════════════════════════════════════════════════════════════════════════════
# ERROR KINDS
# ════════════════════════════════════════════════════════════════════════════════


class IdCardError(ValueError):
    """Base class for identity number failures."""


class InvalidFormatError(IdCardError):
    """Empty input, wrong length, illegal characters or checksum mismatch."""


class InvalidProvinceError(IdCardError):
    """Region prefix not present in the province table."""


class InvalidDateError(IdCardError):
    """Birthdate digits do not form a calendar date."""


class UnsupportedRegionError(IdCardError):
    """Number shape recognised, but no checksum rule is implemented for it."""


# ════════════════════════════════════════════════════════════════════════════════
# RESULT TYPES
# ════════════════════════════════════════════════════════════════════════════════


class Region(Enum):
    TAIWAN = "台湾"
    HONG_KONG = "香港"
    MACAU = "澳门"


class Gender(Enum):
    MALE = "M"
    FEMALE = "F"
    UNKNOWN = "N"


class RegionalShape(Enum):
    """Shape of a 10-character regional number after brackets are removed."""

    TAIWAN = "taiwan"
    HONG_KONG = "hong_kong"
    MACAU = "macau"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class ParsedIdentity:
    """Attributes decoded from a valid Mainland 18-digit number."""

    number: str
    birthdate: date
    province: str
    province_code: str
    is_male: bool
    province_pinyin: Optional[str] = None

    @property
    def gender(self) -> Gender:
        return Gender.MALE if self.is_male else Gender.FEMALE

    def age_on(self, today: date) -> int:
        """Whole years elapsed between the birthdate and `today`."""
        return calculate_age(self.birthdate, today)

    @property
    def age(self) -> int:
        """Age against the system clock. Recomputed on every access."""
        return calculate_age(self.birthdate, date.today())


@dataclass(frozen=True)
class RegionalValidationResult:
    """Outcome of validating a Taiwan / Hong Kong / Macau number.

    `valid` is None when the region has no checksum rule.
    """

    region: Region
    gender: Gender
    valid: Optional[bool]

    @property
    def checksum_supported(self) -> bool:
        return self.valid is not None


@dataclass(frozen=True)
class ParseResult:
    """Result of a parse operation - Either-like structure."""

    success: bool
    result: Union[ParsedIdentity, str]
    error_message: Optional[str] = None

    @classmethod
    def success_with_identity(cls, identity: ParsedIdentity) -> "ParseResult":
        return cls(success=True, result=identity, error_message=None)

    @classmethod
    def failure(cls, error_message: str) -> "ParseResult":
        return cls(success=False, result="", error_message=error_message)

    def map(self, f) -> "ParseResult":
        """Functor map operation over a successful identity."""
        if self.success:
            try:
                return ParseResult.success_with_identity(f(self.result))
            except IdCardError as e:
                return ParseResult.failure(str(e))
        return self

    def flat_map(self, f) -> "ParseResult":
        """Monadic flatMap operation - chains another ParseResult-returning step."""
        if self.success:
            try:
                return f(self.result)
            except IdCardError as e:
                return ParseResult.failure(str(e))
        return self


# ════════════════════════════════════════════════════════════════════════════════
# IMMUTABLE CONFIGURATION
# ════════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class IdCardConfig:
    """Immutable validator configuration."""

    # Two-digit years resolve into the 100-year window starting this many years before today
    century_window_years: int

    # Explicit first year of the 100-year window; overrides the sliding window
    pivot_year: Optional[int]

    # Fixed reference date; None means the system clock
    today: Optional[date]

    # Attach the pinyin province name to parsed identities
    romanize_provinces: bool

    @classmethod
    def create_default(cls) -> "IdCardConfig":
        """Factory method for the default configuration."""
        return cls(
            century_window_years=80,
            pivot_year=None,
            today=None,
            romanize_provinces=True,
        )

    def with_pivot_year(self, pivot_year: Optional[int]) -> "IdCardConfig":
        """Immutable update method for the two-digit year pivot."""
        return replace(self, pivot_year=pivot_year)

    def with_today(self, today: Optional[date]) -> "IdCardConfig":
        """Immutable update method for the reference date."""
        return replace(self, today=today)

    def with_romanization(self, enabled: bool) -> "IdCardConfig":
        return replace(self, romanize_provinces=enabled)

    def reference_date(self) -> date:
        return self.today if self.today is not None else date.today()


# ════════════════════════════════════════════════════════════════════════════════
# PURE HELPERS
# ════════════════════════════════════════════════════════════════════════════════


def _is_ascii_digits(text: str) -> bool:
    return bool(text) and set(text) <= ASCII_DIGITS


def _is_calendar_date(year: int, month: int, day: int) -> bool:
    try:
        date(year, month, day)
    except ValueError:
        return False
    return True


def _parse_yyyymmdd(text: str) -> date:
    try:
        return date(int(text[0:4]), int(text[4:6]), int(text[6:8]))
    except ValueError as e:
        raise InvalidDateError(f"invalid birthdate '{text}': {e}") from e


def calculate_age(birthdate: date, today: date) -> int:
    """
    Whole years elapsed between `birthdate` and `today`.

    The year only counts once the birthday has been reached, so a person born on
    2000-12-31 is 23 on 2024-06-01. A birthday on 29 February is reached on 1 March
    in non-leap years. A birthdate after `today` gives a negative age.
    """
    if today < birthdate:
        return -calculate_age(today, birthdate)
    years = today.year - birthdate.year
    if (today.month, today.day) < (birthdate.month, birthdate.day):
        years -= 1
    return years


def resolve_two_digit_year(
    yy: int, pivot_year: Optional[int] = None, today: Optional[date] = None, window_years: int = 80
) -> int:
    """
    Map a two-digit year to a four-digit year inside a 100-year window.

    Args:
        yy: Two-digit year, 0-99
        pivot_year: First year of the window. Defaults to `window_years` before `today`.
        today: Reference date for the default window. Defaults to the system clock.
        window_years: How far back the default window starts.

    Returns:
        The unique year in [pivot_year, pivot_year + 99] ending in `yy`.
    """
    if not 0 <= yy <= 99:
        raise ValueError(f"two-digit year out of range: {yy}")
    if pivot_year is None:
        pivot_year = (today if today is not None else date.today()).year - window_years
    year = pivot_year - pivot_year % 100 + yy
    if year < pivot_year:
        year += 100
    return year


@lru_cache(maxsize=None)
def romanize_province(name: str) -> str:
    """Province name in pinyin, e.g. 北京 -> "Beijing"."""
    if name in PROVINCE_PINYIN_EXCEPTIONS:
        return PROVINCE_PINYIN_EXCEPTIONS[name]
    syllables = pypinyin.lazy_pinyin(name, style=pypinyin.Style.NORMAL)
    return "".join(syllables).capitalize()


# ════════════════════════════════════════════════════════════════════════════════
# CHECKSUM RULES
# ════════════════════════════════════════════════════════════════════════════════


def compute_check_digit(first17: str) -> str:
    """
    GB 11643-1999 check symbol for the first 17 digits of a Mainland number.

    Each digit is multiplied by its positional weight; the sum modulo 11 indexes
    the check alphabet "10X98765432".
    """
    if len(first17) != CHINA_ID_MAX_LENGTH - 1 or not _is_ascii_digits(first17):
        raise InvalidFormatError(f"expected 17 digits, got '{first17}'")
    total = sum(int(digit) * weight for digit, weight in zip(first17, MAINLAND_WEIGHTS))
    return CHECK_DIGITS[total % 11]


_BRACKETS_TR = str.maketrans("", "", "()（）")


def _normalize_regional(raw: str) -> str:
    """Remove brackets (ASCII and full-width) and surrounding whitespace, upper-case ASCII input."""
    card = raw.strip().translate(_BRACKETS_TR)
    # Non-ASCII letters such as "ß" or "ı" must not upper-case into ASCII ones
    return card.upper() if card.isascii() else card


def _classify_normalized(card: str) -> RegionalShape:
    length = len(card)
    if length == 10 and card[0] in ASCII_UPPERCASE and _is_ascii_digits(card[1:]):
        return RegionalShape.TAIWAN
    if length == 8 and card[0] in MACAU_LEADING_DIGITS:
        if _is_ascii_digits(card[1:7]) and (card[7] in ASCII_DIGITS or card[7] in ASCII_UPPERCASE):
            return RegionalShape.MACAU
        return RegionalShape.UNRECOGNIZED
    if length in (8, 9):
        letters = length - 7
        prefix, digits, check = card[:letters], card[letters:-1], card[-1]
        if set(prefix) <= ASCII_UPPERCASE and _is_ascii_digits(digits) and check in HK_CHECK_CHARS:
            return RegionalShape.HONG_KONG
    return RegionalShape.UNRECOGNIZED


def classify_regional10(raw: str) -> RegionalShape:
    """
    Classify a Taiwan / Hong Kong / Macau number by shape.

    Brackets are removed first, then:
    - Taiwan: one letter followed by 9 digits
    - Macau: 1, 5 or 7, then 6 digits, then a digit or letter
    - Hong Kong: 1-2 letters, 6 digits, then a digit or "A"
    """
    if not isinstance(raw, str):
        return RegionalShape.UNRECOGNIZED
    return _classify_normalized(_normalize_regional(raw))


def _taiwan_checksum(card: str) -> bool:
    value = TW_FIRST_CODE[card[0]]
    total = value // 10 + (value % 10) * 9
    for weight, digit in zip(range(8, 0, -1), card[1:9]):
        total += int(digit) * weight
    expected = 0 if total % 10 == 0 else 10 - total % 10
    return expected == int(card[9])


def _hong_kong_checksum(card: str) -> bool:
    # TODO: numbers with certain two-letter prefixes are issued with check characters this
    # rule rejects; needs an authoritative reference before the arithmetic is changed.
    if len(card) == 9:
        total = HK_FIRST_CODE[card[0]] * 9 + HK_FIRST_CODE[card[1]] * 8
        body = card[2:8]
    else:
        total = HK_SINGLE_LETTER_SEED + HK_FIRST_CODE[card[0]] * 8
        body = card[1:7]
    for weight, digit in zip(range(7, 1, -1), body):
        total += int(digit) * weight
    check = card[-1]
    total += 10 if check == "A" else int(check)
    return total % 11 == 0


def taiwan_checksum_valid(raw: str) -> bool:
    """Taiwan check digit rule. False for anything that is not Taiwan-shaped."""
    if classify_regional10(raw) is not RegionalShape.TAIWAN:
        return False
    return _taiwan_checksum(_normalize_regional(raw))


def hong_kong_checksum_valid(raw: str) -> bool:
    """Hong Kong check character rule (sum weighted 9..1 divisible by 11)."""
    if classify_regional10(raw) is not RegionalShape.HONG_KONG:
        return False
    return _hong_kong_checksum(_normalize_regional(raw))


# ════════════════════════════════════════════════════════════════════════════════
# MAIN VALIDATOR CLASS
# ════════════════════════════════════════════════════════════════════════════════


class IdCardValidator:
    """Identity number validation and parsing service."""

    def __init__(self, config: Optional[IdCardConfig] = None):
        self._config = config or IdCardConfig.create_default()

    @property
    def config(self) -> IdCardConfig:
        return self._config

    def _resolve_year(self, yy: int, pivot_year: Optional[int], today: Optional[date]) -> int:
        if pivot_year is None:
            pivot_year = self._config.pivot_year
        if today is None:
            today = self._config.reference_date()
        return resolve_two_digit_year(yy, pivot_year, today, self._config.century_window_years)

    # ── Mainland 18-digit ──────────────────────────────────────────────────────

    def validate_mainland18(self, raw: str) -> bool:
        """
        Checksum conformance of an 18-character Mainland number.

        The first 17 characters must be ASCII digits; the last must equal the computed
        check symbol, compared case-insensitively. Date and province are not checked.
        """
        if not isinstance(raw, str) or len(raw) != CHINA_ID_MAX_LENGTH:
            return False
        first17 = raw[:17]
        if not _is_ascii_digits(first17):
            return False
        return compute_check_digit(first17) == raw[17].upper()

    def parse(self, raw: str) -> ParsedIdentity:
        """
        Parse an 18-digit Mainland number into its attributes.

        Raises:
            InvalidFormatError: empty input, wrong length, bad characters, checksum mismatch
            InvalidProvinceError: unknown region prefix
            InvalidDateError: birthdate digits are not a calendar date
        """
        if not isinstance(raw, str):
            raise InvalidFormatError("illegal idcard number")
        number = raw.strip()
        if not self.validate_mainland18(number):
            raise InvalidFormatError("illegal idcard number")

        province_code = number[0:2]
        province = PROVINCE_CODES.get(province_code)
        if province is None:
            raise InvalidProvinceError("there is no province for this idcard number")

        birthdate = _parse_yyyymmdd(number[6:14])
        is_male = int(number[16]) % 2 == 1

        return ParsedIdentity(
            number=number,
            birthdate=birthdate,
            province=province,
            province_code=province_code,
            is_male=is_male,
            province_pinyin=self._romanize(province),
        )

    def try_parse(self, raw: str) -> ParseResult:
        """Like `parse`, but reports failures as a ParseResult instead of raising."""
        try:
            return ParseResult.success_with_identity(self.parse(raw))
        except IdCardError as e:
            return ParseResult.failure(str(e))

    def _romanize(self, province: str) -> Optional[str]:
        if not self._config.romanize_provinces:
            return None
        try:
            return romanize_province(province)
        except (AttributeError, ValueError, TypeError) as e:
            logging.warning(f"Pypinyin failed for '{province}': {e}")
            return None

    def age_of(self, identity: ParsedIdentity) -> int:
        """Age of `identity` on the configured reference date."""
        return identity.age_on(self._config.reference_date())

    # ── Mainland 15-digit (legacy) ─────────────────────────────────────────────

    def convert_mainland15_to18(
        self, raw: str, pivot_year: Optional[int] = None, today: Optional[date] = None
    ) -> Optional[str]:
        """
        Upgrade a legacy 15-digit number to the 18-digit form.

        The two-digit birth year is widened to four digits and the check symbol is
        appended. Returns None for anything that is not 15 ASCII digits holding a
        calendar-valid birthdate.
        """
        if not isinstance(raw, str) or len(raw) != CHINA_ID_MIN_LENGTH or not _is_ascii_digits(raw):
            return None

        year = self._resolve_year(int(raw[6:8]), pivot_year, today)
        if not _is_calendar_date(year, int(raw[8:10]), int(raw[10:12])):
            logging.debug(f"Legacy number has no valid birthdate: {year}-{raw[8:10]}-{raw[10:12]}")
            return None

        first17 = raw[0:6] + f"{year:04d}" + raw[8:]
        return first17 + compute_check_digit(first17)

    def validate_mainland15(self, raw: str, pivot_year: Optional[int] = None, today: Optional[date] = None) -> bool:
        """
        Structural validation of a legacy 15-digit number.

        Checks length, digits, province prefix and birthdate. Legacy numbers carry no
        check digit. Any fault yields False.
        """
        if not isinstance(raw, str) or len(raw) != CHINA_ID_MIN_LENGTH or not _is_ascii_digits(raw):
            return False
        if raw[0:2] not in PROVINCE_CODES:
            return False

        year = self._resolve_year(int(raw[6:8]), pivot_year, today)
        if not _is_calendar_date(year, int(raw[8:10]), int(raw[10:12])):
            logging.debug(f"Legacy number has no valid birthdate: {year}-{raw[8:10]}-{raw[10:12]}")
            return False
        return True

    # ── Taiwan / Hong Kong / Macau ─────────────────────────────────────────────

    def validate_regional10(self, raw: str) -> Optional[RegionalValidationResult]:
        """
        Validate a Taiwan, Hong Kong or Macau number.

        Returns None when the shape is not recognised. Taiwan numbers whose second
        character is not a sex digit are reported with Gender.UNKNOWN and valid=False
        without computing the checksum. Macau numbers have valid=None.
        """
        shape = classify_regional10(raw)
        if shape is RegionalShape.UNRECOGNIZED:
            logging.debug("Unrecognised regional number shape")
            return None

        card = _normalize_regional(raw)
        if shape is RegionalShape.TAIWAN:
            sex_digit = TW_GENDER_DIGITS.get(card[1])
            if sex_digit is None:
                return RegionalValidationResult(Region.TAIWAN, Gender.UNKNOWN, False)
            return RegionalValidationResult(Region.TAIWAN, Gender(sex_digit), _taiwan_checksum(card))
        if shape is RegionalShape.MACAU:
            return RegionalValidationResult(Region.MACAU, Gender.UNKNOWN, None)
        return RegionalValidationResult(Region.HONG_KONG, Gender.UNKNOWN, _hong_kong_checksum(card))

    def parse_regional10(self, raw: str) -> RegionalValidationResult:
        """
        Strict counterpart of `validate_regional10`.

        Raises:
            InvalidFormatError: the shape is not recognised
            UnsupportedRegionError: the number is Macau-shaped
        """
        result = self.validate_regional10(raw)
        if result is None:
            raise InvalidFormatError(f"unrecognised regional idcard number: {raw!r}")
        if not result.checksum_supported:
            raise UnsupportedRegionError(f"no checksum rule for {result.region.name} idcard numbers")
        return result


# ════════════════════════════════════════════════════════════════════════════════
# PERFORMANCE TEST
# ════════════════════════════════════════════════════════════════════════════════


def run_benchmark(count: int = 100_000) -> None:
    """Time parsing and validation over generated numbers."""
    import random

    validator = IdCardValidator(IdCardConfig.create_default().with_romanization(False))
    province_codes = list(PROVINCE_CODES)

    def generate_test_numbers(n: int) -> List[str]:
        """Generate a mix of valid and corrupted 18-digit numbers."""
        numbers = []
        for _ in range(n):
            birth = date(random.randint(1930, 2020), random.randint(1, 12), random.randint(1, 28))
            first17 = (
                random.choice(province_codes)
                + f"{random.randint(0, 9999):04d}"
                + birth.strftime("%Y%m%d")
                + f"{random.randint(0, 999):03d}"
            )
            number = first17 + compute_check_digit(first17)
            if random.random() < 0.2:  # 20% corrupted check digit
                number = first17 + random.choice([c for c in CHECK_DIGITS if c != number[-1]])
            numbers.append(number)
        return numbers

    test_numbers = generate_test_numbers(count)

    print(f"Testing with {len(test_numbers)} numbers...")
    start = time.perf_counter()
    parsed = 0
    for number in test_numbers:
        if validator.try_parse(number).success:
            parsed += 1
    elapsed = time.perf_counter() - start

    print(f"Parsed {parsed} valid numbers in {elapsed:.3f}s")
    print(f"Rate: {len(test_numbers) / elapsed:.0f} numbers/second")
    print(f"Time per number: {elapsed / len(test_numbers) * 1_000_000:.1f} microseconds")


# ════════════════════════════════════════════════════════════════════════════════
# MODULE-LEVEL CONVENIENCE FUNCTIONS
# ════════════════════════════════════════════════════════════════════════════════

# Global validator instance for module-level functions
_global_validator: Optional[IdCardValidator] = None


def _get_global_validator() -> IdCardValidator:
    """Get or create the global validator instance."""
    global _global_validator
    if _global_validator is None:
        _global_validator = IdCardValidator()
    return _global_validator


def parse(raw: str) -> ParsedIdentity:
    """Parse an 18-digit Mainland number. See `IdCardValidator.parse`."""
    return _get_global_validator().parse(raw)


def try_parse(raw: str) -> ParseResult:
    return _get_global_validator().try_parse(raw)


def validate_mainland18(raw: str) -> bool:
    return _get_global_validator().validate_mainland18(raw)


def convert_mainland15_to18(
    raw: str, pivot_year: Optional[int] = None, today: Optional[date] = None
) -> Optional[str]:
    return _get_global_validator().convert_mainland15_to18(raw, pivot_year=pivot_year, today=today)


def validate_mainland15(raw: str, pivot_year: Optional[int] = None, today: Optional[date] = None) -> bool:
    return _get_global_validator().validate_mainland15(raw, pivot_year=pivot_year, today=today)


def validate_regional10(raw: str) -> Optional[RegionalValidationResult]:
    return _get_global_validator().validate_regional10(raw)


def parse_regional10(raw: str) -> RegionalValidationResult:
    return _get_global_validator().parse_regional10(raw)


def check_id_number(raw: str) -> Tuple[bool, str]:
    """
    Module-level convenience function for Mainland numbers.

    Returns:
        Tuple of (success: bool, province_or_error: str)
    """
    result = try_parse(raw)
    if result.success and isinstance(result.result, ParsedIdentity):
        return (True, result.result.province)
    return (False, result.error_message or "")


# CLI entry point
if __name__ == "__main__":
    run_benchmark()
