# ═════════════════════════════════════════════════════════════════════════════════
# IDENTITY NUMBER LOOKUP TABLES
# ═════════════════════════════════════════════════════════════════════════════════
#
# Fixed tables shared by every numbering scheme handled in id_numbers.py:
# 1. PROVINCE_CODES: Mainland region prefix -> province name
# 2. MAINLAND_WEIGHTS / CHECK_DIGITS: GB 11643-1999 (ISO 7064 MOD 11-2) check digit
# 3. TW_FIRST_CODE: Taiwan first letter -> two-digit value
# 4. HK_FIRST_CODE: Hong Kong prefix letter -> value
#
# Tables are validated once at import and then frozen.
# ═════════════════════════════════════════════════════════════════════════════════

from types import MappingProxyType

# Lengths of the Mainland formats
CHINA_ID_MIN_LENGTH = 15
CHINA_ID_MAX_LENGTH = 18

# Provincial-level administrative regions (GB/T 2260 first two digits)
PROVINCE_CODES = {
    # North
    "11": "北京",
    "12": "天津",
    "13": "河北",
    "14": "山西",
    "15": "内蒙古",
    # Northeast
    "21": "辽宁",
    "22": "吉林",
    "23": "黑龙江",
    # East
    "31": "上海",
    "32": "江苏",
    "33": "浙江",
    "34": "安徽",
    "35": "福建",
    "36": "江西",
    "37": "山东",
    # Central south
    "41": "河南",
    "42": "湖北",
    "43": "湖南",
    "44": "广东",
    "45": "广西",
    "46": "海南",
    # Southwest
    "50": "重庆",
    "51": "四川",
    "52": "贵州",
    "53": "云南",
    "54": "西藏",
    # Northwest
    "61": "陕西",
    "62": "甘肃",
    "63": "青海",
    "64": "宁夏",
    "65": "新疆",
    # Taiwan, Hong Kong, Macau
    "71": "台湾",
    "81": "香港",
    "82": "澳门",
}

# Official spellings that differ from plain pinyin
PROVINCE_PINYIN_EXCEPTIONS = {
    "陕西": "Shaanxi",  # distinguishes it from 山西 Shanxi
    "内蒙古": "Inner Mongolia",
    "香港": "Hong Kong",
    "澳门": "Macau",
}

# Positional weights for the first 17 digits: 2^(17 - i) mod 11
MAINLAND_WEIGHTS = (7, 9, 10, 5, 8, 4, 2, 1, 6, 3, 7, 9, 10, 5, 8, 4, 2)

# Check symbol indexed by (weighted sum mod 11)
CHECK_DIGITS = ("1", "0", "X", "9", "8", "7", "6", "5", "4", "3", "2")

# Taiwan national ID first letter (household registration area)
# Values are not alphabetical: I, O, W, X, Y, Z were added after the original 20 letters.
TW_FIRST_CODE = {
    "A": 10,  # Taipei City
    "B": 11,  # Taichung City
    "C": 12,  # Keelung City
    "D": 13,  # Tainan City
    "E": 14,  # Kaohsiung City
    "F": 15,  # New Taipei City
    "G": 16,  # Yilan County
    "H": 17,  # Taoyuan City
    "J": 18,  # Hsinchu County
    "K": 19,  # Miaoli County
    "L": 20,  # Taichung County (retired)
    "M": 21,  # Nantou County
    "N": 22,  # Changhua County
    "P": 23,  # Yunlin County
    "Q": 24,  # Chiayi County
    "R": 25,  # Tainan County (retired)
    "S": 26,  # Kaohsiung County (retired)
    "T": 27,  # Pingtung County
    "U": 28,  # Hualien County
    "V": 29,  # Taitung County
    "X": 30,  # Penghu County
    "Y": 31,  # Yangmingshan (retired)
    "W": 32,  # Kinmen County
    "Z": 33,  # Lienchiang County
    "I": 34,  # Chiayi City
    "O": 35,  # Hsinchu City
}

# Hong Kong prefix letters map to 10..35 (the character code minus 55)
HK_FIRST_CODE = {chr(code): code - 55 for code in range(ord("A"), ord("Z") + 1)}

# A single-letter HKID is treated as if prefixed by a space worth 58, at weight 9
HK_SPACE_VALUE = 58
HK_SINGLE_LETTER_SEED = HK_SPACE_VALUE * 9

# Valid sex digits at position 2 of a Taiwan number
TW_GENDER_DIGITS = {"1": "M", "2": "F"}

# Leading digits of a Macau resident ID
MACAU_LEADING_DIGITS = frozenset("157")

# Check characters accepted at the end of a Hong Kong number ("A" stands for 10)
HK_CHECK_CHARS = frozenset("0123456789A")

ASCII_DIGITS = frozenset("0123456789")
ASCII_UPPERCASE = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZ")


def _assert_table_size(table_name, table, expected):
    """Validate that a table has exactly the expected number of entries."""
    if len(table) != expected:
        raise ValueError(f"{table_name} must have {expected} entries, found {len(table)}")


def _assert_unique_values(table_name, table):
    """Validate that no two keys share a value."""
    seen = set()
    for key, value in table.items():
        if value in seen:
            raise ValueError(f"Duplicate value in {table_name}: {key} -> {value}")
        seen.add(value)


def _assert_value_range(table_name, table, low, high):
    out_of_range = {key: value for key, value in table.items() if not low <= value <= high}
    if out_of_range:
        raise ValueError(f"{table_name} values outside [{low}, {high}]: {out_of_range}")


_assert_table_size("PROVINCE_CODES", PROVINCE_CODES, 34)
_assert_table_size("MAINLAND_WEIGHTS", MAINLAND_WEIGHTS, CHINA_ID_MAX_LENGTH - 1)
_assert_table_size("CHECK_DIGITS", CHECK_DIGITS, 11)
_assert_table_size("TW_FIRST_CODE", TW_FIRST_CODE, 26)
_assert_table_size("HK_FIRST_CODE", HK_FIRST_CODE, 26)

_assert_unique_values("PROVINCE_CODES", PROVINCE_CODES)
_assert_unique_values("TW_FIRST_CODE", TW_FIRST_CODE)

_unknown_provinces = set(PROVINCE_PINYIN_EXCEPTIONS) - set(PROVINCE_CODES.values())
if _unknown_provinces:
    raise ValueError(f"PROVINCE_PINYIN_EXCEPTIONS names unknown provinces: {_unknown_provinces}")

_assert_value_range("TW_FIRST_CODE", TW_FIRST_CODE, 10, 35)
_assert_value_range("HK_FIRST_CODE", HK_FIRST_CODE, 10, 35)

if any(len(code) != 2 or not set(code) <= ASCII_DIGITS for code in PROVINCE_CODES):
    raise ValueError("PROVINCE_CODES keys must be two ASCII digits")


# Create immutable versions

PROVINCE_CODES = MappingProxyType(PROVINCE_CODES)
TW_FIRST_CODE = MappingProxyType(TW_FIRST_CODE)
HK_FIRST_CODE = MappingProxyType(HK_FIRST_CODE)
TW_GENDER_DIGITS = MappingProxyType(TW_GENDER_DIGITS)
PROVINCE_PINYIN_EXCEPTIONS = MappingProxyType(PROVINCE_PINYIN_EXCEPTIONS)
