"""Avatar helpers: initials and a stable background color from a name."""

import re

_NAME_SEPARATORS = re.compile(r"[ -]")
_UPPERCASE = re.compile(r"[A-Z]")
_LOWERCASE_RUNS = re.compile(r"[a-z]+")


def extract_initials(full_name: str) -> str:
    """
    Two-letter initials of a name.

    "Jean-Pierre Dupont" -> "JP". When a long name mixes cases, lowercase
    initials (particles like "de", "la") are dropped first.
    """
    initials = "".join(part[:1] for part in _NAME_SEPARATORS.split(full_name))

    if len(initials) > 3 and _UPPERCASE.search(initials):
        initials = _LOWERCASE_RUNS.sub("", initials)

    return initials[:2].upper()


def _to_int32(value: int) -> int:
    return ((value + 2**31) % 2**32) - 2**31


def _utf16_code_units(value: str) -> list[int]:
    data = value.encode("utf-16-le")
    return [int.from_bytes(data[i:i + 2], "little") for i in range(0, len(data), 2)]


def string_to_color(value: str) -> str:
    """
    Stable "#rrggbb" color for a string.

    Same results as the web client, which hashes UTF-16 code units with
    32-bit integer shifts.
    """
    hash_value = 0
    for code in _utf16_code_units(value):
        shifted = _to_int32(_to_int32(hash_value) << 5)
        hash_value = code + (shifted - hash_value)

    color = "#"
    for i in range(3):
        channel = (_to_int32(hash_value) >> (i * 8)) & 0xFF
        color += f"{channel:02x}"
    return color
