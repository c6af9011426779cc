"""
Reader/writer for the small JSON-like documents stored on quests.

Quest ``requirements``, ``rewards`` and per-player ``progress`` are kept as
text in a deliberately restricted shape: a flat (or one level nested) object
whose values are non-negative integers, quoted strings, or an array of such
objects. The engine writes these documents itself, so the reader favours
robustness over fidelity: anything it cannot make sense of reads as
``None``/0/empty and nothing here ever raises on malformed input.

    {"total_fish": 2}
    {"fish": {"fish_pond_1": 1, "fish_river_1": 1}, "min_rarity": 2}
    {"gold": 100, "items": [{"item_id": "pole_2", "quantity": 1}]}
    {"fish_pond_1": 2, "total": 3, "max_rarity": 2}
"""
import re
from typing import Dict, List, Optional

EMPTY_DOCUMENT = "{}"

_DIGITS = re.compile(r"[0-9]*")


def _key_end(doc: str, key: str) -> int:
    """Index just past the first quoted occurrence of key, or -1."""
    search_key = f'"{key}"'
    pos = doc.find(search_key)
    if pos == -1:
        return -1
    return pos + len(search_key)


def _value_start(doc: str, key: str) -> int:
    """Index of the first non-blank character after ``"key" ... :``, or -1."""
    end = _key_end(doc, key)
    if end == -1:
        return -1
    colon = doc.find(":", end)
    if colon == -1:
        return -1
    start = colon + 1
    while start < len(doc) and doc[start].isspace():
        start += 1
    return start


def read_number(doc: str, key: str) -> Optional[int]:
    """Read the unsigned integer stored under key.

    Consumes the maximal run of ASCII digits after the colon. Returns None
    when the key is absent or the value does not start with a digit.
    """
    start = _value_start(doc, key)
    if start == -1:
        return None
    digits = _DIGITS.match(doc, start).group(0)
    if not digits:
        return None
    return int(digits)


def read_count(doc: str, key: str) -> int:
    """read_number with 0 on a miss, so gates built on it fail closed."""
    value = read_number(doc, key)
    return value if value is not None else 0


def read_string(doc: str, key: str) -> Optional[str]:
    """Read a simple quoted string value (no escape handling)."""
    start = _value_start(doc, key)
    if start == -1 or start >= len(doc) or doc[start] != '"':
        return None
    end = doc.find('"', start + 1)
    if end == -1:
        return None
    return doc[start + 1:end]


def read_nested_object(doc: str, key: str) -> Optional[str]:
    """Return the raw ``{...}`` following key, braces included.

    Not depth aware: the slice ends at the first ``}`` after the opening
    brace, so the sub-object itself must not contain nested objects.
    """
    end = _key_end(doc, key)
    if end == -1:
        return None
    open_brace = doc.find("{", end)
    if open_brace == -1:
        return None
    close_brace = doc.find("}", open_brace)
    if close_brace == -1:
        return None
    return doc[open_brace:close_brace + 1]


def read_number_map(raw_object: str) -> Dict[str, int]:
    """Split a flat ``{"a": 1, "b": 2}`` object into a key -> count dict.

    Counts that do not parse as plain integers become 0.
    """
    body = raw_object.strip()
    if body.startswith("{"):
        body = body[1:]
    if body.endswith("}"):
        body = body[:-1]

    counts: Dict[str, int] = {}
    for part in body.split(","):
        part = part.strip()
        if not part or ":" not in part:
            continue
        name, _, raw_value = part.partition(":")
        raw_value = raw_value.strip()
        counts[name.strip().strip('"')] = int(raw_value) if raw_value.isascii() and raw_value.isdigit() else 0
    return counts


def read_array_of_objects(doc: str, key: str) -> List[str]:
    """Return every top-level ``{...}`` block of the array stored under key.

    Brace depth is tracked so decorated objects stay whole; the scan stops at
    the first ``]`` outside of any object.
    """
    end = _key_end(doc, key)
    if end == -1:
        return []
    open_bracket = doc.find("[", end)
    if open_bracket == -1:
        return []

    objects: List[str] = []
    depth = 0
    start = None
    for i in range(open_bracket + 1, len(doc)):
        c = doc[i]
        if c == "{":
            if depth == 0:
                start = i
            depth += 1
        elif c == "}":
            if depth == 0:
                continue # stray closing brace
            depth -= 1
            if depth == 0 and start is not None:
                objects.append(doc[start:i + 1])
                start = None
        elif c == "]" and depth == 0:
            break
    return objects


def write_or_update_number(doc: str, key: str, value: int) -> str:
    """Set key to value and return the new document.

    An existing value is replaced in place, keeping the text around it. A
    missing key is appended before the closing brace. A document that does
    not end with ``}`` is returned unchanged.
    """
    search_key = f'"{key}"'
    pos = doc.find(search_key)
    if pos != -1:
        after_key = pos + len(search_key)
        colon = doc.find(":", after_key)
        if colon != -1:
            start = colon + 1
            while start < len(doc) and doc[start].isspace():
                start += 1
            digits = _DIGITS.match(doc, start).group(0)
            rest = doc[start + len(digits):]
            return f"{doc[:pos]}{search_key}:{value}{rest}"

    if doc == EMPTY_DOCUMENT:
        return f'{{"{key}":{value}}}'
    if doc.endswith("}"):
        return f'{doc[:-1]},"{key}":{value}}}'
    return doc
