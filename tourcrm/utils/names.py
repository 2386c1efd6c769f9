"""Helpers for splitting and composing personal names."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional


# Substrings that mark a form field as holding the client's name
NAME_KEY_MARKERS = ("name", "имя", "fio")


@dataclass(frozen=True)
class ParsedName:
    last_name: str
    first_name: str
    middle_name: Optional[str] = None


def parse_full_name(full_name: str | None) -> ParsedName:
    """Split "Last First Middle..." into its parts.

    Empty input yields last name "Unknown"; a single token is the last name
    and leaves the first name empty.
    """
    tokens = (full_name or "").split()
    if not tokens:
        return ParsedName(last_name="Unknown", first_name="")
    if len(tokens) == 1:
        return ParsedName(last_name=tokens[0], first_name="")
    middle = " ".join(tokens[2:]) or None
    return ParsedName(last_name=tokens[0], first_name=tokens[1], middle_name=middle)


def display_name(first_name: str | None, last_name: str | None, middle_name: str | None = None) -> str:
    """Compose the "First Last Middle" name used on contacts."""
    parts = [first_name, last_name, middle_name]
    return " ".join(p.strip() for p in parts if p and p.strip())


def split_contact_name(name: str) -> tuple[str, str]:
    """Return (first word, rest) as Bitrix24 expects NAME/LAST_NAME."""
    words = name.split()
    if not words:
        return name, ""
    return words[0], " ".join(words[1:])


def find_name_value(fields: Iterable[Any], data: Mapping[str, Any]) -> Optional[str]:
    """Return the first non-empty value of a text field that looks like a name field."""
    for field in fields:
        if field.type != "text":
            continue
        key = (field.key or "").lower()
        if not any(marker in key for marker in NAME_KEY_MARKERS):
            continue
        value = data.get(field.key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None
