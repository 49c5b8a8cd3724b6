"""Column types shared by the entity models."""

import json
from typing import Any, List, Optional

from sqlalchemy import Text
from sqlalchemy.types import TypeDecorator


def encode_string_list(values: Optional[List[str]]) -> str:
    return json.dumps([str(v) for v in (values or [])])


def decode_string_list(raw: Optional[str]) -> List[str]:
    """Decode a stored list.

    Rows written by older clients hold a bare comma-separated string instead
    of a JSON array; both forms decode to a list of stripped, non-empty items.
    """
    if raw is None:
        return []
    text = raw.strip()
    if not text:
        return []
    try:
        decoded = json.loads(text)
    except ValueError:
        return [part.strip() for part in text.split(",") if part.strip()]
    if isinstance(decoded, list):
        return [str(item) for item in decoded if item is not None]
    return [str(decoded)]


class StringList(TypeDecorator):
    """Ordered list of strings stored as a JSON array in a text column."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Any, dialect) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, str):
            value = decode_string_list(value)
        return encode_string_list(value)

    def process_result_value(self, value: Optional[str], dialect) -> List[str]:
        return decode_string_list(value)
