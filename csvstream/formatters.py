"""
Record formatters, one per OutputMode.

The formatter is picked once per session; the tokenizer never sees it.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Sequence, Union

from .models import OutputMode

Field = Union[str, bytes]
Formatter = Callable[[Sequence[Field]], Any]


def _field_text(value: Field, encoding: str) -> str:
    if isinstance(value, bytes):
        # pass-through input: undecodable bytes become U+FFFD
        return value.decode(encoding, errors="replace")
    return value


def record_fields(record: Sequence[Field], encoding: str) -> List[str]:
    return [_field_text(v, encoding) for v in record]


def _to_json(fields: List[str]) -> str:
    return json.dumps(fields, ensure_ascii=False, separators=(",", ":"))


def get_formatter(mode: OutputMode, encoding: str) -> Formatter:
    formatters: Dict[OutputMode, Formatter] = {
        OutputMode.OBJECTS: lambda rec: record_fields(rec, encoding),
        OutputMode.TEXT: lambda rec: _to_json(record_fields(rec, encoding)),
        OutputMode.BYTES: lambda rec: _to_json(record_fields(rec, encoding)).encode(encoding),
    }
    return formatters[OutputMode(mode)]
