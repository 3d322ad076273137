from __future__ import annotations

import codecs
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .rules import DEFAULT_DELIMITER, DEFAULT_NEWLINE, DEFAULT_QUOTE, TARGET_ENCODING
from .transcode import codec_name


class OutputMode(str, Enum):
    OBJECTS = "objects"
    TEXT = "text"
    BYTES = "bytes"


def _check_codec(name: str) -> str:
    try:
        codecs.lookup(name)
    except LookupError:
        raise ValueError(f"unknown encoding: {name}")
    return name


class ParserConfig(BaseModel):
    """Immutable settings for one parse session."""

    model_config = ConfigDict(frozen=True)

    delimiter: str = Field(default=DEFAULT_DELIMITER, min_length=1, max_length=1)
    quote: str = Field(default=DEFAULT_QUOTE, min_length=1, max_length=1)
    newline: str = Field(default=DEFAULT_NEWLINE, min_length=1)
    source_encoding: Optional[str] = None
    target_encoding: str = TARGET_ENCODING
    output: OutputMode = OutputMode.BYTES

    @field_validator("source_encoding")
    @classmethod
    def _known_source(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _check_codec(v)

    @field_validator("target_encoding")
    @classmethod
    def _known_target(cls, v: str) -> str:
        return _check_codec(v)

    @model_validator(mode="after")
    def _check_tokens(self) -> "ParserConfig":
        if self.quote == self.delimiter:
            raise ValueError("quote and delimiter must differ")
        if self.newline[0] in (self.quote, self.delimiter):
            raise ValueError("newline may not start with the quote or delimiter")
        if self.passthrough:
            # the byte tokenizer compares one byte at a time
            for token in (self.delimiter, self.quote):
                if len(token.encode(self.target_encoding)) != 1:
                    raise ValueError(
                        f"{token!r} is not a single byte in {self.target_encoding}; "
                        "set source_encoding to parse decoded text"
                    )
        return self

    @property
    def passthrough(self) -> bool:
        """True when input bytes are tokenized without decoding."""
        return self.source_encoding is None or (
            codec_name(self.source_encoding) == codec_name(self.target_encoding)
        )


class ParseResponse(BaseModel):
    records: List[List[str]] = Field(default_factory=list)
    record_count: int = 0
    source_encoding: Optional[str] = Field(default=None, examples=["latin-1"])


class HealthResponse(BaseModel):
    ok: bool = True
