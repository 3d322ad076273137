"""
Resumable CSV tokenizer.

Chunks are scanned one character at a time by a single state machine. Whatever
is left unterminated at the end of a chunk (the current field, the fields of
the current record and a partially matched record delimiter) is carried in a
TokenizerState and picked up by the next chunk.

Works on str or bytes. For bytes a "character" is a 1-byte slice, which is
enough because the structural tokens are ASCII-compatible in the target
encoding.

Quoting rules:
- A quote opens a quoted field only as the first character of the field.
  Anywhere else it is literal data.
- Inside quotes, a doubled quote is one literal quote.
- After the closing quote the field continues unquoted.
- Nothing is ever rejected; odd input becomes literal field data.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import AnyStr, Callable, Generic, List, Optional


class State(Enum):
    FIELD_START = "field_start"
    IN_FIELD = "in_field"
    IN_QUOTED_FIELD = "in_quoted_field"
    QUOTE_IN_QUOTED_FIELD = "quote_in_quoted_field"
    MATCHING_RECORD_DELIMITER = "matching_record_delimiter"


@dataclass
class TokenizerState(Generic[AnyStr]):
    current_field: List[AnyStr] = field(default_factory=list)
    current_record: List[AnyStr] = field(default_factory=list)
    newline_match_progress: int = 0
    record_count: int = 0
    state: State = State.FIELD_START

    @property
    def in_quotes(self) -> bool:
        return self.state in (State.IN_QUOTED_FIELD, State.QUOTE_IN_QUOTED_FIELD)

    @property
    def pending(self) -> bool:
        return bool(self.current_field) or bool(self.current_record)


class Tokenizer(Generic[AnyStr]):
    """
    Splits a stream of chunks into records.

    `delimiter`, `quote` and `newline` must have the same type as the chunks
    that will be fed (str or bytes). `on_record`, when given, is called with
    each record as soon as it completes; record_count still holds the number
    of earlier records at that point.
    """

    def __init__(
        self,
        delimiter: AnyStr,
        quote: AnyStr,
        newline: AnyStr,
        on_record: Optional[Callable[[List[AnyStr]], None]] = None,
    ):
        self.delimiter = delimiter
        self.quote = quote
        self.newline = newline
        self._empty = newline[:0]
        self.state: TokenizerState[AnyStr] = TokenizerState()
        self.on_record = on_record
        self._records: List[List[AnyStr]] = []

    @property
    def record_count(self) -> int:
        return self.state.record_count

    def feed(self, chunk: AnyStr) -> List[List[AnyStr]]:
        """Consume one chunk; return the records it completed, in order."""
        step = self._step
        for i in range(len(chunk)):
            step(chunk[i:i + 1])
        return self._drain()

    def flush(self) -> List[List[AnyStr]]:
        """End of input: emit the final partial record, if any."""
        st = self.state
        if st.state is State.MATCHING_RECORD_DELIMITER:
            st.current_field.append(self.newline[:st.newline_match_progress])
            st.newline_match_progress = 0
        if st.pending:
            self._emit()
        st.state = State.FIELD_START
        return self._drain()

    def _drain(self) -> List[List[AnyStr]]:
        out, self._records = self._records, []
        return out

    def _close_field(self) -> None:
        st = self.state
        st.current_record.append(self._empty.join(st.current_field))
        st.current_field = []

    def _emit(self) -> None:
        st = self.state
        self._close_field()
        record, st.current_record = st.current_record, []
        if self.on_record is not None:
            self.on_record(record)
        self._records.append(record)
        st.record_count += 1

    def _step(self, c: AnyStr) -> None:
        st = self.state
        s = st.state

        if s is State.MATCHING_RECORD_DELIMITER:
            n = st.newline_match_progress
            if c == self.newline[n:n + 1]:
                n += 1
                if n == len(self.newline):
                    st.newline_match_progress = 0
                    st.state = State.FIELD_START
                    self._emit()
                else:
                    st.newline_match_progress = n
                return
            # mismatch: the partial delimiter was data
            st.current_field.append(self.newline[:n])
            st.newline_match_progress = 0
            s = State.IN_FIELD

        elif s is State.IN_QUOTED_FIELD:
            if c == self.quote:
                st.state = State.QUOTE_IN_QUOTED_FIELD
            else:
                st.current_field.append(c)
            return

        elif s is State.QUOTE_IN_QUOTED_FIELD:
            if c == self.quote:
                st.current_field.append(c)
                st.state = State.IN_QUOTED_FIELD
                return
            # quoted section closed; reprocess c unquoted
            s = State.IN_FIELD

        if c == self.quote and s is State.FIELD_START:
            st.state = State.IN_QUOTED_FIELD
        elif c == self.delimiter:
            self._close_field()
            st.state = State.FIELD_START
        elif c == self.newline[:1]:
            if len(self.newline) == 1:
                st.state = State.FIELD_START
                self._emit()
            else:
                st.newline_match_progress = 1
                st.state = State.MATCHING_RECORD_DELIMITER
        else:
            st.current_field.append(c)
            st.state = State.IN_FIELD
