"""
Parse sessions: transcoder -> tokenizer -> formatter -> sink.

A CsvStreamParser owns one TokenizerState for its whole life. Chunks go in
through feed(), end() flushes. Records come back from each call and, when
given, are pushed to `on_record` one by one. Passing `callback` switches on
aggregate mode: the session keeps the whole document and reports it once as
callback(error, document).
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterable, AsyncIterator, Callable, Iterable, Iterator, List, Optional

from .formatters import get_formatter, record_fields
from .models import OutputMode, ParserConfig
from .tokenizer import State, Tokenizer
from .transcode import Chunk, Transcoder, TranscodingError

logger = logging.getLogger(__name__)

RecordSink = Callable[[Any], None]
DocumentCallback = Callable[[Optional[Exception], Optional[List[List[str]]]], None]


class CsvStreamParser:
    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        on_record: Optional[RecordSink] = None,
        callback: Optional[DocumentCallback] = None,
    ):
        self.config = config or ParserConfig()
        cfg = self.config
        self._transcoder = Transcoder(cfg.source_encoding, cfg.target_encoding)

        tokens = (cfg.delimiter, cfg.quote, cfg.newline)
        if self._transcoder.passthrough:
            tokens = tuple(t.encode(cfg.target_encoding) for t in tokens)
        self._tokenizer = Tokenizer(*tokens, on_record=self._deliver)
        self._format = get_formatter(cfg.output, cfg.target_encoding)

        self.on_record = on_record
        self.callback = callback
        self.document: List[List[str]] = []
        self._closed = False
        self._out: List[Any] = []

        logger.debug(
            "parse session started (source=%s, target=%s, output=%s, passthrough=%s)",
            cfg.source_encoding, cfg.target_encoding, cfg.output.value, self._transcoder.passthrough,
        )

    @property
    def record_count(self) -> int:
        return self._tokenizer.record_count

    @property
    def state(self) -> State:
        return self._tokenizer.state.state

    @property
    def in_quotes(self) -> bool:
        return self._tokenizer.state.in_quotes

    @property
    def closed(self) -> bool:
        return self._closed

    def feed(self, chunk: Chunk) -> List[Any]:
        """Accept the next chunk of input."""
        self._check_open()
        try:
            data = self._transcoder.decode(chunk)
        except TranscodingError as e:
            self._fail(e)
            raise
        self._tokenizer.feed(data)
        return self._drain()

    def end(self) -> List[Any]:
        """Signal end of input and flush the last partial record."""
        self._check_open()
        try:
            tail = self._transcoder.finish()
        except TranscodingError as e:
            self._fail(e)
            raise
        self._tokenizer.feed(tail)
        self._tokenizer.flush()
        out = self._drain()
        self._closed = True
        logger.debug("parse session finished with %d records", self.record_count)
        if self.callback is not None:
            self.callback(None, self.document)
        return out

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("parse session already ended")

    def _fail(self, error: TranscodingError) -> None:
        self._closed = True
        logger.error("parse session aborted after %d records: %s", self.record_count, error)
        if self.callback is not None:
            self.callback(error, None)

    def _drain(self) -> List[Any]:
        out, self._out = self._out, []
        return out

    def _deliver(self, record: List[Any]) -> None:
        # runs before the tokenizer counts this record
        value = self._format(record)
        if self.callback is not None:
            if self.config.output is OutputMode.OBJECTS:
                self.document.append(value)
            else:
                self.document.append(record_fields(record, self.config.target_encoding))
        if self.on_record is not None:
            self.on_record(value)
        self._out.append(value)


def iter_records(chunks: Iterable[Chunk], config: Optional[ParserConfig] = None) -> Iterator[Any]:
    """
    Lazily parse `chunks`.

    The next chunk is only pulled once every record of the previous one has
    been consumed.
    """
    parser = CsvStreamParser(config)
    for chunk in chunks:
        yield from parser.feed(chunk)
    yield from parser.end()


async def aiter_records(
    chunks: AsyncIterable[Chunk], config: Optional[ParserConfig] = None
) -> AsyncIterator[Any]:
    parser = CsvStreamParser(config)
    async for chunk in chunks:
        for record in parser.feed(chunk):
            yield record
    for record in parser.end():
        yield record


def parse_document(chunks: Iterable[Chunk], config: Optional[ParserConfig] = None) -> List[List[str]]:
    """Parse everything and return the records as lists of fields."""
    result: dict = {}

    def done(err, doc):
        result["doc"] = doc

    parser = CsvStreamParser(config, callback=done)
    for chunk in chunks:
        parser.feed(chunk)
    parser.end()
    return result["doc"]
