import logging
from typing import Iterator, Optional

from fastapi import FastAPI, UploadFile, File, HTTPException
from fastapi.responses import StreamingResponse

from .models import HealthResponse, OutputMode, ParseResponse, ParserConfig
from .parser import CsvStreamParser, iter_records
from .rules import AUTO_ENCODING, CHUNK_SIZE, DEFAULT_DELIMITER, DEFAULT_NEWLINE, DEFAULT_QUOTE
from .transcode import TranscodingError, detect_encoding

logger = logging.getLogger(__name__)

app = FastAPI(
    title="csv-stream",
    description="Incremental CSV parsing for arbitrarily chunked input",
    version="0.1.0",
)


def _build_config(
    sample: bytes,
    delimiter: str,
    quote: str,
    newline: str,
    source_encoding: Optional[str],
    output: OutputMode,
) -> ParserConfig:
    if source_encoding == AUTO_ENCODING:
        source_encoding = detect_encoding(sample)
    try:
        config = ParserConfig(
            delimiter=delimiter,
            quote=quote,
            newline=newline,
            source_encoding=source_encoding,
            output=output,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return config


def _slices(raw: bytes, size: int) -> Iterator[bytes]:
    for start in range(0, len(raw), size):
        yield raw[start:start + size]


@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}


@app.post("/parse", response_model=ParseResponse)
async def parse_csv(
    file: UploadFile = File(...),
    delimiter: str = DEFAULT_DELIMITER,
    quote: str = DEFAULT_QUOTE,
    newline: str = DEFAULT_NEWLINE,
    source_encoding: Optional[str] = None,
):
    chunk = await file.read(CHUNK_SIZE)
    config = _build_config(chunk, delimiter, quote, newline, source_encoding, OutputMode.OBJECTS)

    result = {}

    def done(err, doc):
        result["doc"] = doc

    parser = CsvStreamParser(config, callback=done)
    try:
        while chunk:
            parser.feed(chunk)
            chunk = await file.read(CHUNK_SIZE)
        parser.end()
    except TranscodingError as e:
        logger.warning("rejecting %s: %s", file.filename, e)
        raise HTTPException(status_code=422, detail=str(e))

    logger.info("parsed %s: %d records", file.filename, parser.record_count)
    return {
        "records": result["doc"],
        "record_count": parser.record_count,
        "source_encoding": config.source_encoding,
    }


@app.post("/parse/stream")
async def parse_csv_stream(
    file: UploadFile = File(...),
    delimiter: str = DEFAULT_DELIMITER,
    quote: str = DEFAULT_QUOTE,
    newline: str = DEFAULT_NEWLINE,
    source_encoding: Optional[str] = None,
):
    # The upload may be closed before a StreamingResponse body is sent, so it
    # is read up front; memory here grows with the upload, not the largest record.
    raw = await file.read()
    config = _build_config(raw[:CHUNK_SIZE], delimiter, quote, newline, source_encoding, OutputMode.BYTES)

    def ndjson() -> Iterator[bytes]:
        try:
            for record in iter_records(_slices(raw, CHUNK_SIZE), config):
                yield record + b"\n"
        except TranscodingError as e:
            logger.warning("stream for %s aborted: %s", file.filename, e)
            raise

    return StreamingResponse(ndjson(), media_type="application/x-ndjson")
