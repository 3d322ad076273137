"""
Source-encoding conversion applied to each chunk before tokenization.

Rules:
- No source encoding, or one naming the same codec as the target: bytes pass
  through untouched and the tokenizer works on bytes.
- Otherwise bytes go through an incremental decoder, so a multi-byte character
  split across two chunks is reassembled by the codec itself.
- Invalid input for the declared encoding raises TranscodingError.
"""

from __future__ import annotations

import codecs
import logging
from typing import Optional, Union

from charset_normalizer import from_bytes

logger = logging.getLogger(__name__)

Chunk = Union[bytes, str]

# Detector results that need no conversion when the target is UTF-8
_PASSTHROUGH_DETECTIONS = {"ascii", "utf_8"}


class TranscodingError(ValueError):
    """Input bytes are not valid in the declared source encoding."""

    def __init__(self, encoding: str, position: int, reason: str):
        self.encoding = encoding
        self.position = position
        self.reason = reason
        super().__init__(f"cannot decode input as {encoding} at byte {position}: {reason}")


def codec_name(encoding: str) -> str:
    return codecs.lookup(encoding).name


def detect_encoding(sample: bytes) -> Optional[str]:
    """
    Best-effort guess of the encoding of `sample`.

    Returns None when the sample is plain ASCII/UTF-8 (no conversion needed)
    or when nothing could be detected.
    """
    match = from_bytes(sample).best()
    if match is None:
        return None
    detected = match.encoding
    if codec_name(detected).replace("-", "_") in _PASSTHROUGH_DETECTIONS:
        return None
    logger.debug("detected encoding %s", detected)
    return detected


class Transcoder:
    def __init__(self, source_encoding: Optional[str], target_encoding: str):
        self.source_encoding = source_encoding
        self.target_encoding = target_encoding
        self.passthrough = (
            source_encoding is None
            or codec_name(source_encoding) == codec_name(target_encoding)
        )
        self._decoder = None
        if not self.passthrough:
            self._decoder = codecs.getincrementaldecoder(source_encoding)(errors="strict")
        self._offset = 0

    def decode(self, chunk: Chunk) -> Chunk:
        if isinstance(chunk, str):
            # already text
            if self.passthrough:
                return chunk.encode(self.target_encoding)
            if self._pending():
                raise TranscodingError(
                    self.source_encoding,
                    self._offset - len(self._pending()),
                    "text chunk received inside a partial multi-byte character",
                )
            return chunk
        if self.passthrough:
            return bytes(chunk)
        text = self._run(chunk, final=False)
        self._offset += len(chunk)
        return text

    def finish(self) -> Chunk:
        if self.passthrough:
            return b""
        return self._run(b"", final=True)

    def _pending(self) -> bytes:
        return self._decoder.getstate()[0]

    def _run(self, data: bytes, final: bool) -> str:
        # error positions count from the bytes the decoder held back
        start = self._offset - len(self._pending())
        try:
            return self._decoder.decode(data, final)
        except UnicodeDecodeError as e:
            raise TranscodingError(self.source_encoding, start + e.start, e.reason) from e
