"""
Deterministic parsing defaults.

Every session starts from these values unless its ParserConfig overrides them.
"""

import os

DEFAULT_DELIMITER = ","
DEFAULT_QUOTE = '"'
DEFAULT_NEWLINE = "\n"

TARGET_ENCODING = "utf-8"

# Special source_encoding value accepted by the HTTP layer
AUTO_ENCODING = "auto"

# Bytes read from an upload per chunk
CHUNK_SIZE = int(os.environ.get("CSVSTREAM_CHUNK_SIZE", "65536"))
