import pytest

QUOTE_CSV_TEXT = (
    "Order No.,4711\n"
    '"Job Description:","""Etiketten"", ""Borthener Obst"" - A4 (Neutral)"\n'
    'Customer,"Gröger"\n'
    'Pages,"1 - 4/- Blätter(R505)"\n'
    'Notes,"line one\nline two"\n'
    'Total,"1,234.50"\n'
)

QUOTE_CSV_RECORDS = 6


def chunked(data, size):
    return [data[i:i + size] for i in range(0, len(data), size)]


@pytest.fixture
def quote_csv():
    """Latin-1 encoded sample with nested quotes, umlauts and an embedded newline."""
    return QUOTE_CSV_TEXT.encode("latin-1")


@pytest.fixture
def quote_crlf_csv():
    return QUOTE_CSV_TEXT.replace("\n", "\r\n").encode("latin-1")
