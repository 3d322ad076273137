import pytest

from csvstream.tokenizer import State, Tokenizer

from conftest import QUOTE_CSV_TEXT, chunked


def parse(chunks, newline="\n"):
    tok = Tokenizer(",", '"', newline)
    records = []
    for chunk in chunks:
        records.extend(tok.feed(chunk))
    records.extend(tok.flush())
    return records


def test_two_records():
    assert parse(["a,b\nc,d\n"]) == [["a", "b"], ["c", "d"]]


def test_line_break_spanning_chunks():
    records = parse(["hey,yo\r", "\nfoo,bar"], newline="\r\n")
    assert records == [["hey", "yo"], ["foo", "bar"]]


def test_quotes_spanning_chunks():
    records = parse(['"""hey,yo"', '"",foo,bar'])
    assert records == [['"hey,yo"', "foo", "bar"]]


def test_nested_quotes():
    records = parse([QUOTE_CSV_TEXT])
    assert records[1] == [
        "Job Description:", '"Etiketten", "Borthener Obst" - A4 (Neutral)'
    ]
    assert records[4] == ["Notes", "line one\nline two"]
    assert records[5] == ["Total", "1,234.50"]


@pytest.mark.parametrize("text,expected", [
    ('a"b,c\n', [['a"b', "c"]]),
    ('"ab"cd,e\n', [["abcd", "e"]]),
    ('"a"b"c\n', [['ab"c']]),
    ('"",x\n', [["", "x"]]),
    ('x,"a\nb"\n', [["x", "a\nb"]]),
])
def test_quote_policy(text, expected):
    assert parse([text]) == expected


def test_empty_line_is_single_empty_field():
    assert parse(["a\n\nb\n"]) == [["a"], [""], ["b"]]


def test_trailing_delimiter_adds_no_record():
    assert parse(["a,b\n"]) == [["a", "b"]]
    assert parse(["a,b"]) == [["a", "b"]]
    assert parse(["a,\n"]) == [["a", ""]]


def test_empty_input():
    assert parse([]) == []
    assert parse([""]) == []


def test_partial_newline_at_end_is_data():
    assert parse(["a,b\r"], newline="\r\n") == [["a", "b\r"]]


def test_broken_newline_match_restarts():
    assert parse(["a\r", "\r", "\nb"], newline="\r\n") == [["a\r"], ["b"]]
    assert parse(["a\rb\r\n"], newline="\r\n") == [["a\rb"]]


def test_multichar_newline_inside_quotes():
    assert parse(['"a\r', '\nb"\r\n'], newline="\r\n") == [["a\r\nb"]]


@pytest.mark.parametrize("newline", ["\n", "\r\n"])
def test_chunk_boundaries_do_not_change_records(newline):
    text = QUOTE_CSV_TEXT.replace("\n", newline)
    expected = parse([text], newline=newline)
    assert len(expected) == 6

    for cut in range(len(text) + 1):
        assert parse([text[:cut], text[cut:]], newline=newline) == expected
    for size in (1, 2, 3, 7):
        assert parse(chunked(text, size), newline=newline) == expected


def test_record_count_tracks_emissions():
    tok = Tokenizer(",", '"', "\n")
    assert tok.record_count == 0
    assert len(tok.feed("a\nb\nc")) == 2
    assert tok.record_count == 2
    assert tok.flush() == [["c"]]
    assert tok.record_count == 3


def test_state_carries_over():
    tok = Tokenizer(",", '"', "\r\n")
    tok.feed('x,"ab')
    assert tok.state.in_quotes
    assert tok.state.current_record == ["x"]
    tok.feed('"')
    assert tok.state.state is State.QUOTE_IN_QUOTED_FIELD
    tok.feed("\r")
    assert tok.state.state is State.MATCHING_RECORD_DELIMITER
    assert tok.state.newline_match_progress == 1
    assert tok.feed("\n") == [["x", "ab"]]
    assert tok.state.state is State.FIELD_START
    assert not tok.state.pending


def test_bytes_chunks():
    tok = Tokenizer(b";", b"'", b"\n")
    assert tok.feed(b"a;'b;c'\nd") == [[b"a", b"b;c"]]
    assert tok.flush() == [[b"d"]]


def test_on_record_sees_earlier_record_count():
    seen = []
    tok = Tokenizer(",", '"', "\n", on_record=lambda rec: seen.append((rec, tok.record_count)))
    assert tok.feed("a\nb\nc") == [["a"], ["b"]]
    assert tok.flush() == [["c"]]
    assert seen == [(["a"], 0), (["b"], 1), (["c"], 2)]
    assert tok.record_count == 3
