import pytest

from codecraft.textlines import CRLF, LF, LineSequence, detect_newline, split_payload, to_newline


@pytest.mark.parametrize("text", [
    "",
    "\n",
    "one line",
    "line1\nline2\nline3",
    "trailing\n",
    "a\r\nb\r\n",
    "mixed\r\nendings\n",
    "lone\rcarriage",
    "\n\n\n",
])
def test_split_join_round_trip(text):
    assert LineSequence.from_text(text).to_text() == text


def test_detects_crlf_only_when_consistent():
    assert detect_newline("a\r\nb\r\n") == CRLF
    assert detect_newline("a\r\nb\n") == LF
    assert detect_newline("plain") == LF


def test_crlf_lines_have_no_carriage_returns():
    seq = LineSequence.from_text("a\r\n  b\r\nc")
    assert seq.lines == ["a", "  b", "c"]
    assert seq.newline == CRLF


def test_to_newline():
    assert to_newline("a\nb\r\nc", CRLF) == "a\r\nb\r\nc"
    assert to_newline("a\r\nb", LF) == "a\nb"


def test_split_payload_accepts_either_ending():
    assert split_payload("x\r\ny\nz") == ["x", "y", "z"]


def test_splice():
    seq = LineSequence.from_text("a\nb\nc")
    seq.splice(1, 2, ["x", "y"])
    assert seq.to_text() == "a\nx\ny\nc"
