import pytest

from camstream.message import Response, RtspParseError, get_cseq, mostly_ascii

UNAUTHORIZED = (
    b"RTSP/1.0 401 Unauthorized\r\n"
    b"CSeq: 1   \r\n"
    b"WWW-Authenticate: Digest realm=\"camera\", nonce=\"placeholder\"\r\n"
    b"\r\n"
)

DESCRIBE = (
    b"RTSP/1.0 200 OK\r\n"
    b"CSeq: 2\r\n"
    b"Content-Type: application/sdp\r\n"
    b"Content-Base: rtsp://127.0.0.1/\r\n"
    b"Content-Length: 10\r\n"
    b"\r\n"
    b"v=0\r\ns=x\r\nEXTRA"
)


def test_trailing_whitespace_in_cseq_is_stripped():
    response = Response.parse(UNAUTHORIZED)
    assert get_cseq(response) == 1
    assert response.status == 401
    assert response.reason == "Unauthorized"


def test_parse_body_uses_content_length():
    response = Response.parse(DESCRIBE)
    assert response.body == b"v=0\r\ns=x\r\n"
    assert response.header("content-type") == "application/sdp"
    assert response.header("CONTENT-BASE") == "rtsp://127.0.0.1/"
    assert get_cseq(response) == 2


def test_missing_header_is_none():
    response = Response.parse(DESCRIBE)
    assert response.header("Session") is None


def test_round_trip():
    original = Response(
        status=200,
        reason="OK",
        headers=[("CSeq", "3"), ("Session", "634214675641")],
        body=b"hello",
    )
    parsed = Response.parse(original.to_bytes())
    assert parsed.body == b"hello"
    assert parsed.header("Session") == "634214675641"
    assert parsed.header("Content-Length") == "5"
    assert Response.parse(parsed.to_bytes()) == parsed


def test_get_cseq_missing_or_bad():
    assert get_cseq(Response(status=200, headers=[])) is None
    assert get_cseq(Response(status=200, headers=[("CSeq", "abc")])) is None
    assert get_cseq(Response(status=200, headers=[("CSeq", "4294967296")])) is None
    assert get_cseq(Response(status=200, headers=[("CSeq", "4294967295")])) == 4294967295


def test_short_body_is_error():
    raw = b"RTSP/1.0 200 OK\r\nContent-Length: 100\r\n\r\nshort"
    with pytest.raises(RtspParseError):
        Response.parse(raw)


def test_bad_status_line_is_error():
    with pytest.raises(RtspParseError, match="bad status line"):
        Response.parse(b"HTTP/1.1 200 OK\r\n\r\n")


def test_missing_header_terminator_is_error():
    with pytest.raises(RtspParseError):
        Response.parse(b"RTSP/1.0 200 OK\r\nCSeq: 1\r\n")


def test_bad_header_line_is_error():
    with pytest.raises(RtspParseError, match="bad header line"):
        Response.parse(b"RTSP/1.0 200 OK\r\nnocolon\r\n\r\n")


def test_mostly_ascii_escapes():
    assert mostly_ascii(b'a"b\r\n\x00\xff') == '"a"b\\r\n\\x00\\xFF"'


def test_mostly_ascii_plain_text_unchanged():
    text = b"v=0 o=- 1 1 IN IP4 127.0.0.1"
    assert mostly_ascii(text) == '"' + text.decode() + '"'