import pytest

from camstream.describe import parse_describe
from camstream.message import Response

BASE = "rtsp://192.0.2.10:554/live/"
REQUEST = "rtsp://192.0.2.10:554/live"

SDP = """v=0
o=- 1 1 IN IP4 0.0.0.0
s=Session
t=0 0
a=tool:Example Tool
a=control:*
m=video 0 RTP/AVP 96
a=rtpmap:96 H264/90000
a=control:trackID=1
m=audio 0 RTP/AVP 0
a=control:trackID=2
"""


def _response(sdp: str, headers=None) -> Response:
    if headers is None:
        headers = (("CSeq", "2"), ("Content-Type", "application/sdp"), ("Content-Base", BASE))
    return Response(
        status=200, reason="OK", headers=headers, body=sdp.replace("\n", "\r\n").encode()
    )


def test_full_presentation():
    p = parse_describe(REQUEST, _response(SDP))
    assert p.base_url == BASE
    assert p.control == BASE
    assert p.tool == "Example Tool"
    assert len(p.streams) == 2

    video, audio = p.streams
    assert video.media == "video"
    assert video.encoding_name == "h264"
    assert video.rtp_payload_type == 96
    assert video.clock_rate_hz == 90_000
    assert video.control == BASE + "trackID=1"
    assert video.state is None

    assert audio.media == "audio"
    assert audio.encoding_name == "pcmu"
    assert audio.rtp_payload_type == 0
    assert audio.clock_rate_hz == 8_000
    assert audio.channels == 1
    assert audio.control == BASE + "trackID=2"


def test_missing_content_type_is_tolerated():
    p = parse_describe(REQUEST, _response(SDP, headers=(("CSeq", "2"),)))
    assert len(p.streams) == 2
    assert p.base_url == REQUEST


def test_unexpected_content_type():
    resp = _response(SDP, headers=(("CSeq", "2"), ("Content-Type", "text/html")))
    with pytest.raises(ValueError, match="unexpected content type text/html") as info:
        parse_describe(REQUEST, resp)
    assert "Content-Type: text/html" in str(info.value)


def test_content_location_used_without_content_base():
    location = "rtsp://192.0.2.10/other/"
    resp = _response(
        SDP, headers=(("Content-Type", "application/sdp"), ("Content-Location", location))
    )
    p = parse_describe(REQUEST, resp)
    assert p.base_url == location
    assert p.streams[0].control == location + "trackID=1"


def test_bad_content_base():
    resp = _response(
        SDP, headers=(("Content-Type", "application/sdp"), ("Content-Base", "not a url"))
    )
    with pytest.raises(ValueError, match="bad Content-Base"):
        parse_describe(REQUEST, resp)


def test_control_defaults_to_request_url():
    sdp = SDP.replace("a=control:*\n", "")
    p = parse_describe(REQUEST, _response(sdp))
    assert p.control == REQUEST


def test_relative_session_control():
    sdp = SDP.replace("a=control:*", "a=control:sub")
    p = parse_describe(REQUEST, _response(sdp))
    assert p.control == BASE + "sub"


def test_tool_after_control_is_not_read():
    sdp = SDP.replace("a=tool:Example Tool\na=control:*", "a=control:*\na=tool:Example Tool")
    p = parse_describe(REQUEST, _response(sdp))
    assert p.tool is None
    assert p.control == BASE


def test_unparseable_stream_skipped():
    sdp = SDP + "m=application 0 RTP/AVP 120\na=control:trackID=3\n"
    p = parse_describe(REQUEST, _response(sdp))
    assert [s.media for s in p.streams] == ["video", "audio"]


def test_no_parseable_streams():
    sdp = "v=0\ns=Session\nt=0 0\nm=application 0 RTP/AVP 120\n"
    with pytest.raises(ValueError, match=r"No parseable streams \(and 1 unparseable streams\)"):
        parse_describe(REQUEST, _response(sdp))


def test_bad_sdp():
    with pytest.raises(ValueError, match="Unable to parse SDP"):
        parse_describe(REQUEST, _response("this is not sdp\n"))