import struct

import pytest

from camstream.inorder import InorderParser, RtcpError, UnknownRtcpSsrcPolicy
from camstream.packet import RtpHeader, RtpPacketError, build_rtp
from camstream.timeline import Timeline

SSRC = 0xD25614E


def _rtp(seq, ts, payload, pt=96, ssrc=SSRC, mark=True):
    header = RtpHeader(sequence_number=seq, timestamp=ts, payload_type=pt, ssrc=ssrc, mark=mark)
    return build_rtp(header, payload)


def _sender_report(ssrc, rtp_timestamp):
    return struct.pack(">BBHIIIIII", 0x80, 200, 6, ssrc, 0, 0, rtp_timestamp, 0, 0)


def test_geovision_pt50_packet():
    timeline = Timeline(None, 90_000, None)
    parser = InorderParser(SSRC, None, UnknownRtcpSsrcPolicy.DEFAULT)
    pkt = parser.rtp(timeline, 0, _rtp(0x1234, 141000, b"foo", pt=105))
    assert pkt.payload == b"foo"
    assert parser.rtp(timeline, 0, _rtp(0x1234, 141000, b"bar", pt=50)) is None


def test_out_of_order_udp():
    timeline = Timeline(None, 90_000, None)
    parser = InorderParser(SSRC, None, UnknownRtcpSsrcPolicy.DEFAULT)
    p = parser.rtp(timeline, 0, _rtp(2, 2, b"pkt 2"), tcp=False)
    assert p.timestamp.elapsed() == 0
    assert parser.rtp(timeline, 0, _rtp(1, 1, b"pkt 1"), tcp=False) is None
    p = parser.rtp(timeline, 0, _rtp(3, 3, b"pkt 3"), tcp=False)
    # The skipped packet must not have adjusted time.
    assert p.timestamp.elapsed() == 1


def test_out_of_order_tcp_raises():
    timeline = Timeline(None, 90_000, None)
    parser = InorderParser(SSRC, None, UnknownRtcpSsrcPolicy.DEFAULT)
    parser.rtp(timeline, 0, _rtp(2, 2, b"pkt 2"))
    with pytest.raises(RtpPacketError) as info:
        parser.rtp(timeline, 0, _rtp(1, 1, b"pkt 1"))
    assert info.value.sequence_number == 1


def test_loss_reported():
    timeline = Timeline(None, 90_000, None)
    parser = InorderParser(None, None, UnknownRtcpSsrcPolicy.DEFAULT)
    first = parser.rtp(timeline, 0, _rtp(1, 10, b"a"))
    second = parser.rtp(timeline, 0, _rtp(4, 20, b"b"))
    assert first.loss == 0
    assert second.loss == 2
    assert parser.seen_rtp_packets == 2


def test_wrong_ssrc_raises():
    timeline = Timeline(None, 90_000, None)
    parser = InorderParser(SSRC, None, UnknownRtcpSsrcPolicy.DEFAULT)
    with pytest.raises(RtpPacketError) as info:
        parser.rtp(timeline, 0, _rtp(1, 1, b"x", ssrc=SSRC + 1))
    assert info.value.ssrc == SSRC + 1


def test_ssrc_learned_from_rtp():
    timeline = Timeline(None, 90_000, None)
    parser = InorderParser(None, None, UnknownRtcpSsrcPolicy.DEFAULT)
    parser.rtp(timeline, 0, _rtp(1, 1, b"x"))
    assert parser.ssrc == SSRC
    with pytest.raises(RtpPacketError):
        parser.rtp(timeline, 0, _rtp(2, 2, b"y", ssrc=SSRC + 1))


def test_corrupt_rtp_raises():
    timeline = Timeline(None, 90_000, None)
    parser = InorderParser(None, None, UnknownRtcpSsrcPolicy.DEFAULT)
    with pytest.raises(RtpPacketError) as info:
        parser.rtp(timeline, 0, b"\x80\x60")
    assert "corrupt RTP header" in info.value.description


def test_timeline_jump_raises():
    timeline = Timeline(100, 90_000, 10)
    parser = InorderParser(None, None, UnknownRtcpSsrcPolicy.DEFAULT)
    with pytest.raises(RtpPacketError):
        parser.rtp(timeline, 0, _rtp(1, 99, b"x"))


def test_rtcp_sender_report_places_timestamp():
    timeline = Timeline(1000, 90_000, 10)
    parser = InorderParser(SSRC, None, UnknownRtcpSsrcPolicy.DEFAULT)
    raw = _sender_report(SSRC, 990)
    pkt = parser.rtcp(timeline, 3, raw)
    assert pkt.stream_id == 3
    assert pkt.raw == raw
    assert pkt.rtp_timestamp.elapsed() == -10
    assert parser.seen_rtcp_packets == 1


def test_rtcp_unknown_ssrc_dropped_by_default():
    timeline = Timeline(None, 90_000, None)
    parser = InorderParser(SSRC, None, UnknownRtcpSsrcPolicy.DEFAULT)
    assert parser.rtcp(timeline, 0, _sender_report(SSRC + 1, 5)) is None
    assert parser.seen_rtcp_packets == 0


def test_rtcp_unknown_ssrc_abort():
    timeline = Timeline(None, 90_000, None)
    parser = InorderParser(SSRC, None, UnknownRtcpSsrcPolicy.ABORT_SESSION)
    with pytest.raises(RtcpError):
        parser.rtcp(timeline, 0, _sender_report(SSRC + 1, 5))


def test_rtcp_unknown_ssrc_processed():
    timeline = Timeline(None, 90_000, None)
    parser = InorderParser(SSRC, None, UnknownRtcpSsrcPolicy.PROCESS_PACKETS)
    pkt = parser.rtcp(timeline, 0, _sender_report(SSRC + 1, 5))
    assert pkt.rtp_timestamp.elapsed() == 0
    assert parser.ssrc == SSRC


def test_rtcp_learns_ssrc():
    timeline = Timeline(None, 90_000, None)
    parser = InorderParser(None, None, UnknownRtcpSsrcPolicy.DEFAULT)
    parser.rtcp(timeline, 0, _sender_report(SSRC, 5))
    assert parser.ssrc == SSRC
    with pytest.raises(RtpPacketError):
        parser.rtp(timeline, 0, _rtp(1, 6, b"x", ssrc=SSRC + 1))


def test_rtcp_bad_version():
    timeline = Timeline(None, 90_000, None)
    parser = InorderParser(None, None, UnknownRtcpSsrcPolicy.DEFAULT)
    raw = bytearray(_sender_report(SSRC, 5))
    raw[0] = 0x40
    with pytest.raises(RtcpError):
        parser.rtcp(timeline, 0, bytes(raw))


def test_rtcp_truncated():
    timeline = Timeline(None, 90_000, None)
    parser = InorderParser(None, None, UnknownRtcpSsrcPolicy.DEFAULT)
    with pytest.raises(RtcpError):
        parser.rtcp(timeline, 0, _sender_report(SSRC, 5)[:20])