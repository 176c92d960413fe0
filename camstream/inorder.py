"""RTP/RTCP demarshalling that enforces a consistent SSRC and in-order sequence numbers."""

from __future__ import annotations

import enum
import logging
import struct
from dataclasses import dataclass

from camstream.packet import ReceivedPacket, RtpPacketError, parse_rtp
from camstream.timeline import Timeline, Timestamp

log = logging.getLogger(__name__)

_SENDER_REPORT = 200
_SENDER_REPORT_MIN_LEN = 28
_GEOVISION_PAYLOAD_TYPE = 50


class RtcpError(Exception):
    """A malformed RTCP packet or one that violates stream expectations."""


class UnknownRtcpSsrcPolicy(enum.Enum):
    """What to do with RTCP sender reports from an unexpected SSRC."""

    DEFAULT = "default"
    ABORT_SESSION = "abort_session"
    DROP_PACKETS = "drop_packets"
    PROCESS_PACKETS = "process_packets"


class _Expectation(enum.Enum):
    PLAY_RESPONSE_HEADER = "PlayResponseHeader"
    RTP_PACKET = "RtpPacket"
    RTCP_PACKET = "RtcpPacket"


@dataclass(frozen=True)
class _Ssrc:
    init: _Expectation
    ssrc: int

    def __str__(self) -> str:
        return f"Ssrc(init={self.init.value}, ssrc=0x{self.ssrc:08x})"


@dataclass(frozen=True)
class _Seq:
    init: _Expectation
    next: int

    def __str__(self) -> str:
        return f"Seq(init={self.init.value}, next={self.next})"


@dataclass(frozen=True)
class RtcpPacket:
    """A validated compound RTCP packet."""

    stream_id: int
    rtp_timestamp: Timestamp | None
    raw: bytes


def _first_rtcp_packet(data: bytes) -> bytes:
    """Validates a compound RTCP packet and returns its first packet."""
    if not data:
        raise RtcpError("empty RTCP packet")
    first = None
    pos = 0
    while pos < len(data):
        if len(data) - pos < 4:
            raise RtcpError(f"RTCP packet at offset {pos} too short for header")
        if data[pos] >> 6 != 2:
            raise RtcpError(f"RTCP packet at offset {pos} must be version 2")
        (words,) = struct.unpack_from(">H", data, pos + 2)
        length = (words + 1) * 4
        if pos + length > len(data):
            raise RtcpError(
                f"RTCP packet at offset {pos} claims length {length}, "
                f"only {len(data) - pos} bytes remain"
            )
        if first is None:
            first = data[pos : pos + length]
        pos += length
    return first


def _sender_report(pkt: bytes) -> tuple[int, int] | None:
    """Returns (ssrc, rtp_timestamp) if `pkt` is a well-formed sender report."""
    if pkt[1] != _SENDER_REPORT or len(pkt) < _SENDER_REPORT_MIN_LEN:
        return None
    (ssrc,) = struct.unpack_from(">I", pkt, 4)
    (rtp_timestamp,) = struct.unpack_from(">I", pkt, 16)
    return ssrc, rtp_timestamp


def _fmt_opt(value: object) -> str:
    return "None" if value is None else str(value)


class InorderParser:
    """Ensures packets have the expected SSRC and monotonically increasing sequence numbers.

    Over UDP, out-of-order packets are skipped; over TCP they are errors.
    """

    def __init__(
        self,
        ssrc: int | None,
        next_seq: int | None,
        unknown_rtcp_session: UnknownRtcpSsrcPolicy = UnknownRtcpSsrcPolicy.DEFAULT,
    ) -> None:
        self._ssrc = None if ssrc is None else _Ssrc(_Expectation.PLAY_RESPONSE_HEADER, ssrc)
        self._seq = None if next_seq is None else _Seq(_Expectation.PLAY_RESPONSE_HEADER, next_seq)
        self.seen_rtp_packets = 0
        self.seen_rtcp_packets = 0
        self._unknown_rtcp_session = unknown_rtcp_session
        self._seen_unknown_rtcp_session = False

    @property
    def ssrc(self) -> int | None:
        """The SSRC currently expected, if known."""
        return None if self._ssrc is None else self._ssrc.ssrc

    def rtp(
        self, timeline: Timeline, stream_id: int, data: bytes, tcp: bool = True
    ) -> ReceivedPacket | None:
        """Handles one RTP packet, returning None if it is to be skipped."""
        try:
            header, payload = parse_rtp(data)
        except RtpPacketError as e:
            raise RtpPacketError(
                f"corrupt RTP header while expecting seq={_fmt_opt(self._seq)}: "
                f"{e.description}\n{bytes(data[:64]).hex()}",
                data=bytes(data),
            ) from e

        # Some cameras send extra pt=50 packets sharing the previous packet's sequence number.
        if header.payload_type == _GEOVISION_PAYLOAD_TYPE:
            log.debug("skipping pkt with invalid payload type 50")
            return None

        sequence_number = header.sequence_number
        ssrc = header.ssrc
        expected_seq = self._seq.next if self._seq is not None else sequence_number
        loss = (sequence_number - expected_seq) & 0xFFFF

        if self._ssrc is not None and self._ssrc.ssrc != ssrc:
            raise RtpPacketError(
                f"wrong ssrc after {self.seen_rtp_packets} RTP pkts + "
                f"{self.seen_rtcp_packets} RTCP pkts; expecting "
                f"ssrc={_fmt_opt(self._ssrc)} seq={_fmt_opt(self._seq)}",
                ssrc=ssrc,
                sequence_number=sequence_number,
            )
        if self._ssrc is None:
            self._ssrc = _Ssrc(_Expectation.RTP_PACKET, ssrc)

        if loss > 0x8000:
            if tcp:
                raise RtpPacketError(
                    f"Out-of-order packet or large loss; expecting "
                    f"ssrc={_fmt_opt(self._ssrc)} seq={_fmt_opt(self._seq)}",
                    ssrc=ssrc,
                    sequence_number=sequence_number,
                )
            log.info(
                "Skipping out-of-order seq=%d when expecting ssrc=%s seq=%s",
                sequence_number,
                _fmt_opt(self._ssrc),
                _fmt_opt(self._seq),
            )
            return None

        try:
            timestamp = timeline.advance_to(header.timestamp)
        except ValueError as e:
            raise RtpPacketError(str(e), ssrc=ssrc, sequence_number=sequence_number) from e

        init = self._seq.init if self._seq is not None else _Expectation.RTP_PACKET
        self._seq = _Seq(init, (sequence_number + 1) & 0xFFFF)
        self.seen_rtp_packets += 1
        return ReceivedPacket(
            timestamp=timestamp,
            payload=payload,
            stream_id=stream_id,
            sequence_number=sequence_number,
            payload_type=header.payload_type,
            ssrc=ssrc,
            mark=header.mark,
            loss=loss,
        )

    def rtcp(
        self, timeline: Timeline, stream_id: int, data: bytes, tcp: bool = True
    ) -> RtcpPacket | None:
        """Handles one compound RTCP packet, returning None if it is to be dropped."""
        data = bytes(data)
        first = _first_rtcp_packet(data)
        rtp_timestamp = None
        sender_report = _sender_report(first)
        if sender_report is not None:
            ssrc, sr_rtp_timestamp = sender_report
            try:
                rtp_timestamp = timeline.place(sr_rtp_timestamp)
            except ValueError as e:
                raise RtcpError(f"{e} in RTCP SR") from e

            if self._ssrc is not None and self._ssrc.ssrc != ssrc:
                policy = self._unknown_rtcp_session
                if policy is UnknownRtcpSsrcPolicy.ABORT_SESSION:
                    raise RtcpError(
                        f"Expected ssrc={self._ssrc}, got RTCP SR ssrc=0x{ssrc:08x}"
                    )
                if policy is not UnknownRtcpSsrcPolicy.PROCESS_PACKETS:
                    if not self._seen_unknown_rtcp_session:
                        log.warning(
                            "saw unknown rtcp ssrc %d; rtp session has ssrc %s", ssrc, self._ssrc
                        )
                        self._seen_unknown_rtcp_session = True
                    return None
            elif (
                self._ssrc is None
                and self._unknown_rtcp_session is not UnknownRtcpSsrcPolicy.PROCESS_PACKETS
            ):
                self._ssrc = _Ssrc(_Expectation.RTCP_PACKET, ssrc)
        self.seen_rtcp_packets += 1
        return RtcpPacket(stream_id=stream_id, rtp_timestamp=rtp_timestamp, raw=data)