"""RTP packet headers and received packets (RFC 3550)."""

from __future__ import annotations

import struct
from dataclasses import dataclass

from camstream.timeline import Timestamp

_FIXED_HEADER = struct.Struct(">BBHII")
_RTP_VERSION = 2


class RtpPacketError(Exception):
    """A malformed RTP packet or one that violates stream expectations."""

    def __init__(
        self,
        description: str,
        *,
        data: bytes = b"",
        ssrc: int | None = None,
        sequence_number: int | None = None,
    ) -> None:
        super().__init__(description)
        self.description = description
        self.data = data
        self.ssrc = ssrc
        self.sequence_number = sequence_number


@dataclass(frozen=True)
class RtpHeader:
    """The fields of an RTP fixed header that matter to a receiver."""

    sequence_number: int
    timestamp: int
    payload_type: int
    ssrc: int
    mark: bool = False


@dataclass(frozen=True)
class ReceivedPacket:
    """An RTP packet placed on a stream's timeline."""

    timestamp: Timestamp
    payload: bytes
    stream_id: int = 0
    sequence_number: int = 0
    payload_type: int = 0
    ssrc: int = 0
    mark: bool = False
    loss: int = 0


def parse_rtp(data: bytes) -> tuple[RtpHeader, bytes]:
    """Parses an RTP packet into its header and payload.

    Raises RtpPacketError if the packet is malformed.
    """
    data = bytes(data)
    if len(data) < _FIXED_HEADER.size:
        raise RtpPacketError("too short", data=data)
    first, second, sequence_number, timestamp, ssrc = _FIXED_HEADER.unpack_from(data)
    if first >> 6 != _RTP_VERSION:
        raise RtpPacketError("must be version 2", data=data)
    has_padding = bool(first & 0x20)
    has_extension = bool(first & 0x10)
    csrc_count = first & 0x0F

    payload_start = _FIXED_HEADER.size + 4 * csrc_count
    if len(data) < payload_start:
        raise RtpPacketError("too short for CSRC list", data=data)
    if has_extension:
        if len(data) < payload_start + 4:
            raise RtpPacketError("too short for extension header", data=data)
        (extension_words,) = struct.unpack_from(">H", data, payload_start + 2)
        payload_start += 4 + 4 * extension_words
        if len(data) < payload_start:
            raise RtpPacketError("too short for extension", data=data)

    payload_end = len(data)
    if has_padding:
        if payload_end == payload_start:
            raise RtpPacketError("missing padding length", data=data)
        padding = data[-1]
        if padding == 0:
            raise RtpPacketError("invalid padding length 0", data=data)
        if padding > payload_end - payload_start:
            raise RtpPacketError("padding larger than payload", data=data)
        payload_end -= padding

    header = RtpHeader(
        sequence_number=sequence_number,
        timestamp=timestamp,
        payload_type=second & 0x7F,
        ssrc=ssrc,
        mark=bool(second & 0x80),
    )
    return header, data[payload_start:payload_end]


def build_rtp(header: RtpHeader, payload: bytes) -> bytes:
    """Serializes a minimal RTP packet: no padding, extension or CSRCs."""
    if not 0 <= header.payload_type < 0x80:
        raise ValueError(f"payload type {header.payload_type} out of range")
    if not 0 <= header.sequence_number <= 0xFFFF:
        raise ValueError(f"sequence number {header.sequence_number} out of range")
    if not 0 <= header.timestamp <= 0xFFFF_FFFF:
        raise ValueError(f"timestamp {header.timestamp} out of range")
    if not 0 <= header.ssrc <= 0xFFFF_FFFF:
        raise ValueError(f"ssrc {header.ssrc} out of range")
    second = (0x80 if header.mark else 0) | header.payload_type
    fixed = _FIXED_HEADER.pack(
        _RTP_VERSION << 6, second, header.sequence_number, header.timestamp, header.ssrc
    )
    return fixed + bytes(payload)