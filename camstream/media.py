"""Turning SDP media descriptions into stream descriptions."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from camstream.control import join_control, static_payload_type
from camstream.sdp import SdpMedia

log = logging.getLogger(__name__)

_DECIMAL = re.compile(r"\+?[0-9]+")
_U8_MAX = 0xFF
_U16_MAX = 0xFFFF
_U32_MAX = 0xFFFF_FFFF


def _parse_unsigned(text: str, maximum: int) -> int | None:
    if _DECIMAL.fullmatch(text) is None:
        return None
    value = int(text)
    return value if value <= maximum else None


def _parse_float(text: str) -> float | None:
    if text != text.strip() or "_" in text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


@dataclass
class StreamInit:
    """What SETUP and PLAY responses told about a stream."""

    ssrc: int | None = None
    initial_seq: int | None = None
    initial_rtptime: int | None = None


@dataclass
class Stream:
    """One stream of a presentation.

    `state` is None until the stream has been set up.
    """

    media: str
    encoding_name: str
    clock_rate_hz: int
    rtp_payload_type: int
    control: str | None = None
    channels: int | None = None
    framerate: float | None = None
    format_specific_params: str | None = None
    state: StreamInit | None = None


def parse_media(base_url: str, media: SdpMedia) -> Stream:
    """Parses an SDP media description into a Stream.

    Raises ValueError if the description cannot be used.
    """
    proto = media.proto
    if not proto.startswith("RTP/") and "/RTP/" not in proto and "MP2T/" not in proto:
        raise ValueError("Expected RTP-based proto")

    # Of several listed payload types, the first is the default.
    formats = media.fmt.split()
    if not formats:
        raise ValueError("media description has no payload type")
    payload_type_str = formats[0]
    payload_type = _parse_unsigned(payload_type_str, _U8_MAX)
    if payload_type is None:
        raise ValueError(f"invalid RTP payload type {payload_type_str!r}")
    if payload_type & 0x80:
        raise ValueError(f"invalid RTP payload type {payload_type}")

    rtpmap = None
    fmtp = None
    control = None
    framerate = None
    for a in media.attributes:
        if a.attribute == "rtpmap":
            if a.value is None:
                raise ValueError("rtpmap attribute with no value")
            # Some cameras send a trailing space.
            value = a.value.rstrip(" ")
            rtpmap_pt, space, rest = value.partition(" ")
            if not space:
                raise ValueError("invalid rtmap attribute")
            if rtpmap_pt == payload_type_str:
                rtpmap = rest
        elif a.attribute == "fmtp":
            if a.value is None:
                raise ValueError("fmtp attribute with no value")
            fmtp_pt, space, rest = a.value.partition(" ")
            if space:
                matches = fmtp_pt == payload_type_str
                if matches or fmtp is None:
                    if not matches:
                        log.warning(
                            "fmtp payload type '%s' doesn't match rtp payload type '%s'. "
                            "using fmtp payload type",
                            fmtp_pt,
                            payload_type_str,
                        )
                    fmtp = rest
            else:
                # Some cameras send a payload type with no parameters.
                log.warning("ignoring invalid fmtp attribute value %r", a.value)
        elif a.attribute == "control":
            control = None if a.value is None else join_control(base_url, a.value)
        elif a.attribute == "framerate" and a.value is not None:
            parsed = _parse_float(a.value)
            if parsed is not None:
                framerate = parsed

    if rtpmap is not None:
        encoding_name, slash, rest = rtpmap.partition("/")
        if not slash:
            raise ValueError("invalid rtpmap attribute")
        clock_rate_str, slash, channels_str = rest.partition("/")
        clock_rate = _parse_unsigned(clock_rate_str, _U32_MAX)
        if clock_rate is None:
            raise ValueError("bad clockrate in rtpmap")
        channels = None
        if slash:
            channels = _parse_unsigned(channels_str, _U16_MAX)
            if not channels:
                raise ValueError(f"Invalid channels specification {channels_str!r}")
    else:
        static = static_payload_type(payload_type)
        if static is None:
            raise ValueError(
                "Expected rtpmap parameter or assigned static payload type "
                f"(got {payload_type})"
            )
        if static.media != media.media:
            raise ValueError(
                f"SDP media type {media.media} must match RTP payload type {static!r}"
            )
        encoding_name = static.encoding
        clock_rate = static.clock_rate
        channels = static.channels

    return Stream(
        media=media.media,
        encoding_name=encoding_name.lower(),
        clock_rate_hz=clock_rate,
        rtp_payload_type=payload_type,
        control=control,
        channels=channels,
        framerate=framerate,
        format_specific_params=fmtp,
    )