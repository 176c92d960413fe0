"""Parsing of RTSP SETUP, PLAY and OPTIONS responses."""

from __future__ import annotations

import ipaddress
import logging
import re
from dataclasses import dataclass

from camstream.control import join_control
from camstream.describe import Presentation
from camstream.message import Response

log = logging.getLogger(__name__)

_DECIMAL = re.compile(r"\+?[0-9]+")
_HEX = re.compile(r"\+?[0-9A-Fa-f]+")
_U8_MAX = 0xFF
_U16_MAX = 0xFFFF
_U32_MAX = 0xFFFF_FFFF
_DEFAULT_TIMEOUT_SEC = 60


def _parse_dec(text: str, maximum: int) -> int | None:
    if _DECIMAL.fullmatch(text) is None:
        return None
    value = int(text)
    return value if value <= maximum else None


def _parse_hex(text: str, maximum: int) -> int | None:
    if _HEX.fullmatch(text) is None:
        return None
    value = int(text, 16)
    return value if value <= maximum else None


@dataclass(frozen=True)
class SessionHeader:
    """A session id and its timeout."""

    id: str
    timeout_sec: int = _DEFAULT_TIMEOUT_SEC


@dataclass(frozen=True)
class SetupResponse:
    """What a SETUP response assigned."""

    session: SessionHeader
    ssrc: int | None = None
    channel_id: int | None = None
    source: ipaddress.IPv4Address | ipaddress.IPv6Address | None = None
    server_port: int | None = None


@dataclass(frozen=True)
class OptionsResponse:
    """Which optional methods the server supports."""

    set_parameter_supported: bool = False
    get_parameter_supported: bool = False


def parse_server_port(server_port: str) -> int:
    """Parses a consecutive `rtp-rtcp` port range, returning the RTP port.

    Raises ValueError for a single port or a non-consecutive range.
    """
    first, dash, second = server_port.partition("-")
    if dash:
        a = _parse_dec(first, _U16_MAX)
        b = _parse_dec(second, _U16_MAX)
        if a is not None and b is not None and a + 1 == b:
            return a
    raise ValueError(f"bad server_port {server_port!r}")


def _parse_session(value: str) -> SessionHeader:
    session_id, semi, timeout_str = value.partition(";")
    if not semi:
        return SessionHeader(id=value)
    timeout_str = timeout_str.strip()
    prefix = "timeout="
    if not timeout_str.startswith(prefix):
        raise ValueError(f"Unparseable Session header {value!r}")
    v = timeout_str[len(prefix):]
    timeout_sec = _parse_dec(v, _U32_MAX)
    if timeout_sec is None:
        raise ValueError(f"Unparseable timeout {v}")
    if timeout_sec == 0:
        # Would mean keepalives at an absurd rate.
        raise ValueError(f"Invalid timeout=0 in Session header {value!r}")
    return SessionHeader(id=session_id, timeout_sec=timeout_sec)


def parse_setup(response: Response) -> SetupResponse:
    """Parses a SETUP response, raising ValueError if it is unusable."""
    session_value = response.header("Session")
    if session_value is None:
        raise ValueError("Missing Session header")
    session = _parse_session(session_value)

    transport = response.header("Transport")
    if transport is None:
        raise ValueError("Missing Transport header")

    channel_id = None
    ssrc = None
    source = None
    server_port = None
    for part in transport.split(";"):
        if part.startswith("ssrc="):
            v = part[len("ssrc="):]
            ssrc = _parse_hex(v, _U32_MAX)
            if ssrc is None:
                raise ValueError(f"Unparseable ssrc {v}")
            break
        if part.startswith("interleaved="):
            n_str, dash, m_str = part[len("interleaved="):].partition("-")
            n = _parse_dec(n_str, _U8_MAX)
            if n is None:
                raise ValueError(f"bad channel number {n_str}")
            if dash:
                m = _parse_dec(m_str, _U8_MAX)
                if m is None:
                    raise ValueError(f"bad second channel number {m_str}")
                if n + 1 != m:
                    raise ValueError(f"Expected adjacent channels; got {n}-{m}")
            channel_id = n
        elif part.startswith("source="):
            s = part[len("source="):]
            try:
                source = ipaddress.ip_address(s)
            except ValueError as e:
                raise ValueError(f"Transport header has unparseable source {s!r}") from e
        elif part.startswith("server_port="):
            try:
                server_port = parse_server_port(part[len("server_port="):])
            except ValueError as e:
                raise ValueError(f"Transport header {transport!r} has bad server_port") from e

    return SetupResponse(
        session=session,
        ssrc=ssrc,
        channel_id=channel_id,
        source=source,
        server_port=server_port,
    )


def parse_play(response: Response, presentation: Presentation) -> None:
    """Applies a PLAY response's RTP-Info to the presentation's set-up streams.

    Raises ValueError on a malformed RTP-Info header.
    """
    rtp_info = response.header("RTP-Info")
    if rtp_info is None:
        return
    for entry in rtp_info.split(","):
        parts = entry.strip().split(";")
        first = parts[0]
        if not first.startswith("url="):
            raise ValueError("RTP-Info missing stream URL")
        url = join_control(presentation.base_url, first[len("url="):])

        if len(presentation.streams) == 1:
            # With one stream there is no ambiguity, so forgive a wrong or missing URL.
            stream = presentation.streams[0]
        else:
            stream = next((s for s in presentation.streams if s.control == url), None)
        if stream is None:
            log.warning("RTP-Info contains unknown stream %s", url)
            continue

        state = stream.state
        if state is None:
            log.debug(
                "PLAY response described stream %s in Uninit state",
                stream.control or presentation.control,
            )
            continue

        for part in parts[1:]:
            key, eq, value = part.partition("=")
            if not eq:
                raise ValueError("RTP-Info param has no =")
            if key == "seq":
                seq = _parse_dec(value, _U16_MAX)
                if seq is None:
                    raise ValueError(f"bad seq {value!r}")
                state.initial_seq = seq
            elif key == "rtptime":
                rtptime = _parse_dec(value, _U32_MAX)
                if rtptime is None:
                    log.warning("Unparseable rtptime in RTP-Info header %r", rtp_info)
                else:
                    state.initial_rtptime = rtptime
            elif key == "ssrc":
                ssrc = _parse_hex(value, _U32_MAX)
                if ssrc is None:
                    raise ValueError(f"Unparseable ssrc {value}")
                state.ssrc = ssrc


def parse_options(response: Response) -> OptionsResponse:
    """Parses an OPTIONS response's Public header."""
    public = response.header("Public")
    methods = {m.strip() for m in public.split(",")} if public is not None else set()
    return OptionsResponse(
        set_parameter_supported="SET_PARAMETER" in methods,
        get_parameter_supported="GET_PARAMETER" in methods,
    )