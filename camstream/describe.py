"""Parsing of RTSP DESCRIBE responses into presentations."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from camstream.control import join_control
from camstream.media import Stream, parse_media
from camstream.message import Response, mostly_ascii
from camstream.sdp import SdpParseError, SdpSession

log = logging.getLogger(__name__)

_SCHEME = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*:")


@dataclass
class Presentation:
    """The streams of a DESCRIBE response and the URLs that control them."""

    streams: list[Stream]
    base_url: str
    control: str
    tool: str | None = None
    extra: dict = field(default_factory=dict, repr=False)


def _checked_url(header: str, value: str) -> str:
    if _SCHEME.match(value) is None or any(c.isspace() for c in value):
        raise ValueError(f"bad {header} {value!r}: not an absolute URL")
    return value


def _base_url(request_url: str, response: Response) -> str:
    for header in ("Content-Base", "Content-Location"):
        value = response.header(header)
        if value is not None:
            return _checked_url(header, value)
    return request_url


def parse_describe(request_url: str, response: Response) -> Presentation:
    """Parses a successful DESCRIBE response, raising ValueError if it is unusable.

    Streams that cannot be parsed are logged and skipped.
    """
    content_type = response.header("Content-Type")
    if content_type is None:
        log.warning(
            "DESCRIBE response at %s has no content type; trying sdp anyway", request_url
        )
    elif content_type != "application/sdp":
        raise ValueError(
            f"DESCRIBE response at {request_url} has unexpected content type "
            f"{content_type}:\n{mostly_ascii(response.to_bytes())}"
        )

    raw_sdp = mostly_ascii(response.body)
    try:
        sdp = SdpSession.parse(response.body)
    except SdpParseError as e:
        raise ValueError(f"Unable to parse SDP: {e}\n\n{raw_sdp}") from e

    base_url = _base_url(request_url, response)

    control = None
    tool = None
    for a in sdp.attributes:
        if a.attribute == "control":
            control = None if a.value is None else join_control(base_url, a.value)
            break
        if a.attribute == "tool":
            tool = a.value

    streams = []
    for i, media in enumerate(sdp.medias):
        try:
            streams.append(parse_media(base_url, media))
        except ValueError as e:
            log.warning("Ignoring unparseable stream %d: %s\nraw SDP: %s", i, e, raw_sdp)

    if not streams:
        raise ValueError(
            f"No parseable streams (and {len(sdp.medias)} unparseable streams)"
        )

    return Presentation(
        streams=streams,
        base_url=base_url,
        control=control if control is not None else request_url,
        tool=tool,
    )