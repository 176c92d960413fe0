"""Static RTP payload types and joining of RTSP control URLs."""

from __future__ import annotations

import re
from dataclasses import dataclass

_SCHEME = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*:")


@dataclass(frozen=True)
class StaticPayloadType:
    """A static payload type from the RTP parameters registry."""

    encoding: str
    media: str
    clock_rate: int
    channels: int | None


def _audio(encoding: str, clock_rate: int, channels: int | None = 1) -> StaticPayloadType:
    return StaticPayloadType(encoding, "audio", clock_rate, channels)


def _video(encoding: str) -> StaticPayloadType:
    return StaticPayloadType(encoding, "video", 90_000, None)


# The registry is officially closed, so this table should never change.
_STATIC_PAYLOAD_TYPES: dict[int, StaticPayloadType] = {
    0: _audio("pcmu", 8_000),
    3: _audio("gsm", 8_000),
    4: _audio("g723", 8_000),
    5: _audio("dvi4", 8_000),
    6: _audio("dvi4", 16_000),
    7: _audio("lpc", 8_000),
    8: _audio("pcma", 8_000),
    9: _audio("g722", 8_000),
    10: _audio("l16", 441_000, 2),
    11: _audio("l16", 441_000, 1),
    12: _audio("qcelp", 8_000),
    13: _audio("cn", 8_000),
    14: _audio("mpa", 90_000, None),
    15: _audio("g728", 8_000),
    16: _audio("dvi4", 11_025),
    17: _audio("dvi4", 22_050),
    18: _audio("g729", 8_000),
    25: _video("celb"),
    26: _video("jpeg"),
    28: _video("nv"),
    31: _video("h261"),
    32: _video("mpv"),
    # The registry says audio and video; the MIME registration says video.
    33: _video("mp2t"),
    34: _video("h263"),
}


def static_payload_type(payload_type: int) -> StaticPayloadType | None:
    """Returns the registered static payload type, or None if unassigned or reserved."""
    return _STATIC_PAYLOAD_TYPES.get(payload_type)


def _is_absolute(url: str) -> bool:
    return _SCHEME.match(url) is not None


def join_control(base_url: str, control: str) -> str:
    """Joins a control URL to a base URL the way common RTSP clients do.

    This is deliberately not RFC 3986 resolution: a relative control is
    appended to the base after a slash. Raises ValueError if the result
    is not an absolute URL.
    """
    if control == "*":
        return base_url
    if _is_absolute(control) and not any(c.isspace() for c in control):
        return control
    separator = "" if base_url.endswith("/") else "/"
    joined = f"{base_url}{separator}{control}"
    if not _is_absolute(joined) or any(c.isspace() for c in joined):
        raise ValueError(
            f"unable to join base url {base_url} with control url {control!r}: "
            "not an absolute URL"
        )
    return joined