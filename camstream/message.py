"""Minimal RTSP response messages: parsing, serializing and header access."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_STATUS_LINE = re.compile(r"(RTSP/\d+\.\d+) ([0-9]{3})(?: (.*))?")
_DECIMAL = re.compile(r"\+?[0-9]+")
_U32_MAX = 0xFFFF_FFFF


class RtspParseError(ValueError):
    """A malformed RTSP message."""


@dataclass(frozen=True)
class Response:
    """An RTSP response: status line, headers in order, and body."""

    status: int
    reason: str = ""
    headers: tuple[tuple[str, str], ...] = field(default_factory=tuple)
    body: bytes = b""
    version: str = "RTSP/1.0"

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "headers", tuple((str(k), str(v).strip()) for k, v in self.headers)
        )
        object.__setattr__(self, "body", bytes(self.body))

    @classmethod
    def parse(cls, raw: bytes) -> Response:
        """Parses a complete response, raising RtspParseError if malformed."""
        raw = bytes(raw)
        head, sep, rest = raw.partition(b"\r\n\r\n")
        if not sep:
            head, sep, rest = raw.partition(b"\n\n")
        if not sep:
            raise RtspParseError("response has no end of headers")
        try:
            text = head.decode("utf-8")
        except UnicodeDecodeError as e:
            raise RtspParseError(f"response head is not valid UTF-8: {e}") from e
        lines = text.replace("\r\n", "\n").split("\n")
        match = _STATUS_LINE.fullmatch(lines[0])
        if match is None:
            raise RtspParseError(f"bad status line {lines[0]!r}")
        version, status, reason = match.group(1), int(match.group(2)), match.group(3) or ""

        headers: list[tuple[str, str]] = []
        for line in lines[1:]:
            name, colon, value = line.partition(":")
            name = name.strip()
            if not colon or not name:
                raise RtspParseError(f"bad header line {line!r}")
            headers.append((name, value.strip()))

        response = cls(status=status, reason=reason, headers=tuple(headers), version=version)
        length_str = response.header("Content-Length")
        if length_str is None:
            body = rest
        else:
            if not length_str.isdigit():
                raise RtspParseError(f"bad Content-Length {length_str!r}")
            length = int(length_str)
            if len(rest) < length:
                raise RtspParseError(
                    f"body has {len(rest)} bytes; Content-Length says {length}"
                )
            body = rest[:length]
        return cls(
            status=status, reason=reason, headers=response.headers, body=body, version=version
        )

    def header(self, name: str) -> str | None:
        """Returns the first value of the named header (case-insensitive), if any."""
        wanted = name.lower()
        return next((v for k, v in self.headers if k.lower() == wanted), None)

    def to_bytes(self) -> bytes:
        """Serializes the response, adding Content-Length for a non-empty body."""
        status_line = f"{self.version} {self.status}"
        if self.reason:
            status_line += f" {self.reason}"
        lines = [status_line]
        lines.extend(f"{k}: {v}" for k, v in self.headers)
        if self.body and self.header("Content-Length") is None:
            lines.append(f"Content-Length: {len(self.body)}")
        head = "\r\n".join(lines) + "\r\n\r\n"
        return head.encode("utf-8") + self.body


def get_cseq(response: Response) -> int | None:
    """Returns the CSeq of a response, or None if missing or unparseable."""
    value = response.header("CSeq")
    if value is None or _DECIMAL.fullmatch(value) is None:
        return None
    cseq = int(value)
    return cseq if cseq <= _U32_MAX else None


def mostly_ascii(data: bytes) -> str:
    """Renders mostly-ASCII bytes readably, in double quotes.

    Printable ASCII and newlines appear as themselves, carriage returns as
    an escape, and other bytes as uppercase hex escapes.
    """
    parts = ['"']
    for b in bytes(data):
        if b == 0x0D:
            parts.append("\\r")
        elif b == 0x0A or 0x20 <= b <= 0x7E:
            parts.append(chr(b))
        else:
            parts.append(f"\\x{b:02X}")
    parts.append('"')
    return "".join(parts)