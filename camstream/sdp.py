"""A lenient parser for SDP session descriptions as sent in RTSP DESCRIBE responses."""

from __future__ import annotations

from dataclasses import dataclass, field


class SdpParseError(ValueError):
    """A malformed SDP session description."""


@dataclass(frozen=True)
class SdpAttribute:
    """An `a=` line: a name and, for value attributes, the text after the colon."""

    attribute: str
    value: str | None = None

    @classmethod
    def _from_line(cls, text: str) -> SdpAttribute:
        name, colon, value = text.partition(":")
        return cls(attribute=name, value=value if colon else None)


@dataclass(frozen=True)
class SdpMedia:
    """An `m=` section with the lines that follow it."""

    media: str
    port: int
    proto: str
    fmt: str
    num_ports: int | None = None
    title: str | None = None
    connections: tuple[str, ...] = ()
    bandwidths: tuple[str, ...] = ()
    key: str | None = None
    attributes: tuple[SdpAttribute, ...] = ()

    @classmethod
    def _from_line(cls, text: str, line_no: int) -> SdpMedia:
        parts = text.split(maxsplit=3)
        if len(parts) < 4:
            raise SdpParseError(f"line {line_no}: invalid media line {text!r}")
        media, port_str, proto, fmt = parts
        port_part, slash, count_part = port_str.partition("/")
        if not port_part.isdigit() or (slash and not count_part.isdigit()):
            raise SdpParseError(f"line {line_no}: invalid media port {port_str!r}")
        return cls(
            media=media,
            port=int(port_part),
            proto=proto,
            fmt=fmt.strip(),
            num_ports=int(count_part) if slash else None,
        )


@dataclass
class _MediaBuilder:
    media: SdpMedia
    title: str | None = None
    connections: list[str] = field(default_factory=list)
    bandwidths: list[str] = field(default_factory=list)
    key: str | None = None
    attributes: list[SdpAttribute] = field(default_factory=list)

    def build(self) -> SdpMedia:
        m = self.media
        return SdpMedia(
            media=m.media,
            port=m.port,
            proto=m.proto,
            fmt=m.fmt,
            num_ports=m.num_ports,
            title=self.title,
            connections=tuple(self.connections),
            bandwidths=tuple(self.bandwidths),
            key=self.key,
            attributes=tuple(self.attributes),
        )


@dataclass(frozen=True)
class SdpSession:
    """A parsed session description.

    Missing optional lines, including `o=`, are tolerated since many
    cameras omit them.
    """

    version: str | None = None
    origin: str | None = None
    session_name: str | None = None
    information: str | None = None
    uri: str | None = None
    emails: tuple[str, ...] = ()
    phones: tuple[str, ...] = ()
    connection: str | None = None
    bandwidths: tuple[str, ...] = ()
    times: tuple[str, ...] = ()
    key: str | None = None
    attributes: tuple[SdpAttribute, ...] = ()
    medias: tuple[SdpMedia, ...] = ()

    @classmethod
    def parse(cls, raw: bytes) -> SdpSession:
        """Parses SDP text, raising SdpParseError if it is malformed."""
        try:
            text = bytes(raw).decode("utf-8")
        except UnicodeDecodeError as e:
            raise SdpParseError(f"SDP is not valid UTF-8: {e}") from e

        session: dict[str, str | None] = {}
        emails: list[str] = []
        phones: list[str] = []
        bandwidths: list[str] = []
        times: list[str] = []
        attributes: list[SdpAttribute] = []
        medias: list[_MediaBuilder] = []

        for line_no, line in enumerate(text.split("\n"), start=1):
            line = line.rstrip("\r")
            if not line.strip():
                continue
            if len(line) < 2 or line[1] != "=" or not line[0].isascii() or not line[0].isalpha():
                raise SdpParseError(f"line {line_no}: invalid SDP line {line!r}")
            kind, value = line[0], line[2:]

            if medias:
                current = medias[-1]
                if kind == "m":
                    medias.append(_MediaBuilder(SdpMedia._from_line(value, line_no)))
                elif kind == "i":
                    current.title = value
                elif kind == "c":
                    current.connections.append(value)
                elif kind == "b":
                    current.bandwidths.append(value)
                elif kind == "k":
                    current.key = value
                elif kind == "a":
                    current.attributes.append(SdpAttribute._from_line(value))
                continue

            if kind == "v":
                if value.strip() != "0":
                    raise SdpParseError(f"line {line_no}: unsupported SDP version {value!r}")
                session["version"] = value.strip()
            elif kind == "o":
                session["origin"] = value
            elif kind == "s":
                session["session_name"] = value
            elif kind == "i":
                session["information"] = value
            elif kind == "u":
                session["uri"] = value
            elif kind == "e":
                emails.append(value)
            elif kind == "p":
                phones.append(value)
            elif kind == "c":
                session["connection"] = value
            elif kind == "b":
                bandwidths.append(value)
            elif kind == "t":
                times.append(value)
            elif kind == "k":
                session["key"] = value
            elif kind == "a":
                attributes.append(SdpAttribute._from_line(value))
            elif kind == "m":
                medias.append(_MediaBuilder(SdpMedia._from_line(value, line_no)))

        return cls(
            version=session.get("version"),
            origin=session.get("origin"),
            session_name=session.get("session_name"),
            information=session.get("information"),
            uri=session.get("uri"),
            emails=tuple(emails),
            phones=tuple(phones),
            connection=session.get("connection"),
            bandwidths=tuple(bandwidths),
            times=tuple(times),
            key=session.get("key"),
            attributes=tuple(attributes),
            medias=tuple(m.build() for m in medias),
        )