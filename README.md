# camstream

This package has building blocks for receiving streams from IP cameras over
RTSP. It needs nothing beyond the Python standard library and runs on
Python 3.10 and later.

## Modules

- `camstream.message` holds `Response`. `Response.parse(raw)` reads a
  complete RTSP response. `Response.header(name)` looks up a header without
  regard to case. `Response.to_bytes()` serializes the response again.
  `get_cseq(response)` returns the `CSeq` as an integer, or `None` if it is
  missing or cannot be parsed. `mostly_ascii(data)` renders raw bytes in a
  readable way for error messages.
- `camstream.sdp` holds `SdpSession.parse(raw)`, a lenient SDP parser. It
  produces `SdpSession`, `SdpMedia` and `SdpAttribute` values. It accepts
  descriptions that lack optional lines such as `o=`.
- `camstream.control` holds `join_control(base_url, control)`, which joins
  control URLs the way common RTSP clients do: a relative control is
  appended after a slash, and `*` means the base URL itself. It also holds
  `static_payload_type(pt)`, which looks up a type in the static RTP payload
  type registry.
- `camstream.media` holds `parse_media(base_url, media)`, which turns one SDP
  media section into a `Stream`. A `Stream` has `media`, `encoding_name`,
  `clock_rate_hz`, `rtp_payload_type`, `control`, `channels`, `framerate`,
  `format_specific_params` and `state`.
- `camstream.describe` holds `parse_describe(request_url, response)`, which
  builds a `Presentation` from a `DESCRIBE` response. A `Presentation` has
  `streams`, `base_url`, `control` and `tool`. Streams that cannot be parsed
  are logged and skipped.
- `camstream.session` reads the responses to the other requests.
  `parse_setup(response)` returns a `SetupResponse` with the session id and
  timeout, the SSRC, the interleaved channel, the source and the server
  port. `parse_play(response, presentation)` copies the `RTP-Info` values
  (`seq`, `rtptime`, `ssrc`) into each stream whose `state` is a
  `camstream.media.StreamInit`. `parse_options(response)` reports whether
  the server supports `SET_PARAMETER` and `GET_PARAMETER`.
- `camstream.timeline` holds `Timeline`, which turns wrapping 32-bit RTP
  timestamps into non-wrapping `Timestamp`s. It can reject backward jumps and
  excessive forward jumps.
- `camstream.packet` holds `parse_rtp(data)` and `build_rtp(header, payload)`
  for RTP packets, together with `RtpHeader` and `ReceivedPacket`.
- `camstream.inorder` holds `InorderParser`. It checks that RTP packets carry
  a consistent SSRC and sequence numbers that increase, and it reports loss.
  An out-of-order packet is skipped over UDP (`tcp=False`) and raises an
  error over TCP. The parser also validates RTCP compound packets and places
  the timestamps of sender reports on the timeline. An
  `UnknownRtcpSsrcPolicy` decides what happens to reports from an unexpected
  SSRC.

## Example

```python
from camstream.describe import parse_describe
from camstream.media import StreamInit
from camstream.message import Response
from camstream.session import parse_play, parse_setup

sdp = (
    b"v=0\r\n"
    b"s=Session\r\n"
    b"t=0 0\r\n"
    b"m=video 0 RTP/AVP 96\r\n"
    b"a=rtpmap:96 H264/90000\r\n"
    b"a=control:trackID=1\r\n"
)
describe = Response(
    status=200,
    reason="OK",
    headers=(("CSeq", "2"), ("Content-Type", "application/sdp")),
    body=sdp,
)
presentation = parse_describe("rtsp://camera.example.com/stream", describe)
stream = presentation.streams[0]
print(stream.media, stream.encoding_name, stream.clock_rate_hz, stream.control)

setup = parse_setup(Response.parse(
    b"RTSP/1.0 200 OK\r\n"
    b"CSeq: 3\r\n"
    b"Session: 12345678;timeout=30\r\n"
    b"Transport: RTP/AVP/TCP;unicast;interleaved=0-1;ssrc=30A98EE7\r\n\r\n"
))
stream.state = StreamInit(ssrc=setup.ssrc)

parse_play(Response.parse(
    b"RTSP/1.0 200 OK\r\n"
    b"CSeq: 4\r\n"
    b"RTP-Info: url=rtsp://camera.example.com/stream/trackID=1;seq=100;rtptime=5000\r\n\r\n"
), presentation)
print(stream.state.initial_seq, stream.state.initial_rtptime)
```

The following example receives RTP data:

```python
from camstream.inorder import InorderParser
from camstream.packet import RtpHeader, build_rtp
from camstream.timeline import Timeline

timeline = Timeline(stream.state.initial_rtptime, stream.clock_rate_hz, 10)
parser = InorderParser(stream.state.ssrc, stream.state.initial_seq)
data = build_rtp(RtpHeader(sequence_number=100, timestamp=5000, payload_type=96,
                           ssrc=0x30A98EE7, mark=True), b"payload")
pkt = parser.rtp(timeline, 0, data, tcp=True)
print(pkt.loss, pkt.timestamp.elapsed())
```

## Errors

Malformed input raises an exception that names the problem:

- `RtspParseError` for an RTSP message.
- `SdpParseError` for an SDP description.
- `RtpPacketError` for RTP packets and for violations of SSRC or sequence
  expectations.
- `RtcpError` for RTCP packets.
- `ValueError` for unusable DESCRIBE, SETUP and PLAY contents and for
  timeline policy.

`RtspParseError` and `SdpParseError` are subclasses of `ValueError`.

## What it does not do

- It opens no network connections. It has no RTSP client that sends
  requests, handles authentication, sends keepalives or tears sessions down.
  You supply the response bytes and the packet bytes.
- It does not depacketize or decode media. Payloads are returned as raw
  bytes, and an encoding's format-specific parameters are kept only as the
  text from `a=fmtp`.
- It does not write MP4 or any other container format.

## Running the tests

```
pip install -e ".[test]"
pytest
```