"""RTSP response and SDP parsing, and in-order RTP/RTCP handling for IP camera streams."""

__version__ = "0.1.0"