[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "camstream"
version = "0.1.0"
description = "RTSP response parsing, SDP stream description and in-order RTP/RTCP handling for IP camera streams"
requires-python = ">=3.10"
dependencies = []
keywords = ["rtsp", "rtp", "rtcp", "sdp", "ip-camera", "streaming"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Video",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["camstream"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
