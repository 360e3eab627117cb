[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "simpleudp"
version = "1.0.0"
description = "A minimal IPv4 UDP socket wrapper with an echo server and client demo."
requires-python = ">=3.10"
keywords = ["udp", "socket", "networking", "echo", "ipv4"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
simpleudp-echo = "simpleudp.echo:main"

[tool.hatch.build.targets.wheel]
packages = ["simpleudp"]

[tool.pytest.ini_options]
addopts = "-ra"
