[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "voicetracks"
version = "0.1.0"
description = "Controllable audio tracks, track queues, shard handles and voice gateway JSON helpers for voice bots"
requires-python = ">=3.10"
keywords = ["audio", "voice", "tracks", "queue", "websocket", "gateway", "shards"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Topic :: Multimedia :: Sound/Audio",
]
dependencies = [
    "websockets",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["voicetracks"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
