[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sigourney"
version = "0.1.0"
description = "A modular audio synthesizer with a graph of signal processors and a websocket patching server"
requires-python = ">=3.10"
keywords = ["synthesizer", "audio", "modular", "dsp", "midi", "oscillator"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Environment :: Web Environment",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Sound/Audio :: Sound Synthesis",
    "Topic :: Multimedia :: Sound/Audio :: MIDI",
]
dependencies = [
    "aiohttp",
    "pillow",
    "mido",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
sigourney = "sigourney.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["sigourney"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
