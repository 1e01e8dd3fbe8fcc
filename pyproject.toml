[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sfzq"
version = "1.0.0"
description = "SFZ/SF2 sample player engine: instrument readers, envelopes, voices and a polyphonic synth"
requires-python = ">=3.10"
dependencies = []
keywords = ["sfz", "sf2", "soundfont", "sampler", "synthesizer", "audio", "midi"]
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
    "Topic :: Multimedia :: Sound/Audio :: Sound Synthesis",
    "Topic :: Multimedia :: Sound/Audio :: MIDI",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["sfzq"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
