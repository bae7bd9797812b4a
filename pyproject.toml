[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "simplefix"
version = "0.1.0"
description = "FIX protocol message handlers and tools for reading FIX XML dictionaries"
requires-python = ">=3.10"
dependencies = []
keywords = ["fix", "financial information exchange", "trading", "protocol", "xml dictionary"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Investment",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["simplefix"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
