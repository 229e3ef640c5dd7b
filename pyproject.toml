[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "atlasdb"
version = "0.1.0"
description = "In-memory table catalog with typed rows, primary keys, secondary index definitions and a binary snapshot format"
requires-python = ">=3.10"
dependencies = []
keywords = ["database", "catalog", "snapshot", "embedded", "table"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Database :: Database Engines/Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["atlasdb"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
