[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mapfcbs"
version = "0.1.0"
description = "Building blocks for Conflict-Based Search in multi-agent path finding with ordered landmarks and temporal constraints"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "mapf",
    "multi-agent path finding",
    "conflict-based search",
    "cbs",
    "mdd",
    "mutex propagation",
    "planning",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["mapfcbs"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
