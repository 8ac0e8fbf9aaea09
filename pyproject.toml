[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "webcfgsync"
version = "0.1.0"
description = "Helpers for syncing device configuration documents: request headers, multipart parsing, msgpack parameters, version bookkeeping and status notifications."
requires-python = ">=3.10"
keywords = ["webconfig", "msgpack", "multipart", "configuration", "sync"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: System :: Systems Administration",
]
dependencies = [
    "msgpack",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["webcfgsync"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
