[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kvstore"
version = "0.1.0"
description = "An in-memory key-value store with expiring keys, served over a line-based TCP protocol"
requires-python = ">=3.10"
dependencies = []
keywords = ["key-value", "cache", "ttl", "tcp", "server", "database"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
kvstore-server = "kvstore.server:main"
kvstore-client = "kvstore.client:main"

[tool.hatch.build.targets.wheel]
packages = ["kvstore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
